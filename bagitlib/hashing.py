"""
Functions for computing the digests recorded in bag manifests.
"""
import hashlib, logging

from .access.exceptions import HashingError

HASH_BLOCK_SIZE = 512 * 1024

log = logging.getLogger(__name__)

def _new_hasher(algorithm):
    try:
        out = hashlib.new(algorithm.lower())
    except (ValueError, TypeError, AttributeError):
        raise HashingError(HashingError.HASH_UNKNOWN_ALG,
                           "Unsupported digest algorithm: " + str(algorithm))
    if out.digest_size == 0:
        # variable-length digests (shake_*) cannot be compared
        raise HashingError(HashingError.HASH_UNKNOWN_ALG,
                           "Unsupported digest algorithm: " + str(algorithm))
    return out

def is_supported_algorithm(algorithm):
    """
    return True if a digest can be computed with the named algorithm
    """
    try:
        _new_hasher(algorithm)
        return True
    except HashingError:
        return False

def compute_digest(stream, algorithm, blocksize=HASH_BLOCK_SIZE, cancelled=None):
    """
    read the given stream to its end and return its digest as a lowercase
    hex string.  The stream is read block by block; it is not closed by
    this function.

    :param stream:     a file-like object opened for reading in binary mode
    :param str algorithm:  the name of the digest algorithm (e.g. "sha256")
    :param int blocksize:  the number of bytes to read at a time
    :param cancelled:  a function that takes no arguments; if provided, it
                       is called before each block is read, and if it returns
                       True, reading is abandoned and None is returned.
    :raises HashingError:  if the algorithm is not supported (code
                       HASH_UNKNOWN_ALG) or the stream could not be read
                       (code HASH_IO)
    """
    hasher = _new_hasher(algorithm)
    try:
        while True:
            if cancelled and cancelled():
                return None
            block = stream.read(blocksize)
            if not block:
                break
            hasher.update(block)
    except (OSError, IOError) as ex:
        raise HashingError(HashingError.HASH_IO,
                           "Failed to read stream: " + str(ex), ex)
    return hasher.hexdigest()

def digest_file(bagfile, algorithm, blocksize=HASH_BLOCK_SIZE, cancelled=None):
    """
    return the digest of the contents of a bag file

    :param BagFile bagfile:  the file to digest
    :param str algorithm:    the name of the digest algorithm
    :raises HashingError:    if the file cannot be opened or read or the
                             algorithm is not supported
    """
    _new_hasher(algorithm)
    log.debug("Calculating %s digest for %s", algorithm, bagfile.filepath)
    try:
        fd = bagfile.open()
    except (OSError, IOError) as ex:
        raise HashingError(HashingError.HASH_IO, "Unable to open {0}: {1}"
                           .format(bagfile.filepath, str(ex)), ex)
    with fd:
        return compute_digest(fd, algorithm, blocksize, cancelled)
