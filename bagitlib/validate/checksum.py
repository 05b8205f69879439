"""
This module provides the verifier that recomputes the digests of the files
listed in a bag's manifests and compares them with the recorded values.

The digests are computed by a pool of worker threads fed through a bounded
queue; the number of workers and the size of the queue can be set when the
verifier is created.  Whatever the number of workers, the messages in the
results are ordered by manifest and then by the position of the file in
its manifest.
"""
import os, threading, queue, logging

from .base import Verifier, ValidationResults, FailMode
from .complete import missing_file
from ..hashing import HASH_BLOCK_SIZE, digest_file, is_supported_algorithm
from ..access.exceptions import HashingError

IO_ERROR = "IO_ERROR"
CHECKSUM_INVALID = "CHECKSUM_INVALID"
UNKNOWN_ALGORITHM = "UNKNOWN_ALGORITHM"

log = logging.getLogger(__name__)

_POLL_INTERVAL = 0.1

class _Run(object):
    # the state shared between the dispatcher and the workers of one verify()
    def __init__(self, bag, manifests, queue_size):
        self.bag = bag
        self.result = ValidationResults(str(bag))
        self.work = queue.Queue(queue_size)
        self.stop = threading.Event()
        self.lock = threading.Lock()
        self.errors = []
        self.positions = {}
        self.done = 0
        self.total = sum([len(m) for m in manifests])

    def record(self, position, fail, *args):
        # fail is a function that adds a message to a ValidationResults
        with self.lock:
            msg = fail(self.result, *args)
            self.positions[id(msg)] = position

    def sort(self):
        self.result.sort_messages(lambda m: self.positions[id(m)])

def _fail(code, template):
    return lambda result, *args: result.fail(code, template, *args)

_unknown_algorithm = _fail(UNKNOWN_ALGORITHM,
                           "Manifest {0} uses an unsupported algorithm: {1}")
_io_error = _fail(IO_ERROR, "Unable to read {0}: {1}")
_checksum_invalid = _fail(CHECKSUM_INVALID, "File {0} in manifest {1} has an "
                          "invalid {2} digest: expected {3}, computed {4}")

class ManifestChecksumVerifier(Verifier):
    """
    A verifier that checks the digests of the files listed in a set of
    manifests.  A file listed in a manifest but missing from the bag is
    reported with the same codes used by the CompleteVerifier.

    Under FAIL_FAST, the first problem found stops the outstanding work; any
    other fail mode checks every listed file.
    """

    def __init__(self, fail_mode=FailMode.FAIL_STAGE, workers=None,
                 queue_size=None, blocksize=HASH_BLOCK_SIZE, subscribers=None):
        """
        :param str fail_mode:   the FailMode policy (default: FAIL_STAGE)
        :param int workers:     the number of threads computing digests
                                (default: the number of CPUs)
        :param int queue_size:  the maximum number of files waiting to be
                                checked (default: twice the number of workers)
        :param int blocksize:   the number of bytes to read at a time
        :param subscribers:     a list of progress subscribers
        """
        super(ManifestChecksumVerifier, self).__init__(fail_mode, subscribers)
        if workers is None:
            workers = os.cpu_count() or 1
        if workers < 1:
            raise ValueError("workers must be a positive integer: " + str(workers))
        self.workers = workers
        self.queue_size = queue_size or 2 * workers
        self.blocksize = blocksize

    def verify_bag(self, bag):
        """
        check the digests listed in all of the bag's tag manifests and then
        all of its payload manifests.
        """
        return self.verify(bag.tag_manifests() + bag.payload_manifests(), bag)

    def _verify_bag(self, bag):
        return self.verify_bag(bag)

    def verify(self, manifests, bag):
        """
        check the digests listed in the given manifests against the contents
        of the bag.

        :param list manifests:  the Manifest instances to check
        :param Bag bag:         the bag containing the files to check
        :rtype: ValidationResults:  the results, or None if the verification
                                    was cancelled
        """
        manifests = list(manifests)
        run = _Run(bag, manifests, self.queue_size)
        threads = [threading.Thread(target=self._work, args=(run,),
                                    name="checksum-{0}".format(i))
                   for i in range(self.workers)]
        for t in threads:
            t.daemon = True
            t.start()

        try:
            self._dispatch(manifests, run)
        finally:
            for t in threads:
                run.work.put(None)
            for t in threads:
                t.join()

        if run.errors:
            raise run.errors[0]
        if self.is_cancelled():
            log.info("Checksum verification of %s cancelled", str(bag))
            return None

        run.sort()
        log.info("Result of checksum verification: %s", run.result.summary)
        return run.result

    def _halted(self, run):
        return self.is_cancelled() or run.stop.is_set()

    def _dispatch(self, manifests, run):
        for mi, manifest in enumerate(manifests):
            if self._halted(run):
                return
            log.debug("Checking digests in %s", manifest.filepath)
            if not is_supported_algorithm(manifest.algorithm):
                run.record((mi, -1), _unknown_algorithm,
                           manifest.filepath, manifest.algorithm)
                log.warning("Skipping manifest %s: unsupported algorithm %s",
                            manifest.filepath, manifest.algorithm)
                if self.fail_mode == FailMode.FAIL_FAST:
                    run.stop.set()
                continue

            for ei, (filepath, expected) in enumerate(manifest.items()):
                if not self._enqueue(run, ((mi, ei), manifest, filepath, expected)):
                    return

    def _enqueue(self, run, item):
        # block while the queue is full, but give up if the run is halted
        while not self._halted(run):
            try:
                run.work.put(item, timeout=_POLL_INTERVAL)
                return True
            except queue.Full:
                pass
        return False

    def _work(self, run):
        while True:
            item = run.work.get()
            if item is None:
                return
            if self._halted(run):
                continue

            position, manifest, filepath, expected = item
            try:
                failed = self._check_file(run, position, manifest, filepath, expected)
            except Exception as ex:
                log.exception("Unexpected failure while checking %s", filepath)
                with run.lock:
                    run.errors.append(ex)
                run.stop.set()
                continue
            if self._halted(run) and not failed:
                # the read may have been cut short
                continue

            with run.lock:
                run.done += 1
                count = run.done
            self.progress("verifying manifest checksums", filepath, count, run.total)
            if failed and self.fail_mode == FailMode.FAIL_FAST:
                run.stop.set()

    def _check_file(self, run, position, manifest, filepath, expected):
        bagfile = run.bag.get_bag_file(filepath)
        if bagfile is None or not bagfile.exists():
            run.record(position, missing_file, manifest, filepath)
            log.warning("File %s in manifest %s missing from bag.",
                        filepath, manifest.filepath)
            return True

        try:
            digest = digest_file(bagfile, manifest.algorithm, self.blocksize,
                                 lambda: self._halted(run))
        except HashingError as ex:
            run.record(position, _io_error, filepath, ex.message)
            log.warning("Unable to read %s: %s", filepath, ex.message)
            return True

        if digest is None:
            return False
        if digest != expected.lower():
            run.record(position, _checksum_invalid, filepath, manifest.filepath,
                       manifest.algorithm, expected, digest)
            log.warning("Fixity failure for %s in manifest %s",
                        filepath, manifest.filepath)
            return True
        return False
