"""
exceptions that can be raised while accessing or updating a bag's contents
"""

IO = "IO"
PARSE = "PARSE"
UNKNOWN_VERSION = "UNKNOWN_VERSION"
UNSUPPORTED_ALGORITHM = "UNSUPPORTED_ALGORITHM"
STATE = "STATE"

class BagError(Exception):
    """
    a general exception while reading, writing, or transforming a bag.  These
    represent operational failures; problems with a bag's compliance are
    reported as messages in a ValidationResults instance instead.
    """
    def __init__(self, message, kind=STATE, cause=None):
        """
        initialize the exception
        :param str message:  a description of the failure
        :param str kind:     the type of failure, one of IO, PARSE,
                             UNKNOWN_VERSION, UNSUPPORTED_ALGORITHM, or STATE
        :param Exception cause:  the underlying exception, if any
        """
        super(BagError, self).__init__(message)
        self.message = message
        self.kind = kind
        self.cause = cause

class BagParseError(BagError):
    """
    an exception indicating that a tag file could not be parsed
    """
    def __init__(self, code, message, filename=None, lineno=None):
        """
        :param str code:      a stable identifier for the syntax problem
                              (e.g. "DUPLICATE_PATH")
        :param str message:   a description of the problem
        :param str filename:  the name of the tag file being parsed
        :param int lineno:    the line number (starting with 1) where the
                              problem was found
        """
        self.code = code
        self.filename = filename
        self.lineno = lineno
        if filename:
            where = filename
            if lineno:
                where += ":{0}".format(lineno)
            message = "{0}: {1}".format(where, message)
        super(BagParseError, self).__init__(message, PARSE)

class UnknownVersionError(BagError):
    """
    an exception indicating that a bag declares a version of the BagIt
    specification that is not supported.
    """
    def __init__(self, version, message=None):
        self.version = version
        if not message:
            message = "Unsupported BagIt version: " + str(version)
        super(UnknownVersionError, self).__init__(message, UNKNOWN_VERSION)

class HashingError(BagError):
    """
    an exception raised when a digest cannot be computed
    """
    HASH_IO = "HASH_IO"
    HASH_UNKNOWN_ALG = "HASH_UNKNOWN_ALG"

    def __init__(self, code, message, cause=None):
        self.code = code
        kind = (code == self.HASH_UNKNOWN_ALG and UNSUPPORTED_ALGORITHM) or IO
        super(HashingError, self).__init__(message, kind, cause)

class FetchError(BagError):
    """
    an exception raised when a file listed in a fetch list cannot be
    retrieved
    """
    def __init__(self, url, message=None, cause=None):
        self.url = url
        if not message:
            message = "Failed to fetch " + url
            if cause:
                message += ": " + str(cause)
        super(FetchError, self).__init__(message, IO, cause)
