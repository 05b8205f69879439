"""
This module provides a quick check of a bag's payload against the
Payload-Oxum recorded in its bag metadata.
"""
import logging

from .base import Verifier, ValidationResults, FailMode
from ..access.tagfiles import parse_oxum
from ..access.exceptions import BagParseError
from ..constants import FIELD_PAYLOAD_OXUM

PAYLOAD_OXUM_MALFORMED = "PAYLOAD_OXUM_MALFORMED"
PAYLOAD_OXUM_MISMATCH = "PAYLOAD_OXUM_MISMATCH"

log = logging.getLogger(__name__)

class PayloadOxumVerifier(Verifier):
    """
    A verifier that compares the octet and file counts recorded in the
    Payload-Oxum metadata field with the bag's actual payload.  A bag without
    a Payload-Oxum passes.
    """

    def __init__(self, fail_mode=FailMode.FAIL_STAGE, subscribers=None):
        super(PayloadOxumVerifier, self).__init__(fail_mode, subscribers)

    def verify(self, bag):
        result = ValidationResults(str(bag))
        info = bag.bag_info()
        value = info and info.get(FIELD_PAYLOAD_OXUM)
        if not value:
            log.debug("No %s to check", FIELD_PAYLOAD_OXUM)
            return result

        try:
            expected = parse_oxum(value)
        except BagParseError:
            result.fail(PAYLOAD_OXUM_MALFORMED, "Malformed {0} value: {1}",
                        FIELD_PAYLOAD_OXUM, value)
            log.warning("Malformed %s value: %s", FIELD_PAYLOAD_OXUM, value)
            return result

        octets = 0
        files = bag.payload_files()
        for count, bagfile in enumerate(files, 1):
            if self.is_cancelled():
                return None
            self.progress("measuring payload", bagfile.filepath, count, len(files))
            size = bagfile.size
            if size is None:
                size = len(bagfile.read())
            octets += size

        actual = (octets, len(files))
        if actual != expected:
            result.fail(PAYLOAD_OXUM_MISMATCH,
                        "{0} is {1} but payload has {2} octets in {3} files.",
                        FIELD_PAYLOAD_OXUM, value, actual[0], actual[1])
            log.warning("%s mismatch: %s != %d.%d", FIELD_PAYLOAD_OXUM, value,
                        actual[0], actual[1])
        return result
