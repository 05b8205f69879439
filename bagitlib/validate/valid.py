"""
This module provides the verifier that checks whether a bag is valid: that
it is complete and that every digest recorded in its manifests matches the
contents of the listed file.
"""
import logging

from .base import Verifier, FailMode
from .complete import CompleteVerifier
from .checksum import ManifestChecksumVerifier

log = logging.getLogger(__name__)

class ValidVerifier(Verifier):
    """
    A verifier that runs a CompleteVerifier and then a
    ManifestChecksumVerifier, first over the bag's tag manifests and then over
    its payload manifests.

    The verification proceeds in two stages: completeness and checksums.
    Unless the fail mode is FAIL_SLOW, a failed completeness stage ends the
    verification.  Under FAIL_FAST and FAIL_STEP, failed tag manifest
    checksums also end it before the payload checksums are computed.

    The fail mode, cancellation, and progress subscribers set on this
    verifier are passed on to the verifiers it wraps.
    """

    def __init__(self, complete_verifier=None, checksum_verifier=None,
                 fail_mode=FailMode.FAIL_STAGE, subscribers=None):
        """
        :param CompleteVerifier complete_verifier:  the verifier to use for
                             the completeness checks (default: a
                             CompleteVerifier with default settings)
        :param ManifestChecksumVerifier checksum_verifier:  the verifier to
                             use to check digests (default: a
                             ManifestChecksumVerifier with default settings)
        :param str fail_mode:  the FailMode policy (default: FAIL_STAGE)
        :param subscribers:    a list of progress subscribers
        """
        if complete_verifier is None:
            complete_verifier = CompleteVerifier()
        if checksum_verifier is None:
            checksum_verifier = ManifestChecksumVerifier()
        self.complete_verifier = complete_verifier
        self.checksum_verifier = checksum_verifier

        super(ValidVerifier, self).__init__(fail_mode)
        self.fail_mode = fail_mode
        for sub in subscribers or []:
            self.add_progress_subscriber(sub)

    def _delegates(self):
        return (self.complete_verifier, self.checksum_verifier)

    @Verifier.fail_mode.setter
    def fail_mode(self, mode):
        self._fail_mode = FailMode.check(mode)
        for verifier in self._delegates():
            verifier.fail_mode = mode

    def add_progress_subscriber(self, subscriber):
        super(ValidVerifier, self).add_progress_subscriber(subscriber)
        for verifier in self._delegates():
            verifier.add_progress_subscriber(subscriber)

    def remove_progress_subscriber(self, subscriber):
        super(ValidVerifier, self).remove_progress_subscriber(subscriber)
        for verifier in self._delegates():
            verifier.remove_progress_subscriber(subscriber)

    def cancel(self):
        super(ValidVerifier, self).cancel()
        for verifier in self._delegates():
            verifier.cancel()

    def _stop(self, result, stop_modes):
        return not result.ok() and self.fail_mode in stop_modes

    def verify(self, bag):
        """
        check that the given bag is valid.

        :param Bag bag:  the bag to check; it is not modified.
        :rtype: ValidationResults:  the results, or None if the verification
                                    was cancelled
        """
        result = self.complete_verifier.verify(bag)
        if result is None or self.is_cancelled():
            return None
        if self._stop(result, (FailMode.FAIL_FAST, FailMode.FAIL_STEP,
                               FailMode.FAIL_STAGE)):
            return result

        log.debug("Checking tag manifest checksums")
        result.merge(self.checksum_verifier.verify(bag.tag_manifests(), bag))
        if self.is_cancelled():
            return None
        if self._stop(result, (FailMode.FAIL_FAST, FailMode.FAIL_STEP)):
            return result

        log.debug("Checking payload manifest checksums")
        result.merge(self.checksum_verifier.verify(bag.payload_manifests(), bag))
        if self.is_cancelled():
            return None

        log.info("Completed verification that bag is valid.")
        log.info("Result of verification that valid: %s", result.summary)
        return result
