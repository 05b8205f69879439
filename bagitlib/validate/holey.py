"""
This module provides a verifier for holey bags: bags whose payload has not
yet been retrieved from the locations given in their fetch lists.
"""
import logging

from .base import Verifier, ValidationResults, FailMode
from .complete import NO_DECLARATION, NO_PAYLOAD_MANIFEST, WRONG_VERSION

MISSING_FETCH = "MISSING_FETCH"

log = logging.getLogger(__name__)

class ValidHoleyVerifier(Verifier):
    """
    A verifier that checks the structure of a bag while ignoring its
    payload.  It can be used on a holey bag before its payload is fetched.
    The bag must have a declaration matching the bag's version, at least one
    payload manifest, and a fetch list.  Payload files are neither looked for
    nor checked.

    By default, the messages noting a missing declaration and a missing fetch
    list are recorded on every call, even when the declaration or fetch list
    is present; only the success flag reflects whether the check passed.  Set
    gate_messages to True to record these messages only for failed checks.
    """

    def __init__(self, gate_messages=False, fail_mode=FailMode.FAIL_STAGE,
                 subscribers=None):
        super(ValidHoleyVerifier, self).__init__(fail_mode, subscribers)
        self.gate_messages = gate_messages

    def _check(self, result, passed, code, template, *args):
        if not passed:
            result.success = False
            log.warning(template.format(*args))
        if not passed or not self.gate_messages:
            result.add_message(code, template, *args)

    def verify(self, bag):
        """
        check the structure of the given (possibly holey) bag.

        :param Bag bag:  the bag to check; it is not modified.
        :rtype: ValidationResults:  the results, or None if the verification
                                    was cancelled
        """
        result = ValidationResults(str(bag))
        dialect = bag.dialect
        decl = bag.declaration()

        log.debug("Checking for bag declaration")
        self._check(result, decl is not None, NO_DECLARATION,
                    "Bag does not have {0}.", dialect.declaration_filename)

        log.debug("Checking that declared version matches")
        if decl is not None and decl.version != dialect.declaration_version:
            result.fail(WRONG_VERSION, "Version is not {0}.",
                        dialect.declaration_version)
            log.warning("Version is not %s", dialect.declaration_version)

        if self.is_cancelled():
            return None

        log.debug("Checking for at least one payload manifest")
        if not bag.payload_manifests():
            result.fail(NO_PAYLOAD_MANIFEST,
                        "Bag does not have any payload manifests.")
            log.warning("Bag does not have any payload manifests.")

        log.debug("Checking for fetch list")
        self._check(result, bag.fetch_list() is not None, MISSING_FETCH,
                    "Bag does not have {0}.", dialect.fetch_filename)

        if self.is_cancelled():
            return None
        log.info("Result of verification of holey bag: %s", result.summary)
        return result
