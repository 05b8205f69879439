"""
This module provides base classes and infrastructure for bag verification:
the container for verification results, the fail-mode policy, and the base
Verifier class.
"""
from collections import OrderedDict

from ..progress import LongRunningOperation
from ..access.exceptions import BagError

class FailMode(object):
    """
    the policy controlling when a verifier stops after detecting a problem.

    FAIL_FAST
       return as soon as the first problem is detected
    FAIL_STEP
       finish the current step (a group of related checks), then return if
       a problem was detected
    FAIL_STAGE
       finish the current stage (completeness or checksums), then return if
       a problem was detected
    FAIL_SLOW
       run all checks regardless of problems
    """
    FAIL_FAST  = "FAIL_FAST"
    FAIL_STEP  = "FAIL_STEP"
    FAIL_STAGE = "FAIL_STAGE"
    FAIL_SLOW  = "FAIL_SLOW"

    ALL = (FAIL_FAST, FAIL_STEP, FAIL_STAGE, FAIL_SLOW)

    @classmethod
    def check(cls, mode):
        if mode not in cls.ALL:
            raise ValueError("Not a recognized fail mode: "+str(mode))
        return mode

class ValidationMessage(object):
    """
    a message reporting a problem (or a check) detected by a verifier.  It
    carries a stable code identifying the kind of problem, a template for
    a human-readable description, and the arguments to insert into the
    template.
    """

    def __init__(self, code, template, args=None):
        """
        :param str code:      the stable identifier (e.g. "CHECKSUM_INVALID")
        :param str template:  a str.format()-style template with positional
                              fields (e.g. "File {0} is missing")
        :param args:          the values to insert into the template
        """
        self._code = code
        self._tmpl = template
        self._args = tuple(args or ())

    @property
    def code(self):
        """
        the stable identifier for the type of problem
        """
        return self._code

    @property
    def template(self):
        return self._tmpl

    @property
    def args(self):
        """
        the substitution arguments, as a tuple
        """
        return self._args

    @property
    def message(self):
        """
        the human-readable description with the arguments substituted in
        """
        try:
            return self._tmpl.format(*self._args)
        except (IndexError, KeyError):
            return self._tmpl

    @property
    def summary(self):
        return "{0}: {1}".format(self._code, self.message)

    def to_tuple(self):
        """
        return a tuple containing the message data
        """
        return (self._code, self._tmpl, self._args)

    def __eq__(self, other):
        return isinstance(other, ValidationMessage) and \
            (self._code, self.message) == (other._code, other.message)

    def __ne__(self, other):
        return not (self == other)

    def __hash__(self):
        return hash((self._code, self.message))

    def __str__(self):
        return self.summary

    def __repr__(self):
        return "ValidationMessage({0}, {1})".format(repr(self._code),
                                                    repr(self.message))

class ValidationResults(object):
    """
    a container for collecting results from verification: an overall success
    flag and an ordered list of ValidationMessages.

    Once the success flag becomes False, it can never become True again.
    """

    def __init__(self, target=None, success=True):
        """
        initialize an empty set of results for a particular bag

        :param str target:    a name indicating the bag that is the target of
                              these results
        :param bool success:  the initial value of the success flag
        """
        self.target = target
        self._success = bool(success)
        self._msgs = []

    @property
    def success(self):
        """
        True if no verification check has failed
        """
        return self._success

    @success.setter
    def success(self, value):
        self._success = self._success and bool(value)

    def ok(self):
        """
        return True if none of the verification checks failed
        """
        return self._success

    @property
    def messages(self):
        """
        the list of ValidationMessages, in the order they were added or sorted
        """
        return list(self._msgs)

    def add_message(self, code, template, *args):
        """
        append a message without affecting the success flag
        :return: the new ValidationMessage
        """
        msg = ValidationMessage(code, template, args)
        self._msgs.append(msg)
        return msg

    def fail(self, code, template, *args):
        """
        record a failed check: set the success flag to False and append a
        message
        :return: the new ValidationMessage
        """
        self._success = False
        return self.add_message(code, template, *args)

    def sort_messages(self, key):
        """
        reorder the messages by a key function applied to each
        ValidationMessage.  The sort is stable.
        """
        self._msgs.sort(key=key)

    def merge(self, other):
        """
        append the messages from another ValidationResults instance and
        combine its success flag with this one.  Merging None does nothing.
        :return: this instance
        """
        if other is not None:
            self._msgs.extend(other._msgs)
            self._success = self._success and other._success
        return self

    def codes(self):
        """
        return the list of message codes, in order
        """
        return [m.code for m in self._msgs]

    def messages_for(self, code):
        """
        return the messages with the given code
        """
        return [m for m in self._msgs if m.code == code]

    def has_code(self, code):
        return any(m.code == code for m in self._msgs)

    def message_set(self):
        """
        return the messages as a frozenset, for comparing results where message
        order is not significant
        """
        return frozenset(self._msgs)

    def count(self):
        return len(self._msgs)

    @property
    def summary(self):
        """
        a one-line description of the outcome
        """
        status = (self._success and "PASSED") or "FAILED"
        out = status
        if self.target:
            out += ": {0}".format(self.target)
        if self._msgs:
            out += " ({0} message{1})".format(len(self._msgs),
                                             (len(self._msgs) != 1 and "s") or "")
        return out

    @property
    def description(self):
        """
        a multi-line description starting with the summary and followed by
        each message on its own line.  A newline is not added to the end of
        the last message.
        """
        out = self.summary
        if self._msgs:
            out += "\n   "
            out += "\n   ".join([m.summary for m in self._msgs])
        return out

    def __str__(self):
        return self.description

    def __eq__(self, other):
        return isinstance(other, ValidationResults) and \
            self._success == other._success and self._msgs == other._msgs

    def __ne__(self, other):
        return not (self == other)

    __hash__ = None

    def to_json_obj(self):
        """
        return an OrderedDict that can be encoded into a JSON object node
        which contains the data in this ValidationResults.
        """
        return OrderedDict([
            ("target", self.target),
            ("success", self._success),
            ("messages", [OrderedDict([("code", m.code), ("message", m.message)])
                          for m in self._msgs])
        ])

class BagVerificationError(BagError):
    """
    An exception indicating that a bag failed verification.  It carries along
    all of the result details as a ValidationResults instance ("results").
    """
    def __init__(self, results):
        self.results = results

        msgs = [m for m in results.messages]
        if not msgs:
            msg = "Unknown bag verification failure"
        elif len(msgs) == 1:
            msg = msgs[0].summary
        else:
            msg = "{0} verification problems detected".format(len(msgs))
        super(BagVerificationError, self).__init__(msg)

    def __str__(self):
        msgs = self.results.messages
        if len(msgs) < 2:
            return self.message

        out = self.message
        if len(msgs) > 3:
            out += ", including"
        out += ":"
        for m in msgs[0:3]:
            out += "\n * "+m.summary
        return out

class Verifier(LongRunningOperation):
    """
    a base class for a class that checks a bag against a set of
    requirements.  Subclasses override verify().
    """

    def __init__(self, fail_mode=FailMode.FAIL_STAGE, subscribers=None):
        """
        :param str fail_mode:  the FailMode policy
        :param subscribers:    a list of progress subscribers
        """
        super(Verifier, self).__init__(subscribers)
        self._fail_mode = FailMode.check(fail_mode)

    @property
    def fail_mode(self):
        return self._fail_mode

    @fail_mode.setter
    def fail_mode(self, mode):
        self._fail_mode = FailMode.check(mode)

    def verify(self, bag):
        """
        run the embedded checks against the given bag.

        :param Bag bag:  the bag to verify
        :rtype: ValidationResults:  the results, or None if the verification
                                    was cancelled
        """
        return ValidationResults(str(bag))

    def _verify_bag(self, bag):
        return self.verify(bag)

    def is_valid(self, bag):
        """
        run the embedded checks and return True if they all pass.
        """
        results = self._verify_bag(bag)
        return bool(results and results.ok())

    def ensure_valid(self, bag):
        """
        run the embedded checks; if any fail, raise a BagVerificationError.

        :raise BagVerificationError:  if any of the checks fail
        :raise BagError:  if verification was cancelled
        """
        results = self._verify_bag(bag)
        if results is None:
            raise BagError("Verification of {0} was cancelled".format(str(bag)))
        if not results.ok():
            raise BagVerificationError(results)
        return results
