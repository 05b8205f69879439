"""
Support for long-running operations that report their progress and can be
cancelled by another thread.
"""
import threading, queue, logging
from collections import namedtuple

log = logging.getLogger(__name__)

ProgressEvent = namedtuple("ProgressEvent", "activity item count total")
ProgressEvent.__doc__ = \
"""
a report of progress from a long-running operation: a description of the
current activity, the item (usually a file path) being worked on (or an empty
string), and the number of items processed so far and the total number of
items (either of which may be None).
"""

class LongRunningOperation(object):
    """
    a base class for operations that report progress to subscribers and that
    support cooperative cancellation.

    A subscriber is any function that accepts a ProgressEvent.  Subscribers
    are called synchronously on the thread doing the work, so they should
    return quickly; a QueueingSubscriber can be used to hand events off to
    another thread.  An exception raised by a subscriber is logged and
    otherwise ignored.

    Cancellation is monotonic: once cancel() is called, is_cancelled() returns
    True for the rest of the operation's life.
    """

    def __init__(self, subscribers=None):
        """
        :param subscribers:  a list of functions that should receive progress
                             events
        """
        self._subscribers = list(subscribers or [])
        self._sublock = threading.Lock()
        self._cancelled = threading.Event()

    def add_progress_subscriber(self, subscriber):
        """
        register a function to receive ProgressEvents
        """
        with self._sublock:
            self._subscribers.append(subscriber)

    def remove_progress_subscriber(self, subscriber):
        """
        unregister a function previously registered with
        add_progress_subscriber()
        """
        with self._sublock:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

    @property
    def subscribers(self):
        with self._sublock:
            return tuple(self._subscribers)

    def cancel(self):
        """
        request that the operation stop as soon as possible.  A cancelled
        operation returns None instead of a result.
        """
        self._cancelled.set()

    def is_cancelled(self):
        """
        return True if cancel() has been called
        """
        return self._cancelled.is_set()

    def progress(self, activity, item="", count=None, total=None):
        """
        send a progress event to all subscribers
        """
        event = ProgressEvent(activity, item or "", count, total)
        for sub in self.subscribers:
            try:
                sub(event)
            except Exception:
                log.exception("Progress subscriber failed on event: %s", str(event))

class QueueingSubscriber(object):
    """
    a progress subscriber that places events on a bounded queue for
    consumption by another thread.  When the queue is full, new events are
    dropped so that the producing operation is never blocked.
    """

    def __init__(self, maxsize=1000):
        self.queue = queue.Queue(maxsize)
        self.dropped = 0

    def __call__(self, event):
        try:
            self.queue.put_nowait(event)
        except queue.Full:
            self.dropped += 1

    def events(self):
        """
        remove and return all events currently in the queue
        """
        out = []
        while True:
            try:
                out.append(self.queue.get_nowait())
            except queue.Empty:
                return out
