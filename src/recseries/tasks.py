"""Cooperative asynchronous task primitives.

Segment reads can be asynchronous: instead of returning samples, they queue
a work item and later hand an AsyncTaskResult to a callback. The package
never spawns threads; work items run only when the owner of a WorkQueue
drains it with run_next() or run_pending().

Key Types:
----------
- AsyncTaskStatus: terminal status of a long-running operation
- AsyncTaskResult: value-or-exception handed to read callbacks
- CheckInCallback: progress hook; returning True requests cancellation
- WorkQueue: FIFO queue of deferred work items tagged with an owner

Example:
    >>> queue = WorkQueue()
    >>> results = []
    >>> queue.dispatch(lambda: results.append(1))
    >>> queue.run_pending()
    1
    >>> results
    [1]
"""

from collections import deque
from enum import Enum
import logging
from typing import Any, Callable, Deque, Generic, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

__all__ = [
    "AsyncTaskStatus",
    "AsyncTaskResult",
    "CheckInCallback",
    "ReadCallback",
    "WorkQueue",
    "check_in_requests_cancel",
]

T = TypeVar("T")


class AsyncTaskStatus(str, Enum):
    """Status of an asynchronous or long-running operation."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    ERROR = "error"


class AsyncTaskResult(Generic[T]):
    """Outcome of one asynchronous read: either a value or an exception."""

    __slots__ = ("_value", "_exception")

    def __init__(self, value: Optional[T] = None, exception: Optional[BaseException] = None):
        self._value = value
        self._exception = exception

    @classmethod
    def failed(cls, exception: BaseException) -> "AsyncTaskResult[T]":
        return cls(exception=exception)

    @property
    def exception(self) -> Optional[BaseException]:
        return self._exception

    @property
    def ok(self) -> bool:
        return self._exception is None

    def get(self) -> T:
        """Return the value, re-raising the stored exception if there is one."""
        if self._exception is not None:
            raise self._exception
        return self._value

    def __repr__(self) -> str:
        if self._exception is not None:
            return f"AsyncTaskResult(exception={self._exception!r})"
        return f"AsyncTaskResult(value={type(self._value).__name__})"


CheckInCallback = Callable[[float], bool]
ReadCallback = Callable[[AsyncTaskResult], None]


def check_in_requests_cancel(check_in: Optional[CheckInCallback], progress: float) -> bool:
    """Report progress and return True when the caller asked to cancel."""
    if check_in is None:
        return False
    return bool(check_in(min(max(progress, 0.0), 1.0)))


class WorkQueue:
    """Cooperative queue of deferred work items.

    Items are tagged with an owner so that a segment can drop the reads it
    queued but that have not started yet (cancel_pending_reads()).
    """

    def __init__(self) -> None:
        self._items: Deque[Tuple[Any, Callable[[], None]]] = deque()

    @property
    def pending(self) -> int:
        return len(self._items)

    def dispatch(self, fn: Callable[[], None], owner: Any = None) -> None:
        self._items.append((owner, fn))

    def cancel(self, owner: Any) -> int:
        """Drop every queued item of ``owner``; returns how many were dropped."""
        kept = deque(item for item in self._items if item[0] is not owner)
        dropped = len(self._items) - len(kept)
        self._items = kept
        if dropped:
            logger.debug(f"Cancelled {dropped} queued work item(s)")
        return dropped

    def run_next(self, lifo: bool = False) -> bool:
        """Run one item, oldest first (newest first when ``lifo``).

        Returns:
            False when the queue was empty
        """
        if not self._items:
            return False
        _, fn = self._items.pop() if lifo else self._items.popleft()
        fn()
        return True

    def run_pending(self, lifo: bool = False) -> int:
        """Run items until the queue is empty, including items queued meanwhile."""
        count = 0
        while self.run_next(lifo=lifo):
            count += 1
        return count
