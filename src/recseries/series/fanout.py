"""Fan one asynchronous read out to every segment of a series.

The same read is issued against each segment in start-time order. Every
segment writes its output at an offset precomputed from the sample counts
of the segments before it, so the combined buffer is correct whatever
order the segments complete in.

Completion:
-----------
The finished callback fires exactly once, when the number of pending
segment reads reaches zero. It receives either the combined value or the
first error reported by any segment. Once a segment has failed, outputs
of segments that complete afterwards are not copied.

Lifetime:
---------
The fan-out only keeps a weak reference to the series that issued it. If
the series is destroyed while reads are still in flight, the remaining
callbacks do nothing and the finished callback never fires.
"""

import logging
from typing import Any, Callable, Optional, Sequence
import weakref

from ..tasks import AsyncTaskResult, ReadCallback

logger = logging.getLogger(__name__)

__all__ = ["AsyncFanout"]


class AsyncFanout:
    """One combined asynchronous read over the segments of a series.

    Args:
        owner: The series issuing the read (held weakly)
        issue: ``issue(segment, callback)`` starts the read on one segment
        store: ``store(value, position, offset)`` copies one segment's output
        build: ``build()`` returns the combined value once every read succeeded
        finished: Receives the combined AsyncTaskResult

    ``store`` and ``build`` must not hold strong references to ``owner``.

    Example:
        >>> buffer = np.empty(series.temporal_index.num_samples)
        >>> def store(trace, position, offset):
        ...     buffer[offset:offset + len(trace)] = trace.values
        >>> AsyncFanout(series, issue, store, lambda: buffer, on_done).start()
    """

    def __init__(
        self,
        owner: Any,
        issue: Callable[[Any, ReadCallback], None],
        store: Callable[[Any, int, int], None],
        build: Callable[[], Any],
        finished: ReadCallback,
    ):
        self._owner = weakref.ref(owner)
        self._issue = issue
        self._store = store
        self._build = build
        self._finished = finished
        self._pending = 0
        self._error: Optional[BaseException] = None
        self._done = False

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def done(self) -> bool:
        return self._done

    def start(self) -> None:
        owner = self._owner()
        if owner is None:
            return
        segments: Sequence[Any] = owner.segments
        offsets: Sequence[int] = owner.segment_offsets
        # Count first: reads on a segment without a queue complete inline
        self._pending = len(segments)
        for position, (segment, offset) in enumerate(zip(segments, offsets)):
            self._issue(segment, self._callback_for(position, offset))

    def _callback_for(self, position: int, offset: int) -> ReadCallback:
        def callback(result: AsyncTaskResult) -> None:
            self._segment_done(position, offset, result)

        return callback

    def _segment_done(self, position: int, offset: int, result: AsyncTaskResult) -> None:
        if self._owner() is None:
            logger.debug(f"Series destroyed before segment {position} read completed; ignoring result")
            return

        if result.exception is not None:
            if self._error is None:
                self._error = result.exception
                logger.debug(f"Segment {position} read failed: {result.exception}")
        elif self._error is None:
            try:
                self._store(result.get(), position, offset)
            except Exception as e:
                self._error = e

        self._pending -= 1
        if self._pending > 0:
            return

        self._done = True
        if self._error is not None:
            self._finished(AsyncTaskResult.failed(self._error))
            return
        try:
            value = self._build()
        except Exception as e:
            self._finished(AsyncTaskResult.failed(e))
            return
        self._finished(AsyncTaskResult(value))
