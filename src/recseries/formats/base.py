"""Common behaviour of segments backed by a segment file.

A FileSegment decodes the shared header fields (kind, data type, timing,
spacing and the opaque extra-properties string) and provides the plumbing
for asynchronous reads and deferred metadata writes. Kind-specific readers
live in movie.py, traces.py and gpio.py.

Asynchronous reads:
-------------------
A read scheduled with _read_async() runs on the segment's WorkQueue, or
inline when the segment was opened without one. Its callback always
receives an AsyncTaskResult; errors raised by the read are delivered in
the result instead of propagating to whoever drains the queue.
"""

import logging
from pathlib import Path
from typing import Any, Callable, ClassVar, Dict, FrozenSet, Optional, Union

from pydantic import ValidationError

from ..domain import DataKind, DataType, SpacingInfo
from ..exceptions import DataFormatError
from ..tasks import AsyncTaskResult, ReadCallback, WorkQueue
from ..timing import TemporalIndex
from .container import FIXED_OFFSET_KINDS, SegmentFile, write_segment_file
from .headers import rewrite_json_header

logger = logging.getLogger(__name__)

__all__ = ["FileSegment", "build_header"]


def build_header(
    kind: DataKind,
    data_type: DataType,
    temporal_index: TemporalIndex,
    spacing: Optional[SpacingInfo] = None,
    extra_properties: Optional[str] = None,
    **fields: Any,
) -> Dict[str, Any]:
    """JSON header shared by every segment kind, plus kind-specific fields."""
    header: Dict[str, Any] = {
        "kind": kind.value,
        "data_type": data_type.value,
        "timing": temporal_index.to_header(include_start=kind not in FIXED_OFFSET_KINDS),
        "spacing": spacing.model_dump(mode="json") if spacing is not None else None,
        "extra_properties": extra_properties if extra_properties is not None else "{}",
    }
    header.update(fields)
    return header


class FileSegment:
    """One segment file opened for reading (and deferred metadata writes).

    Subclasses set ``data_kinds`` to the kinds they can decode.
    """

    data_kinds: ClassVar[FrozenSet[DataKind]] = frozenset()

    def __init__(self, file_path: Union[str, Path], queue: Optional[WorkQueue] = None):
        self._file = SegmentFile.open(file_path)
        self._queue = queue
        self._dirty = False

        kind = self._file.kind
        if kind not in self.data_kinds:
            raise DataFormatError(f"Expected a {'/'.join(sorted(k.value for k in self.data_kinds))} file but found {kind.value}: {file_path}", file_path)

        header = self._file.header
        start = self._file.start
        if start is None:
            raise DataFormatError(f"Segment file header has no start time: {file_path}", file_path)
        timing = header.get("timing")
        if not isinstance(timing, dict):
            raise DataFormatError(f"Segment file header has no timing section: {file_path}", file_path)

        try:
            self._temporal_index = TemporalIndex.from_header(timing, start=start)
            self._spacing = SpacingInfo(**header["spacing"]) if header.get("spacing") else None
            self._data_type = DataType(header.get("data_type", DataType.F32.value))
        except (ValidationError, ValueError, TypeError) as e:
            raise DataFormatError(f"Malformed segment file header: {file_path} ({e})", file_path) from e
        except DataFormatError as e:
            raise DataFormatError(f"{e.message}: {file_path}", file_path) from e

    # ------------------------------------------------------------------
    # Identity and shape
    # ------------------------------------------------------------------

    @property
    def file_path(self) -> Path:
        return self._file.path

    @property
    def kind(self) -> DataKind:
        return self._file.kind

    @property
    def temporal_index(self) -> TemporalIndex:
        return self._temporal_index

    @property
    def spacing(self) -> Optional[SpacingInfo]:
        return self._spacing

    @property
    def data_type(self) -> DataType:
        return self._data_type

    @property
    def header(self) -> Dict[str, Any]:
        return self._file.header

    def _array(self, name: str):
        try:
            return self._file.arrays[name]
        except KeyError:
            raise DataFormatError(f"Segment file has no '{name}' array: {self.file_path}", self.file_path) from None

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def get_extra_properties(self) -> str:
        """Opaque JSON string of acquisition metadata."""
        return self._file.header.get("extra_properties", "{}")

    def set_extra_properties(self, properties: str) -> None:
        self._file.header["extra_properties"] = properties
        self._mark_dirty()

    def _mark_dirty(self) -> None:
        self._dirty = True

    def close_for_writing(self) -> None:
        """Persist metadata edits made since the segment was opened."""
        if not self._dirty:
            return
        rewrite_json_header(self.file_path, self._file.header)
        self._dirty = False
        logger.debug(f"Persisted metadata edits of {self.file_path.name}")

    # ------------------------------------------------------------------
    # Asynchronous reads
    # ------------------------------------------------------------------

    def _read_async(self, read: Callable[[], Any], callback: ReadCallback) -> None:
        def run() -> None:
            try:
                result = AsyncTaskResult(read())
            except Exception as e:
                result = AsyncTaskResult.failed(e)
            callback(result)

        if self._queue is None:
            run()
        else:
            self._queue.dispatch(run, owner=self)

    def cancel_pending_reads(self) -> None:
        """Drop queued reads of this segment that have not started yet."""
        if self._queue is not None:
            self._queue.cancel(self)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    @staticmethod
    def _write(path: Union[str, Path], header: Dict[str, Any], arrays: Dict[str, Any], temporal_index: TemporalIndex, header_reserve: int) -> Path:
        return write_segment_file(path, header, arrays, start=temporal_index.start, header_reserve=header_reserve)

    def __repr__(self) -> str:
        ti = self._temporal_index
        return f"{type(self).__name__}({self.file_path.name!r}, start={ti.start!r}, step={ti.step}, num_samples={ti.num_samples})"
