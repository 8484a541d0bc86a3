"""Movie segments.

Frames are stored compactly: only samples that are neither dropped nor
cropped occupy storage, so frame ``i`` lives at
``temporal_index.recorded_index(i)``. Blank frames are stored as filler.
Optional per-frame device timestamps (microsecond ticks) follow the same
storage order.
"""

import json
from pathlib import Path
from typing import Optional, Union

import numpy as np

from ..domain import MOVIE_KINDS, DataKind, DataType, SpacingInfo, VideoFrame
from ..exceptions import DataFormatError
from ..tasks import ReadCallback, WorkQueue
from ..timing import TemporalIndex
from .base import FileSegment, build_header

__all__ = ["MovieSegment"]


class MovieSegment(FileSegment):
    """A movie file, either internally clocked or clocked by an external device."""

    data_kinds = MOVIE_KINDS

    def __init__(self, file_path: Union[str, Path], queue: Optional[WorkQueue] = None):
        super().__init__(file_path, queue)
        if self.spacing is None:
            raise DataFormatError(f"Movie file has no spacing info: {file_path}", file_path)

        expected = (self.temporal_index.recorded_count(), self.spacing.num_rows, self.spacing.num_cols)
        frames = self._array("frames")
        if tuple(frames.shape) != expected:
            raise DataFormatError(f"Movie frame array has shape {frames.shape}, expected {expected}: {file_path}", file_path)
        if self.has_frame_timestamps() and self._array("timestamps").shape[0] != expected[0]:
            raise DataFormatError(f"Movie has {self._array('timestamps').shape[0]} frame timestamps, expected {expected[0]}: {file_path}", file_path)

    @property
    def num_frames(self) -> int:
        return self.temporal_index.num_samples

    def get_frame(self, index: int) -> VideoFrame:
        """Read one frame; dropped and cropped frames come back as zeros."""
        ti = self.temporal_index
        assert 0 <= index < ti.num_samples, f"Frame index {index} out of range [0, {ti.num_samples})"
        if ti.is_dropped(index) or ti.is_cropped(index):
            pixels = np.zeros(self.spacing.shape, dtype=self.data_type.numpy_dtype)
        else:
            pixels = np.array(self._array("frames")[ti.recorded_index(index)])
        return VideoFrame(index=index, start=ti.index_to_start_time(index), pixels=pixels)

    def get_frame_async(self, index: int, callback: ReadCallback) -> None:
        self._read_async(lambda: self.get_frame(index), callback)

    def has_frame_timestamps(self) -> bool:
        return "timestamps" in self._file.arrays

    def get_frame_timestamp(self, index: int) -> int:
        """Device tick (microseconds) of a stored frame.

        Raises:
            DataFormatError: If the movie stores no timestamps or the frame is not stored
        """
        if not self.has_frame_timestamps():
            raise DataFormatError(f"Movie has no frame timestamps: {self.file_path}", self.file_path)
        return int(self._array("timestamps")[self.temporal_index.recorded_index(index)])

    @classmethod
    def write(
        cls,
        path: Union[str, Path],
        temporal_index: TemporalIndex,
        spacing: SpacingInfo,
        frames: np.ndarray,
        data_type: DataType = DataType.U16,
        kind: DataKind = DataKind.MOVIE,
        timestamps: Optional[np.ndarray] = None,
        extra_properties: Optional[dict] = None,
        header_reserve: int = 1024,
    ) -> Path:
        """Write a movie segment file.

        Args:
            path: Output file path
            temporal_index: Time base; MOVIE files store its start in whole milliseconds
            spacing: Frame geometry
            frames: Stored frames, shape (recorded_count, rows, cols)
            data_type: Pixel type
            kind: MOVIE or EXTERNAL_MOVIE
            timestamps: Optional device ticks, one per stored frame
            extra_properties: Acquisition metadata (serialized to JSON)
            header_reserve: Spare header capacity

        Returns:
            Path of the written file
        """
        if kind not in MOVIE_KINDS:
            raise DataFormatError(f"Not a movie kind: {kind}")
        header = build_header(
            kind,
            data_type,
            temporal_index,
            spacing=spacing,
            extra_properties=json.dumps(extra_properties or {}),
        )
        arrays = {"frames": np.asarray(frames, dtype=data_type.numpy_dtype)}
        if timestamps is not None:
            arrays["timestamps"] = np.asarray(timestamps, dtype="<u8")
        return cls._write(path, header, arrays, temporal_index, header_reserve)
