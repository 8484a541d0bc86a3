"""Cell set, vessel set and event segments.

Cell and vessel sets hold one dense trace per object (one value per logical
sample, NaN where nothing was measured) plus one image per object and
per-object curation metadata: name, status, colour and an activity flag.
The metadata lives in the JSON header so edits can be persisted in place
by close_for_writing().

Event segments hold sparse, named channels of ``(offset, value)`` pairs;
offsets are microseconds since the segment start.
"""

from fractions import Fraction
import json
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Union

import numpy as np

from ..domain import Color, DataKind, DataType, LogicalTrace, SetStatus, SpacingInfo, Trace
from ..exceptions import DataFormatError
from ..tasks import ReadCallback, WorkQueue
from ..timing import TemporalIndex
from .base import FileSegment, build_header

__all__ = [
    "ObjectSetSegment",
    "CellSetSegment",
    "VesselSetSegment",
    "ChannelStreamSegment",
    "EventsSegment",
    "MICROSECONDS_PER_SECOND",
]

MICROSECONDS_PER_SECOND = 1_000_000


class ObjectSetSegment(FileSegment):
    """Traces and images of a set of segmented objects (cells or vessels)."""

    objects_key: ClassVar[str] = "objects"

    def __init__(self, file_path: Union[str, Path], queue: Optional[WorkQueue] = None):
        super().__init__(file_path, queue)
        objects = self.header.get(self.objects_key)
        if not isinstance(objects, list):
            raise DataFormatError(f"Segment file header has no '{self.objects_key}' list: {file_path}", file_path)
        self._objects: List[Dict[str, Any]] = objects

        expected = (len(objects), self.temporal_index.num_samples)
        if tuple(self._array("traces").shape) != expected:
            raise DataFormatError(f"Trace array has shape {self._array('traces').shape}, expected {expected}: {file_path}", file_path)

    @property
    def num_objects(self) -> int:
        return len(self._objects)

    def _object(self, index: int) -> Dict[str, Any]:
        assert 0 <= index < len(self._objects), f"{self.objects_key} index {index} out of range [0, {len(self._objects)})"
        return self._objects[index]

    # Sample data

    def get_trace(self, index: int) -> Trace:
        self._object(index)
        return Trace(temporal_index=self.temporal_index, values=np.array(self._array("traces")[index], dtype=np.float32))

    def get_trace_async(self, index: int, callback: ReadCallback) -> None:
        self._read_async(lambda: self.get_trace(index), callback)

    def get_image(self, index: int) -> np.ndarray:
        self._object(index)
        return np.array(self._array("images")[index], dtype=np.float32)

    def get_image_async(self, index: int, callback: ReadCallback) -> None:
        self._read_async(lambda: self.get_image(index), callback)

    # Curation metadata

    def get_status(self, index: int) -> SetStatus:
        return SetStatus(self._object(index).get("status", SetStatus.UNDECIDED.value))

    def set_status(self, index: int, status: SetStatus) -> None:
        self._object(index)["status"] = SetStatus(status).value
        self._mark_dirty()

    def get_name(self, index: int) -> str:
        return self._object(index)["name"]

    def set_name(self, index: int, name: str) -> None:
        self._object(index)["name"] = name
        self._mark_dirty()

    def get_color(self, index: int) -> Color:
        return Color.from_list(self._object(index).get("color", [255, 255, 255, 255]))

    def set_color(self, index: int, color: Color) -> None:
        self._object(index)["color"] = color.to_list()
        self._mark_dirty()

    def is_active(self, index: int) -> bool:
        return bool(self._object(index).get("active", True))

    def set_active(self, index: int, active: bool) -> None:
        self._object(index)["active"] = bool(active)
        self._mark_dirty()

    @classmethod
    def _write_objects(
        cls,
        kind: DataKind,
        path: Union[str, Path],
        temporal_index: TemporalIndex,
        spacing: SpacingInfo,
        traces: np.ndarray,
        images: np.ndarray,
        names: Optional[Sequence[str]],
        prefix: str,
        extra_arrays: Optional[Dict[str, np.ndarray]],
        extra_properties: Optional[dict],
        header_reserve: int,
    ) -> Path:
        traces = np.asarray(traces, dtype=np.float32)
        count = traces.shape[0]
        if names is None:
            names = [f"{prefix}{i:02d}" for i in range(count)]
        objects = [{"name": name, "status": SetStatus.UNDECIDED.value, "color": [255, 255, 255, 255], "active": True} for name in names]
        header = build_header(
            kind,
            DataType.F32,
            temporal_index,
            spacing=spacing,
            extra_properties=json.dumps(extra_properties or {}),
            **{cls.objects_key: objects},
        )
        arrays = {"traces": traces, "images": np.asarray(images, dtype=np.float32)}
        arrays.update(extra_arrays or {})
        return cls._write(path, header, arrays, temporal_index, header_reserve)


class CellSetSegment(ObjectSetSegment):
    """Cell traces, images and curation metadata of one segment."""

    data_kinds = frozenset({DataKind.CELL_SET})
    objects_key = "cells"

    @property
    def num_cells(self) -> int:
        return self.num_objects

    @classmethod
    def write(
        cls,
        path: Union[str, Path],
        temporal_index: TemporalIndex,
        spacing: SpacingInfo,
        traces: np.ndarray,
        images: np.ndarray,
        names: Optional[Sequence[str]] = None,
        extra_properties: Optional[dict] = None,
        header_reserve: int = 1024,
    ) -> Path:
        return cls._write_objects(DataKind.CELL_SET, path, temporal_index, spacing, traces, images, names, "C", None, extra_properties, header_reserve)


class VesselSetSegment(ObjectSetSegment):
    """Vessel diameter traces plus flow direction traces."""

    data_kinds = frozenset({DataKind.VESSEL_SET})
    objects_key = "vessels"

    @property
    def num_vessels(self) -> int:
        return self.num_objects

    def get_direction_trace(self, index: int) -> Trace:
        self._object(index)
        return Trace(temporal_index=self.temporal_index, values=np.array(self._array("directions")[index], dtype=np.float32))

    def get_direction_trace_async(self, index: int, callback: ReadCallback) -> None:
        self._read_async(lambda: self.get_direction_trace(index), callback)

    @classmethod
    def write(
        cls,
        path: Union[str, Path],
        temporal_index: TemporalIndex,
        spacing: SpacingInfo,
        traces: np.ndarray,
        images: np.ndarray,
        directions: Optional[np.ndarray] = None,
        names: Optional[Sequence[str]] = None,
        extra_properties: Optional[dict] = None,
        header_reserve: int = 1024,
    ) -> Path:
        if directions is None:
            directions = np.zeros_like(np.asarray(traces, dtype=np.float32))
        extra = {"directions": np.asarray(directions, dtype=np.float32)}
        return cls._write_objects(DataKind.VESSEL_SET, path, temporal_index, spacing, traces, images, names, "V", extra, extra_properties, header_reserve)


class ChannelStreamSegment(FileSegment):
    """Named channels of sparse ``(offset_us, value)`` events."""

    def __init__(self, file_path: Union[str, Path], queue: Optional[WorkQueue] = None):
        super().__init__(file_path, queue)
        channels = self.header.get("channels")
        if not isinstance(channels, list):
            raise DataFormatError(f"Segment file header has no channel list: {file_path}", file_path)
        self._channels: List[str] = [str(c) for c in channels]

    @property
    def channel_names(self) -> List[str]:
        return list(self._channels)

    @property
    def num_channels(self) -> int:
        return len(self._channels)

    def _channel_position(self, name: str) -> int:
        try:
            return self._channels.index(name)
        except ValueError:
            raise DataFormatError(f"No channel named {name!r} in {self.file_path}", self.file_path) from None

    def get_event_offsets(self, name: str) -> np.ndarray:
        """Microsecond offsets from the segment start of every event on a channel."""
        return np.asarray(self._array(f"offsets_{self._channel_position(name)}"), dtype=np.int64)

    def get_logical_data(self, name: str) -> LogicalTrace:
        position = self._channel_position(name)
        offsets = self._array(f"offsets_{position}")
        values = self._array(f"values_{position}")
        start = self.temporal_index.start
        events = tuple((start + Fraction(int(o), MICROSECONDS_PER_SECOND), float(v)) for o, v in zip(offsets, values))
        return LogicalTrace(temporal_index=self.temporal_index, name=name, events=events)

    def get_logical_data_async(self, name: str, callback: ReadCallback) -> None:
        self._read_async(lambda: self.get_logical_data(name), callback)

    @staticmethod
    def _channel_arrays(streams: Dict[str, Any]) -> Dict[str, np.ndarray]:
        arrays: Dict[str, np.ndarray] = {}
        for position, (offsets, values) in enumerate(streams.values()):
            offsets = np.asarray(offsets, dtype=np.int64)
            values = np.asarray(values, dtype=np.float32)
            if offsets.shape != values.shape:
                raise DataFormatError("Channel offsets and values differ in length")
            if offsets.size and np.any(np.diff(offsets) < 0):
                raise DataFormatError("Channel event offsets must be non-decreasing")
            arrays[f"offsets_{position}"] = offsets
            arrays[f"values_{position}"] = values
        return arrays


class EventsSegment(ChannelStreamSegment):
    """Detected events, one stream per channel (typically one per cell)."""

    data_kinds = frozenset({DataKind.EVENTS})

    @classmethod
    def write(
        cls,
        path: Union[str, Path],
        temporal_index: TemporalIndex,
        streams: Dict[str, Any],
        extra_properties: Optional[dict] = None,
        header_reserve: int = 1024,
    ) -> Path:
        """Write an events segment.

        Args:
            path: Output file path
            temporal_index: Time base of the segment
            streams: Channel name -> ``(offsets_us, values)``
            extra_properties: Acquisition metadata
            header_reserve: Spare header capacity
        """
        header = build_header(
            DataKind.EVENTS,
            DataType.F32,
            temporal_index,
            extra_properties=json.dumps(extra_properties or {}),
            channels=list(streams.keys()),
        )
        return cls._write(path, header, cls._channel_arrays(streams), temporal_index, header_reserve)
