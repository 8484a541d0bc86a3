"""Series types, one per kind of segment.

Composition rules:
------------------
- Frame reads go to the segment holding the requested global index.
- Trace reads are concatenated: one buffer sized to the aggregate sample
  count, each segment's output copied at its precomputed offset.
- Logical (event) reads are merged in segment order.
- Representative values such as cell images come from the first segment.
- Curation setters (status, name, colour) are broadcast to every segment.
- Activity is per segment; a single flag is broadcast to every segment.
"""

from typing import Callable, ClassVar, List, Sequence

import numpy as np

from ..domain import MOVIE_KINDS, Color, DataKind, LogicalTrace, SetStatus, Trace, VideoFrame
from ..exceptions import UserInputError
from ..formats import CellSetSegment, EventsSegment, GpioSegment, MovieSegment, VesselSetSegment
from ..tasks import AsyncTaskResult, ReadCallback
from . import checks
from .collection import S, SegmentCollection
from .fanout import AsyncFanout

__all__ = [
    "concatenate_traces",
    "concatenate_traces_async",
    "merge_logical",
    "merge_logical_async",
    "MovieSeries",
    "ObjectSetSeries",
    "CellSetSeries",
    "VesselSetSeries",
    "ChannelSeries",
    "EventsSeries",
    "GpioSeries",
]


# ============================================================================
# Concatenation helpers
# ============================================================================


def concatenate_traces(series: SegmentCollection, read: Callable) -> Trace:
    aggregate = series.temporal_index
    buffer = np.full(aggregate.num_samples, np.nan, dtype=np.float32)
    for segment, offset in zip(series.segments, series.segment_offsets):
        values = read(segment).values
        buffer[offset : offset + values.shape[0]] = values
    return Trace(temporal_index=aggregate, values=buffer)


def concatenate_traces_async(series: SegmentCollection, issue: Callable, callback: ReadCallback) -> AsyncFanout:
    aggregate = series.temporal_index
    buffer = np.full(aggregate.num_samples, np.nan, dtype=np.float32)

    def store(trace: Trace, position: int, offset: int) -> None:
        buffer[offset : offset + len(trace)] = trace.values

    fanout = AsyncFanout(series, issue, store, lambda: Trace(temporal_index=aggregate, values=buffer), callback)
    fanout.start()
    return fanout


def merge_logical(series: SegmentCollection, name: str) -> LogicalTrace:
    events = []
    for segment in series.segments:
        events.extend(segment.get_logical_data(name).events)
    return LogicalTrace(temporal_index=series.temporal_index, name=name, events=tuple(events))


def merge_logical_async(series: SegmentCollection, name: str, callback: ReadCallback) -> AsyncFanout:
    aggregate = series.temporal_index
    slots: List[tuple] = [()] * len(series)

    def store(trace: LogicalTrace, position: int, offset: int) -> None:
        slots[position] = trace.events

    def build() -> LogicalTrace:
        return LogicalTrace(temporal_index=aggregate, name=name, events=tuple(e for events in slots for e in events))

    fanout = AsyncFanout(series, lambda segment, cb: segment.get_logical_data_async(name, cb), store, build, callback)
    fanout.start()
    return fanout


# ============================================================================
# Movies
# ============================================================================


class MovieSeries(SegmentCollection[MovieSegment]):
    """Movie segments played back as one movie."""

    series_type = "MovieSeries"
    data_kinds = MOVIE_KINDS

    @property
    def num_frames(self) -> int:
        return self.temporal_index.num_samples

    def get_frame(self, index: int) -> VideoFrame:
        segment, local = self._located(index)
        frame = segment.get_frame(local)
        return VideoFrame(index=index, start=frame.start, pixels=frame.pixels)

    def get_frame_async(self, index: int, callback: ReadCallback) -> None:
        segment, local = self._located(index)

        def relabel(result: AsyncTaskResult) -> None:
            if result.ok:
                frame = result.get()
                result = AsyncTaskResult(VideoFrame(index=index, start=frame.start, pixels=frame.pixels))
            callback(result)

        segment.get_frame_async(local, relabel)

    def has_frame_timestamps(self) -> bool:
        self._require_valid()
        return all(s.has_frame_timestamps() for s in self.segments)

    def get_frame_timestamp(self, index: int) -> int:
        segment, local = self._located(index)
        return segment.get_frame_timestamp(local)


# ============================================================================
# Cell and vessel sets
# ============================================================================


class ObjectSetSeries(SegmentCollection[S]):
    """Shared behaviour of cell and vessel set series."""

    noun: ClassVar[str] = "objects"

    def _check_member(self, reference: S, previous: S, member: S) -> None:
        super()._check_member(reference, previous, member)
        checks.check_count(reference, member, lambda s: s.num_objects, self.noun)

    @property
    def num_objects(self) -> int:
        return self._first_segment().num_objects

    def get_trace(self, index: int) -> Trace:
        return concatenate_traces(self, lambda s: s.get_trace(index))

    def get_trace_async(self, index: int, callback: ReadCallback) -> AsyncFanout:
        return concatenate_traces_async(self, lambda s, cb: s.get_trace_async(index, cb), callback)

    def get_image(self, index: int) -> np.ndarray:
        return self._first_segment().get_image(index)

    def get_image_async(self, index: int, callback: ReadCallback) -> None:
        self._first_segment().get_image_async(index, callback)

    def get_status(self, index: int) -> SetStatus:
        return self._first_segment().get_status(index)

    def set_status(self, index: int, status: SetStatus) -> None:
        self._require_valid()
        for segment in self.segments:
            segment.set_status(index, status)

    def get_name(self, index: int) -> str:
        return self._first_segment().get_name(index)

    def set_name(self, index: int, name: str) -> None:
        self._require_valid()
        for segment in self.segments:
            segment.set_name(index, name)

    def get_color(self, index: int) -> Color:
        return self._first_segment().get_color(index)

    def set_color(self, index: int, color: Color) -> None:
        self._require_valid()
        for segment in self.segments:
            segment.set_color(index, color)

    def get_activity(self, index: int) -> List[bool]:
        """One activity flag per segment."""
        self._require_valid()
        return [segment.is_active(index) for segment in self.segments]

    def set_active(self, index: int, flags: Sequence[bool]) -> None:
        """Set activity per segment; a single flag applies to every segment.

        Raises:
            UserInputError: If the number of flags is neither 1 nor the number of segments
        """
        self._require_valid()
        flags = list(flags)
        if len(flags) == 1:
            flags = flags * len(self.segments)
        if len(flags) != len(self.segments):
            raise UserInputError(f"Expected 1 or {len(self.segments)} activity flags, got {len(flags)}")
        for segment, flag in zip(self.segments, flags):
            segment.set_active(index, flag)


class CellSetSeries(ObjectSetSeries[CellSetSegment]):
    series_type = "CellSetSeries"
    data_kinds = frozenset({DataKind.CELL_SET})
    noun = "cells"

    @property
    def num_cells(self) -> int:
        return self.num_objects

    get_cell_status = ObjectSetSeries.get_status
    set_cell_status = ObjectSetSeries.set_status
    get_cell_name = ObjectSetSeries.get_name
    set_cell_name = ObjectSetSeries.set_name
    get_cell_color = ObjectSetSeries.get_color
    set_cell_color = ObjectSetSeries.set_color
    get_cell_activity = ObjectSetSeries.get_activity
    set_cell_active = ObjectSetSeries.set_active


class VesselSetSeries(ObjectSetSeries[VesselSetSegment]):
    series_type = "VesselSetSeries"
    data_kinds = frozenset({DataKind.VESSEL_SET})
    noun = "vessels"

    @property
    def num_vessels(self) -> int:
        return self.num_objects

    get_vessel_status = ObjectSetSeries.get_status
    set_vessel_status = ObjectSetSeries.set_status
    get_vessel_name = ObjectSetSeries.get_name
    set_vessel_name = ObjectSetSeries.set_name
    get_vessel_color = ObjectSetSeries.get_color
    set_vessel_color = ObjectSetSeries.set_color
    get_vessel_activity = ObjectSetSeries.get_activity
    set_vessel_active = ObjectSetSeries.set_active

    def get_direction_trace(self, index: int) -> Trace:
        return concatenate_traces(self, lambda s: s.get_direction_trace(index))

    def get_direction_trace_async(self, index: int, callback: ReadCallback) -> AsyncFanout:
        return concatenate_traces_async(self, lambda s, cb: s.get_direction_trace_async(index, cb), callback)


# ============================================================================
# Events and GPIO
# ============================================================================


class ChannelSeries(SegmentCollection[S]):
    """Shared behaviour of series made of named event channels."""

    def _check_member(self, reference: S, previous: S, member: S) -> None:
        super()._check_member(reference, previous, member)
        self._check_channels(reference, member)

    def _check_channels(self, reference: S, member: S) -> None:
        checks.check_count(reference, member, lambda s: s.num_channels, "channels")

    @property
    def channel_names(self) -> List[str]:
        return self._first_segment().channel_names

    @property
    def num_channels(self) -> int:
        return self._first_segment().num_channels

    def get_logical_data(self, name: str) -> LogicalTrace:
        return merge_logical(self, name)

    def get_logical_data_async(self, name: str, callback: ReadCallback) -> AsyncFanout:
        return merge_logical_async(self, name, callback)


class EventsSeries(ChannelSeries[EventsSegment]):
    series_type = "EventsSeries"
    data_kinds = frozenset({DataKind.EVENTS})


class GpioSeries(ChannelSeries[GpioSegment]):
    series_type = "GpioSeries"
    data_kinds = frozenset({DataKind.GPIO})

    def _check_channels(self, reference: GpioSegment, member: GpioSegment) -> None:
        checks.check_same(reference, member, lambda s: s.is_analog, "analog/digital data")
        super()._check_channels(reference, member)
        checks.check_same(reference, member, lambda s: s.channel_names, "channel names")

    @property
    def is_analog(self) -> bool:
        return self._first_segment().is_analog

    def get_analog_data(self) -> Trace:
        return concatenate_traces(self, lambda s: s.get_analog_data())

    def get_analog_data_async(self, callback: ReadCallback) -> AsyncFanout:
        return concatenate_traces_async(self, lambda s, cb: s.get_analog_data_async(cb), callback)
