"""Synthetic segment file generation.

Writes small, deterministic segment files of every data kind, readable by
`recseries.formats.read_segment`. Sample values encode their own position
so that tests can check where a series read its data from:

- movie frame for logical index i: every pixel equals i + 1
- trace of object c at sample i: 1000 * c + i
- movie frame timestamps: first_tick + round(step_us * i)

Example:
    from synthetic.segments_synth import SegmentTimingOptions, MovieSynthOptions, write_movie_segment

    timing = SegmentTimingOptions(start_ms=1_700_000_000_000, step="1/20", num_samples=3)
    path = write_movie_segment("temp/movie_0001.rseg", MovieSynthOptions(timing=timing, first_tick=5_000_000))
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, Field, field_validator

from recseries.domain import MOVIE_KINDS, DataKind, SpacingInfo
from recseries.formats import CellSetSegment, EventsSegment, GpioSegment, MovieSegment, VesselSetSegment
from recseries.sync import TICKS_PER_SECOND, round_half_away
from recseries.timing import TemporalIndex, Time, as_fraction
from synthetic.utils import deterministic_numpy_rng, ensure_parent_dir

__all__ = [
    "SegmentTimingOptions",
    "MovieSynthOptions",
    "ObjectSetSynthOptions",
    "ChannelSynthOptions",
    "GpioSynthOptions",
    "build_temporal_index",
    "recording_properties",
    "frame_ticks",
    "write_movie_segment",
    "write_cell_set_segment",
    "write_vessel_set_segment",
    "write_events_segment",
    "write_gpio_segment",
    "write_segment",
]

DEFAULT_START_MS = 1_700_000_000_000


class SegmentTimingOptions(BaseModel):
    """Time base of one synthetic segment."""

    start_ms: int = Field(default=DEFAULT_START_MS, ge=0, description="Wall-clock start in ms since epoch")
    utc_offset: int = Field(default=0, description="UTC offset of the start time in seconds")
    step: str = Field(default="1/20", description="Sample step in seconds, as an exact fraction string")
    num_samples: int = Field(default=10, ge=0, description="Number of samples")
    dropped: List[int] = Field(default_factory=list, description="Dropped sample indices")
    cropped: List[Tuple[int, int]] = Field(default_factory=list, description="Cropped inclusive index ranges")
    blank: List[int] = Field(default_factory=list, description="Blank sample indices")

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("step")
    @classmethod
    def validate_step(cls, v: str) -> str:
        """Ensure step parses as a positive fraction."""
        if as_fraction(v) <= 0:
            raise ValueError("step must be positive")
        return v


class MovieSynthOptions(BaseModel):
    """Knobs of a synthetic movie segment."""

    timing: SegmentTimingOptions = Field(default_factory=SegmentTimingOptions)
    kind: DataKind = Field(default=DataKind.MOVIE, description="MOVIE or EXTERNAL_MOVIE")
    num_rows: int = Field(default=3, ge=1, description="Frame height")
    num_cols: int = Field(default=4, ge=1, description="Frame width")
    first_tick: Optional[int] = Field(default=None, ge=0, description="Device tick of frame 0; no timestamps if None")
    tick_jitter_us: int = Field(default=0, ge=0, description="Uniform jitter (±) added to frame ticks")
    recording_uuid: Optional[str] = Field(default=None, description="Recording UUID stored in extra properties")
    seed: int = Field(default=12345, description="Base RNG seed")

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v: DataKind) -> DataKind:
        """Ensure the kind is a movie kind."""
        if v not in MOVIE_KINDS:
            raise ValueError(f"Not a movie kind: {v}")
        return v


class ObjectSetSynthOptions(BaseModel):
    """Knobs of a synthetic cell or vessel set segment."""

    timing: SegmentTimingOptions = Field(default_factory=SegmentTimingOptions)
    num_objects: int = Field(default=2, ge=0, description="Number of cells or vessels")
    num_rows: int = Field(default=3, ge=1, description="Image height")
    num_cols: int = Field(default=4, ge=1, description="Image width")
    seed: int = Field(default=12345, description="Base RNG seed")

    model_config = {"frozen": True, "extra": "forbid"}


class ChannelSynthOptions(BaseModel):
    """Knobs of a synthetic events segment."""

    timing: SegmentTimingOptions = Field(default_factory=SegmentTimingOptions)
    channels: List[str] = Field(default_factory=lambda: ["C00", "C01"], description="Channel names")
    events_per_channel: int = Field(default=3, ge=0, description="Events written on each channel")

    model_config = {"frozen": True, "extra": "forbid"}


class GpioSynthOptions(ChannelSynthOptions):
    """Knobs of a synthetic GPIO segment."""

    channels: List[str] = Field(default_factory=lambda: ["GPIO-1", "GPIO-2"], description="Digital channel names")
    analog: bool = Field(default=False, description="Write one dense analog trace instead of digital channels")
    first_tsc: Optional[int] = Field(default=None, ge=0, description="Device tick of the first sample (firstTsc)")
    recording_uuid: Optional[str] = Field(default=None, description="Recording UUID stored in extra properties")


# =============================================================================
# Helpers
# =============================================================================


def build_temporal_index(timing: SegmentTimingOptions) -> TemporalIndex:
    return TemporalIndex(
        start=Time.from_milliseconds(timing.start_ms, timing.utc_offset),
        step=as_fraction(timing.step),
        num_samples=timing.num_samples,
        dropped=timing.dropped,
        cropped=timing.cropped,
        blank=timing.blank,
    )


def recording_properties(recording_uuid: Optional[str]) -> Dict[str, object]:
    """Extra properties pairing a file with a recording."""
    if recording_uuid is None:
        return {}
    return {"processingInterface": {"recordingUUID": recording_uuid}}


def _stored_indices(ti: TemporalIndex) -> List[int]:
    return [i for i in range(ti.num_samples) if not (ti.is_dropped(i) or ti.is_cropped(i))]


def frame_ticks(ti: TemporalIndex, first_tick: int, jitter_us: int = 0, seed: int = 0) -> np.ndarray:
    """Device ticks of every stored frame of a movie."""
    step_us = ti.step * TICKS_PER_SECOND
    ticks = [first_tick + round_half_away(step_us * i) for i in _stored_indices(ti)]
    if jitter_us:
        rng = deterministic_numpy_rng(seed, "ticks", first_tick)
        ticks = [t + int(j) for t, j in zip(ticks, rng.integers(-jitter_us, jitter_us + 1, size=len(ticks)))]
    return np.asarray(ticks, dtype=np.uint64)


def _object_traces(num_objects: int, num_samples: int) -> np.ndarray:
    samples = np.arange(num_samples, dtype=np.float32)
    return np.stack([1000.0 * c + samples for c in range(num_objects)]) if num_objects else np.zeros((0, num_samples), dtype=np.float32)


def _object_images(num_objects: int, spacing: SpacingInfo, seed: int) -> np.ndarray:
    rng = deterministic_numpy_rng(seed, "images")
    return rng.random((num_objects,) + spacing.shape, dtype=np.float32)


def _channel_streams(ti: TemporalIndex, channels: List[str], events_per_channel: int) -> Dict[str, Tuple[List[int], List[float]]]:
    duration_us = ti.duration * TICKS_PER_SECOND
    streams = {}
    for position, name in enumerate(channels):
        offsets = [round_half_away(duration_us * (k + 1) / (events_per_channel + 1)) for k in range(events_per_channel)]
        values = [float(position + 1)] * events_per_channel
        streams[name] = (offsets, values)
    return streams


# =============================================================================
# Writers
# =============================================================================


def write_movie_segment(path: Union[str, Path], options: Optional[MovieSynthOptions] = None, **overrides) -> Path:
    """Write a synthetic movie segment; frame i is filled with i + 1."""
    opts = options or MovieSynthOptions()
    if overrides:
        opts = opts.model_copy(update=overrides)

    ti = build_temporal_index(opts.timing)
    spacing = SpacingInfo(num_rows=opts.num_rows, num_cols=opts.num_cols)
    stored = _stored_indices(ti)
    frames = np.stack([np.full(spacing.shape, i + 1, dtype=np.uint16) for i in stored]) if stored else np.zeros((0,) + spacing.shape, dtype=np.uint16)
    timestamps = None
    if opts.first_tick is not None:
        timestamps = frame_ticks(ti, opts.first_tick, opts.tick_jitter_us, opts.seed)

    return MovieSegment.write(
        ensure_parent_dir(path),
        ti,
        spacing,
        frames,
        kind=opts.kind,
        timestamps=timestamps,
        extra_properties=recording_properties(opts.recording_uuid),
    )


def write_cell_set_segment(path: Union[str, Path], options: Optional[ObjectSetSynthOptions] = None, **overrides) -> Path:
    opts = options or ObjectSetSynthOptions()
    if overrides:
        opts = opts.model_copy(update=overrides)
    ti = build_temporal_index(opts.timing)
    spacing = SpacingInfo(num_rows=opts.num_rows, num_cols=opts.num_cols)
    return CellSetSegment.write(
        ensure_parent_dir(path),
        ti,
        spacing,
        _object_traces(opts.num_objects, ti.num_samples),
        _object_images(opts.num_objects, spacing, opts.seed),
    )


def write_vessel_set_segment(path: Union[str, Path], options: Optional[ObjectSetSynthOptions] = None, **overrides) -> Path:
    """Write a synthetic vessel set; directions are the negated diameters."""
    opts = options or ObjectSetSynthOptions()
    if overrides:
        opts = opts.model_copy(update=overrides)
    ti = build_temporal_index(opts.timing)
    spacing = SpacingInfo(num_rows=opts.num_rows, num_cols=opts.num_cols)
    traces = _object_traces(opts.num_objects, ti.num_samples)
    return VesselSetSegment.write(
        ensure_parent_dir(path),
        ti,
        spacing,
        traces,
        _object_images(opts.num_objects, spacing, opts.seed),
        directions=-traces,
    )


def write_events_segment(path: Union[str, Path], options: Optional[ChannelSynthOptions] = None, **overrides) -> Path:
    """Write a synthetic events segment with evenly spaced events."""
    opts = options or ChannelSynthOptions()
    if overrides:
        opts = opts.model_copy(update=overrides)
    ti = build_temporal_index(opts.timing)
    return EventsSegment.write(ensure_parent_dir(path), ti, _channel_streams(ti, opts.channels, opts.events_per_channel))


def write_gpio_segment(path: Union[str, Path], options: Optional[GpioSynthOptions] = None, **overrides) -> Path:
    """Write a synthetic GPIO segment, digital or analog."""
    opts = options or GpioSynthOptions()
    if overrides:
        opts = opts.model_copy(update=overrides)
    ti = build_temporal_index(opts.timing)
    properties = recording_properties(opts.recording_uuid)
    if opts.analog:
        return GpioSegment.write(
            ensure_parent_dir(path),
            ti,
            analog=np.arange(ti.num_samples, dtype=np.float32),
            first_tsc=opts.first_tsc,
            extra_properties=properties,
        )
    return GpioSegment.write(
        ensure_parent_dir(path),
        ti,
        streams=_channel_streams(ti, opts.channels, opts.events_per_channel),
        first_tsc=opts.first_tsc,
        extra_properties=properties,
    )


def write_segment(path: Union[str, Path], kind: DataKind, timing: SegmentTimingOptions, **knobs) -> Path:
    """Write a synthetic segment of any kind with its default knobs."""
    if kind in MOVIE_KINDS:
        return write_movie_segment(path, MovieSynthOptions(timing=timing, kind=kind, **knobs))
    if kind == DataKind.CELL_SET:
        return write_cell_set_segment(path, ObjectSetSynthOptions(timing=timing, **knobs))
    if kind == DataKind.VESSEL_SET:
        return write_vessel_set_segment(path, ObjectSetSynthOptions(timing=timing, **knobs))
    if kind == DataKind.EVENTS:
        return write_events_segment(path, ChannelSynthOptions(timing=timing, **knobs))
    if kind == DataKind.GPIO:
        return write_gpio_segment(path, GpioSynthOptions(timing=timing, **knobs))
    raise ValueError(f"Cannot synthesize segments of kind {kind}")
