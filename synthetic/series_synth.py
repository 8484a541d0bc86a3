"""Synthetic multi-segment series and paired recordings.

High-level builders on top of `segments_synth`:

- `build_series_files`: N consecutive segments of one kind, separated by
  a fixed gap, ready for `recseries.series.build_series`.
- `build_paired_recording`: one timing reference plus movies recorded on
  other devices sharing the same hardware tick counter, with wall-clock
  start times that disagree with the ticks.

Example:
    from synthetic.series_synth import SeriesSynthOptions, build_series_files
    from recseries.series import build_series

    paths = build_series_files("temp/series", SeriesSynthOptions(samples_per_segment=[3, 4, 5]))
    series = build_series(paths)
    print(series.temporal_index.num_samples)  # 12
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from recseries.domain import DataKind
from recseries.sync import expected_start_ms
from synthetic.segments_synth import DEFAULT_START_MS, SegmentTimingOptions, write_gpio_segment, write_movie_segment, write_segment
from synthetic.utils import numbered_paths

__all__ = [
    "SeriesSynthOptions",
    "build_series_files",
    "PairedRecordingOptions",
    "PairedRecording",
    "build_paired_recording",
]

DEFAULT_RECORDING_UUID = "AC-00111111-l4R4GRt9Ca-1700000000000"


class SeriesSynthOptions(BaseModel):
    """Knobs of a synthetic series.

    Segment k starts at ``start_ms + k * segment_spacing_ms``.
    """

    kind: DataKind = Field(default=DataKind.MOVIE, description="Data kind of every segment")
    samples_per_segment: List[int] = Field(default_factory=lambda: [3, 4, 5], min_length=1, description="Sample count of each segment")
    start_ms: int = Field(default=DEFAULT_START_MS, ge=0, description="Start of the first segment")
    segment_spacing_ms: int = Field(default=60_000, ge=0, description="Distance between segment starts")
    step: str = Field(default="1/20", description="Sample step in seconds")
    knobs: Dict[str, Any] = Field(default_factory=dict, description="Kind-specific writer options")
    pattern: str = Field(default="segment_*.rseg", description="File name pattern")

    model_config = {"frozen": True, "extra": "forbid"}


def build_series_files(out_dir: Union[str, Path], options: Optional[SeriesSynthOptions] = None, **overrides) -> List[Path]:
    """Write the segment files of a synthetic series, in start-time order."""
    opts = options or SeriesSynthOptions()
    if overrides:
        opts = opts.model_copy(update=overrides)

    paths = numbered_paths(Path(out_dir) / opts.pattern, len(opts.samples_per_segment))
    written = []
    for k, (path, count) in enumerate(zip(paths, opts.samples_per_segment)):
        timing = SegmentTimingOptions(start_ms=opts.start_ms + k * opts.segment_spacing_ms, step=opts.step, num_samples=count)
        written.append(write_segment(path, opts.kind, timing, **opts.knobs))
    return written


class PairedRecordingOptions(BaseModel):
    """Knobs of a synthetic paired recording.

    The target movies start ``target_offsets_us[k]`` device ticks after
    the reference, but their stored wall-clock start is
    ``target_start_ms`` for all of them (wrong unless it matches).
    """

    reference_kind: DataKind = Field(default=DataKind.GPIO, description="GPIO, MOVIE or EXTERNAL_MOVIE")
    target_kind: DataKind = Field(default=DataKind.EXTERNAL_MOVIE, description="MOVIE or EXTERNAL_MOVIE")
    reference_start_ms: int = Field(default=DEFAULT_START_MS, ge=0, description="Trusted wall-clock start of the reference")
    first_tsc: int = Field(default=5_000_000_000, ge=0, description="Device tick of the reference's first sample")
    target_offsets_us: List[int] = Field(default_factory=lambda: [500_000], description="Tick offset of each target from the reference")
    target_start_ms: Optional[int] = Field(default=None, ge=0, description="Stored start of every target (default: reference start)")
    target_dropped: List[int] = Field(default_factory=list, description="Dropped frames of every target")
    step: str = Field(default="1/10", description="Sample step in seconds")
    num_samples: int = Field(default=10, ge=1, description="Samples per file")
    recording_uuid: Optional[str] = Field(default=DEFAULT_RECORDING_UUID, description="UUID of the reference")
    target_recording_uuid: Optional[str] = Field(default=None, description="UUID of the targets (default: same as reference)")

    model_config = {"frozen": True, "extra": "forbid"}


@dataclass(frozen=True)
class PairedRecording:
    """Files of a synthetic paired recording.

    Attributes
    ----------
    reference : Path
        Timing reference file.
    targets : List[Path]
        Target movies, in the order of `target_offsets_us`.
    expected_start_ms : List[int]
        Start time each target should have after synchronization.
    """

    reference: Path
    targets: List[Path]
    expected_start_ms: List[int]


def build_paired_recording(out_dir: Union[str, Path], options: Optional[PairedRecordingOptions] = None, **overrides) -> PairedRecording:
    """Write a timing reference and the target movies recorded alongside it."""
    opts = options or PairedRecordingOptions()
    if overrides:
        opts = opts.model_copy(update=overrides)

    out_dir = Path(out_dir)
    reference_timing = SegmentTimingOptions(start_ms=opts.reference_start_ms, step=opts.step, num_samples=opts.num_samples)
    if opts.reference_kind == DataKind.GPIO:
        reference = write_gpio_segment(
            out_dir / "reference_gpio.rseg",
            timing=reference_timing,
            first_tsc=opts.first_tsc,
            recording_uuid=opts.recording_uuid,
        )
    else:
        reference = write_movie_segment(
            out_dir / "reference_movie.rseg",
            timing=reference_timing,
            kind=opts.reference_kind,
            first_tick=opts.first_tsc,
            recording_uuid=opts.recording_uuid,
        )

    target_uuid = opts.target_recording_uuid if opts.target_recording_uuid is not None else opts.recording_uuid
    target_start = opts.target_start_ms if opts.target_start_ms is not None else opts.reference_start_ms
    target_timing = SegmentTimingOptions(start_ms=target_start, step=opts.step, num_samples=opts.num_samples, dropped=opts.target_dropped)

    targets: List[Path] = []
    expected: List[int] = []
    for k, offset in enumerate(opts.target_offsets_us):
        targets.append(
            write_movie_segment(
                out_dir / f"target_{k:02d}.rseg",
                timing=target_timing,
                kind=opts.target_kind,
                first_tick=opts.first_tsc + offset,
                recording_uuid=target_uuid,
            )
        )
        expected.append(expected_start_ms(opts.reference_start_ms, opts.first_tsc, opts.first_tsc + offset))
    return PairedRecording(reference=reference, targets=targets, expected_start_ms=expected)
