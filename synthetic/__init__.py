"""Synthetic data helpers for recseries.

Public API to generate minimal, valid segment files:
- Single segments of every data kind (segments_synth)
- Multi-segment series and paired recordings (series_synth)
- Ready-made scenarios (scenarios/)

These utilities are intended for demos, tests, and quick E2E exercises.
"""

from __future__ import annotations

from .segments_synth import (
    ChannelSynthOptions,
    GpioSynthOptions,
    MovieSynthOptions,
    ObjectSetSynthOptions,
    SegmentTimingOptions,
    build_temporal_index,
    frame_ticks,
    recording_properties,
    write_cell_set_segment,
    write_events_segment,
    write_gpio_segment,
    write_movie_segment,
    write_segment,
    write_vessel_set_segment,
)
from .series_synth import PairedRecording, PairedRecordingOptions, SeriesSynthOptions, build_paired_recording, build_series_files

__all__ = [
    # Segments
    "SegmentTimingOptions",
    "MovieSynthOptions",
    "ObjectSetSynthOptions",
    "ChannelSynthOptions",
    "GpioSynthOptions",
    "build_temporal_index",
    "frame_ticks",
    "recording_properties",
    "write_movie_segment",
    "write_cell_set_segment",
    "write_vessel_set_segment",
    "write_events_segment",
    "write_gpio_segment",
    "write_segment",
    # Series
    "SeriesSynthOptions",
    "build_series_files",
    # Paired recordings
    "PairedRecordingOptions",
    "PairedRecording",
    "build_paired_recording",
]
