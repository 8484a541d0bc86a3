"""Pytest configuration and shared fixtures for recseries tests.

Provides:
- Reference instants and time bases
- Synthetic segment files and series (see the top-level synthetic package)
- Paired recordings for start-time synchronization
- Settings TOML files
"""

from fractions import Fraction
from pathlib import Path
from typing import List

import pytest

from recseries.domain import DataKind
from recseries.timing import TemporalIndex, Time
from synthetic import PairedRecording, PairedRecordingOptions, build_paired_recording
from synthetic.scenarios import overlapping_segments, three_segments
from synthetic.segments_synth import DEFAULT_START_MS

# ============================================================================
# Time Bases
# ============================================================================


@pytest.fixture
def t0() -> Time:
    """Start of the first synthetic segment."""
    return Time.from_milliseconds(DEFAULT_START_MS)


@pytest.fixture
def ten_samples(t0: Time) -> TemporalIndex:
    """Ten samples at 20 Hz without exclusions."""
    return TemporalIndex(start=t0, step=Fraction(1, 20), num_samples=10)


# ============================================================================
# Synthetic Series
# ============================================================================


@pytest.fixture
def movie_paths(tmp_path: Path) -> List[Path]:
    """Three movie segments of 3, 4 and 5 frames starting 60 s apart."""
    return three_segments.make_series(tmp_path / "movie")


@pytest.fixture
def cell_set_paths(tmp_path: Path) -> List[Path]:
    """Three cell set segments with 2 cells each."""
    return three_segments.make_series(tmp_path / "cells", kind=DataKind.CELL_SET, num_objects=2)


@pytest.fixture
def vessel_set_paths(tmp_path: Path) -> List[Path]:
    return three_segments.make_series(tmp_path / "vessels", kind=DataKind.VESSEL_SET, num_objects=2)


@pytest.fixture
def events_paths(tmp_path: Path) -> List[Path]:
    return three_segments.make_series(tmp_path / "events", kind=DataKind.EVENTS)


@pytest.fixture
def gpio_paths(tmp_path: Path) -> List[Path]:
    return three_segments.make_series(tmp_path / "gpio", kind=DataKind.GPIO)


@pytest.fixture
def overlapping_paths(tmp_path: Path) -> List[Path]:
    return overlapping_segments.make_series(tmp_path / "overlap")


# ============================================================================
# Paired Recordings
# ============================================================================


@pytest.fixture
def paired(tmp_path: Path) -> PairedRecording:
    """GPIO reference and one external movie starting 500 ms later in device ticks."""
    return build_paired_recording(tmp_path / "paired", PairedRecordingOptions(target_offsets_us=[500_000]))


@pytest.fixture
def paired_fixed_offset(tmp_path: Path) -> PairedRecording:
    """GPIO reference and one MOVIE target, whose start lives in the binary prefix."""
    return build_paired_recording(tmp_path / "paired_movie", PairedRecordingOptions(target_kind=DataKind.MOVIE, target_offsets_us=[500_000]))


# ============================================================================
# Settings
# ============================================================================


@pytest.fixture
def settings_toml(tmp_path: Path) -> Path:
    """Settings file overriding a few defaults."""
    path = tmp_path / "recseries.toml"
    path.write_text(
        "[logging]\n"
        'level = "debug"\n'
        "\n"
        "[export]\n"
        'time_format = "first"\n'
    )
    return path
