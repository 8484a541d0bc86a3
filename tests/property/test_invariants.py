"""Property tests for time base and series invariants.

Each property is checked over many deterministic pseudo-random inputs:
- Valid and recorded counts agree with the per-index predicates
- Storage mapping is dense and order preserving
- Canonical cropped ranges are minimal and cover the same indices
- Series mapping, aggregate counts and fan-out do not depend on order
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import List, Optional

import pytest

from recseries.domain import DataKind, DataType, SpacingInfo
from recseries.series import AsyncFanout, SegmentCollection
from recseries.sync import expected_start_ms, round_half_away
from recseries.tasks import AsyncTaskResult
from recseries.timing import TemporalIndex, Time, canonicalize_ranges
from synthetic.utils import deterministic_rng

pytestmark = pytest.mark.property

SEEDS = range(40)


def random_index(seed: int, start: Optional[Time] = None, step: Optional[Fraction] = None) -> TemporalIndex:
    rng = deterministic_rng(seed, "index")
    n = rng.randint(0, 40)
    dropped = rng.sample(range(n), rng.randint(0, n // 3)) if n else []
    blank = rng.sample(range(n), rng.randint(0, n // 3)) if n else []
    cropped = []
    for _ in range(rng.randint(0, 3) if n else 0):
        first = rng.randrange(n)
        cropped.append((first, rng.randint(first, n - 1)))
    if step is None:
        step = Fraction(1, rng.choice([10, 20, 30, 60]))
    if start is None:
        start = Time(rng.randint(0, 10**6))
    return TemporalIndex(start=start, step=step, num_samples=n, dropped=dropped, cropped=cropped, blank=blank)


@dataclass
class FakeSegment:
    """In-memory series member."""

    file_path: Path
    temporal_index: TemporalIndex
    kind: DataKind = DataKind.MOVIE
    spacing: Optional[SpacingInfo] = None
    data_type: DataType = DataType.U16

    def cancel_pending_reads(self) -> None:
        pass

    def close_for_writing(self) -> None:
        pass


def random_members(seed: int) -> List[FakeSegment]:
    rng = deterministic_rng(seed, "members")
    members = []
    start = Time(1000)
    for k in range(rng.randint(1, 6)):
        ti = random_index(seed * 100 + k, start=start, step=Fraction(1, 20))
        members.append(FakeSegment(file_path=Path(f"seg_{k}.rseg"), temporal_index=ti))
        start = ti.end + rng.randint(0, 5)
    return members


class TestTemporalIndexInvariants:
    """Counts and mappings agree with the per-index predicates."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_Should_MatchPredicates_When_CountingValidSamples(self, seed):
        ti = random_index(seed)
        assert ti.valid_count() == sum(1 for i in range(ti.num_samples) if ti.is_index_valid(i))

    @pytest.mark.parametrize("seed", SEEDS)
    def test_Should_MatchPredicates_When_CountingRecordedSamples(self, seed):
        ti = random_index(seed)
        stored = [i for i in range(ti.num_samples) if not (ti.is_dropped(i) or ti.is_cropped(i))]
        assert ti.recorded_count() == len(stored)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_Should_MapStoredSamplesDensely_When_RecordedIndexUsed(self, seed):
        """Stored samples map onto 0..recorded_count-1 in order."""
        ti = random_index(seed)
        stored = [i for i in range(ti.num_samples) if not (ti.is_dropped(i) or ti.is_cropped(i))]
        assert [ti.recorded_index(i) for i in stored] == list(range(ti.recorded_count()))

    @pytest.mark.parametrize("seed", SEEDS)
    def test_Should_InvertStartTime_When_MappingBack(self, seed):
        ti = random_index(seed)
        for i in range(ti.num_samples):
            assert ti.time_to_index(ti.index_to_start_time(i)) == i
            assert ti.time_to_index(ti.index_to_mid_time(i)) == i

    @pytest.mark.parametrize("seed", SEEDS)
    def test_Should_LandWithinHalfStep_When_TimeIsOffGrid(self, seed):
        """Any instant between the first and last sample start maps back to within half a step."""
        # Arrange
        ti = random_index(seed)
        rng = deterministic_rng(seed, "off-grid")
        span = ti.step * max(ti.num_samples - 1, 0)
        instants = [ti.start + span * Fraction(rng.randint(0, 9973), 9973) for _ in range(50)]

        # Act & Assert
        for t in instants:
            landed = ti.index_to_start_time(ti.time_to_index(t))
            assert abs(landed - t) <= ti.step / 2

    @pytest.mark.parametrize("seed", SEEDS)
    def test_Should_KeepExactEnd_When_StepIsRational(self, seed):
        ti = random_index(seed)
        assert ti.end - ti.start == ti.step * ti.num_samples


class TestCanonicalRanges:
    """Canonical cropped ranges are minimal and cover the same indices."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_Should_PreserveCoveredIndices_When_Canonicalized(self, seed):
        # Arrange
        rng = deterministic_rng(seed, "ranges")
        ranges = []
        for _ in range(rng.randint(0, 8)):
            first = rng.randint(0, 50)
            ranges.append((first, first + rng.randint(0, 6)))

        # Act
        canonical = canonicalize_ranges(ranges)

        # Assert
        covered = {i for first, last in ranges for i in range(first, last + 1)}
        assert {i for r in canonical for i in range(r.first, r.last + 1)} == covered
        for a, b in zip(canonical, canonical[1:]):
            assert a.last + 1 < b.first
        assert canonicalize_ranges(canonical) == canonical


class TestSeriesInvariants:
    """Aggregates of arbitrary member lists."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_Should_SumMemberCounts_When_Aggregated(self, seed):
        members = random_members(seed)

        series = SegmentCollection(members)

        aggregate = series.temporal_index
        assert aggregate.num_samples == sum(m.temporal_index.num_samples for m in members)
        assert aggregate.valid_count() == sum(m.temporal_index.valid_count() for m in members)
        assert aggregate.recorded_count() == sum(m.temporal_index.recorded_count() for m in members)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_Should_LocateEveryIndexOnce_When_Mapping(self, seed):
        """Every global index maps to exactly one (segment, local) pair, in order."""
        members = random_members(seed)
        series = SegmentCollection(members)

        located = [series.locate(g) for g in range(series.temporal_index.num_samples)]

        expected = [(p, i) for p, m in enumerate(members) for i in range(m.temporal_index.num_samples)]
        assert located == expected
        assert series.locate(series.temporal_index.num_samples) == (len(members), 0)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_Should_IgnoreInputOrder_When_Building(self, seed):
        members = random_members(seed)
        shuffled = list(members)
        deterministic_rng(seed, "shuffle").shuffle(shuffled)

        # Zero-sample members share a start with their successor; keep those inputs ordered
        if any(m.temporal_index.num_samples == 0 for m in members):
            shuffled = members

        assert SegmentCollection(shuffled).segments == SegmentCollection(members).segments


class TestFanoutInvariants:
    @pytest.mark.parametrize("seed", SEEDS)
    def test_Should_FinishOnceWithSameBuffer_When_CompletionOrderRandom(self, seed):
        # Arrange
        members = random_members(seed)
        series = SegmentCollection(members)
        buffer = [None] * series.temporal_index.num_samples
        callbacks = []
        finished = []

        def store(values, position, offset):
            buffer[offset : offset + len(values)] = values

        fanout = AsyncFanout(series, lambda segment, cb: callbacks.append((segment, cb)), store, lambda: list(buffer), finished.append)
        fanout.start()

        # Act
        deterministic_rng(seed, "order").shuffle(callbacks)
        for segment, cb in callbacks:
            cb(AsyncTaskResult([segment.file_path.name] * segment.temporal_index.num_samples))

        # Assert
        assert len(finished) == 1
        expected = [m.file_path.name for m in members for _ in range(m.temporal_index.num_samples)]
        assert finished[0].get() == expected


class TestTickArithmetic:
    @pytest.mark.parametrize("seed", SEEDS)
    def test_Should_BeOddSymmetric_When_Rounding(self, seed):
        rng = deterministic_rng(seed, "round")
        value = Fraction(rng.randint(-10**6, 10**6), rng.randint(1, 2000))
        assert round_half_away(-value) == -round_half_away(value)
        assert abs(round_half_away(value) - value) <= Fraction(1, 2)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_Should_ComposeOffsets_When_ChainingDevices(self, seed):
        """Aligning to a reference is independent of where ticks start counting."""
        rng = deterministic_rng(seed, "ticks")
        reference_ms = rng.randint(0, 10**12)
        reference_tick = rng.randint(0, 10**12)
        delta = rng.randint(-(10**9), 10**9)
        shift = rng.randint(0, 10**9)

        assert expected_start_ms(reference_ms, reference_tick, reference_tick + delta) == expected_start_ms(
            reference_ms, reference_tick + shift, reference_tick + shift + delta
        )
