"""Unit tests for wall-clock instants and inclusive index ranges.

Tests exact duration coercion, Time arithmetic and ordering, and the
canonical form of cropped ranges.
"""

from fractions import Fraction

import pytest

from recseries.exceptions import DataFormatError
from recseries.timing import IndexRange, Time, as_fraction, canonicalize_ranges, coerce_range

pytestmark = pytest.mark.unit


class TestAsFraction:
    """Test exact coercion of duration-like values."""

    def test_Should_ReadFloatThroughDecimalRepr_When_FloatGiven(self):
        """0.05 should become exactly 1/20, not the binary approximation."""
        # Arrange & Act
        step = as_fraction(0.05)

        # Assert
        assert step == Fraction(1, 20)

    @pytest.mark.parametrize(
        "value,expected",
        [
            (Fraction(1, 30), Fraction(1, 30)),
            (2, Fraction(2)),
            ((1, 20), Fraction(1, 20)),
            ([3, 100], Fraction(3, 100)),
            ("1/20", Fraction(1, 20)),
            (" 0.1 ", Fraction(1, 10)),
        ],
    )
    def test_Should_ReturnExactFraction_When_DurationLikeGiven(self, value, expected):
        """Supported duration forms should all be exact."""
        assert as_fraction(value) == expected

    def test_Should_RejectBoolean_When_BoolGiven(self):
        """Booleans are ints in Python but never durations."""
        with pytest.raises(TypeError):
            as_fraction(True)


class TestTime:
    """Test the absolute time value type."""

    def test_Should_RoundTripMilliseconds_When_BuiltFromMilliseconds(self):
        """from_milliseconds() and to_milliseconds() should be inverse for whole ms."""
        # Arrange
        t = Time.from_milliseconds(1_700_000_000_123, utc_offset=-18000)

        # Act & Assert
        assert t.to_milliseconds() == 1_700_000_000_123
        assert t.utc_offset == -18000
        assert t.secs_since_epoch == Fraction(1_700_000_000_123, 1000)

    def test_Should_FloorMilliseconds_When_SubMillisecondTime(self):
        """to_milliseconds() should floor, also for negative instants."""
        assert Time(Fraction(12345, 10000)).to_milliseconds() == 1234
        assert Time(Fraction(-1, 10000)).to_milliseconds() == -1

    def test_Should_StayExact_When_AddingManySteps(self):
        """Adding 1/30 s thirty times should land exactly one second later."""
        # Arrange
        t = Time(0)

        # Act
        for _ in range(30):
            t = t + Fraction(1, 30)

        # Assert
        assert t == Time(1)

    def test_Should_ReturnFraction_When_SubtractingTimes(self):
        """The difference of two instants is an exact duration."""
        # Arrange
        a = Time.from_milliseconds(1500)
        b = Time.from_milliseconds(1000)

        # Act & Assert
        assert a - b == Fraction(1, 2)
        assert (a - Fraction(1, 2)) == b

    def test_Should_IgnoreUtcOffset_When_ComparingAndHashing(self):
        """Equality, ordering and hashing only consider the instant."""
        # Arrange
        a = Time(10, utc_offset=3600)
        b = Time(10, utc_offset=0)

        # Act & Assert
        assert a == b
        assert hash(a) == hash(b)
        assert Time(9) < a <= b
        assert sorted([Time(3), Time(1), Time(2)]) == [Time(1), Time(2), Time(3)]

    def test_Should_KeepUtcOffset_When_AddingDuration(self):
        """Arithmetic should carry the UTC offset along."""
        assert (Time(0, utc_offset=7200) + 5).utc_offset == 7200

    def test_Should_RoundTripHeaderForm_When_Serialized(self):
        """to_header()/from_header() should preserve the exact instant and offset."""
        # Arrange
        t = Time(Fraction(1, 3), utc_offset=60)

        # Act
        restored = Time.from_header(t.to_header())

        # Assert
        assert restored == t
        assert restored.utc_offset == 60


class TestIndexRange:
    """Test inclusive index ranges."""

    def test_Should_RaiseDataFormatError_When_FirstAfterLast(self):
        """A malformed range should be a data-format error."""
        with pytest.raises(DataFormatError, match="Malformed index range"):
            IndexRange(first=5, last=2)

    def test_Should_RaiseDataFormatError_When_NegativeFirst(self):
        with pytest.raises(DataFormatError):
            IndexRange(first=-1, last=2)

    def test_Should_CountMembers_When_RangeQueried(self):
        """size, contains() and count_before() should follow inclusive bounds."""
        # Arrange
        r = IndexRange(first=2, last=4)

        # Act & Assert
        assert r.size == 3
        assert r.contains(2) and r.contains(4) and not r.contains(5)
        assert r.count_before(2) == 0
        assert r.count_before(4) == 2
        assert r.count_before(100) == 3

    @pytest.mark.parametrize("text,first,last", [("7", 7, 7), ("2-4", 2, 4), ("2 - 4", 2, 4)])
    def test_Should_ParseStringForm_When_Valid(self, text, first, last):
        assert IndexRange.parse(text) == IndexRange(first=first, last=last)

    @pytest.mark.parametrize("text", ["", "a-b", "1-2-3"])
    def test_Should_RaiseDataFormatError_When_StringMalformed(self, text):
        with pytest.raises(DataFormatError):
            IndexRange.parse(text)

    def test_Should_RenderStringForm_When_Serialized(self):
        assert IndexRange(first=3, last=3).to_string() == "3"
        assert IndexRange(first=3, last=8).to_string() == "3-8"

    def test_Should_CoerceAllRangeForms_When_Given(self):
        """coerce_range() should accept ranges, pairs, indices and strings."""
        expected = IndexRange(first=1, last=1)
        assert coerce_range(expected) is expected
        assert coerce_range((1, 1)) == expected
        assert coerce_range(1) == expected
        assert coerce_range("1") == expected


class TestCanonicalizeRanges:
    """Test the minimal canonical form of cropped ranges."""

    def test_Should_MergeTouchingRanges_When_SharingAnIndex(self):
        """[(2,4),(4,6)] should canonicalize to [(2,6)]."""
        assert canonicalize_ranges([(2, 4), (4, 6)]) == (IndexRange(first=2, last=6),)

    def test_Should_MergeContainedRange_When_SameEnd(self):
        """[(2,6),(4,6)] should canonicalize to [(2,6)]."""
        assert canonicalize_ranges([(2, 6), (4, 6)]) == (IndexRange(first=2, last=6),)

    def test_Should_MergeAdjacentRanges_When_NoGapBetween(self):
        """Ranges with consecutive bounds leave no gap and merge."""
        assert canonicalize_ranges([(5, 6), (2, 4)]) == (IndexRange(first=2, last=6),)

    def test_Should_KeepOuterRange_When_RangeFullyContained(self):
        assert canonicalize_ranges([(1, 9), (3, 4)]) == (IndexRange(first=1, last=9),)

    def test_Should_KeepDisjointRangesSorted_When_GapBetween(self):
        assert canonicalize_ranges([(8, 9), (2, 3)]) == (IndexRange(first=2, last=3), IndexRange(first=8, last=9))

    def test_Should_ReturnEmpty_When_NoRanges(self):
        assert canonicalize_ranges([]) == ()
