"""Inclusive index ranges and their canonical form.

Cropped samples are described by inclusive ranges. Ranges are stored in a
canonical form: sorted by first index, with overlapping or touching ranges
merged so that the set is minimal.

Example:
    >>> canonicalize_ranges([IndexRange(first=2, last=4), IndexRange(first=4, last=6)])
    (IndexRange(first=2, last=6),)
"""

from typing import Iterable, Tuple, Union

from pydantic import BaseModel, Field, model_validator

from ..exceptions import DataFormatError

__all__ = ["IndexRange", "canonicalize_ranges", "coerce_range"]

RANGE_DELIMITER = "-"


class IndexRange(BaseModel):
    """Inclusive range of sample indices ``[first, last]``."""

    model_config = {"frozen": True, "extra": "forbid"}

    first: int = Field(..., description="First index in the range")
    last: int = Field(..., description="Last index in the range (inclusive)")

    @model_validator(mode="after")
    def _check_order(self) -> "IndexRange":
        if self.first < 0:
            raise DataFormatError(f"Index range starts at a negative index: {self.first}")
        if self.first > self.last:
            raise DataFormatError(f"Malformed index range: first index {self.first} is after last index {self.last}")
        return self

    @property
    def size(self) -> int:
        return self.last - self.first + 1

    def contains(self, index: int) -> bool:
        return self.first <= index <= self.last

    def count_before(self, index: int) -> int:
        """Number of indices of this range strictly less than ``index``."""
        return max(0, min(self.last, index - 1) - self.first + 1)

    def to_string(self) -> str:
        if self.first == self.last:
            return str(self.first)
        return f"{self.first}{RANGE_DELIMITER}{self.last}"

    @classmethod
    def parse(cls, text: str) -> "IndexRange":
        """Parse ``"5"`` or ``"2-4"`` (whitespace around the dash allowed)."""
        parts = [p.strip() for p in text.split(RANGE_DELIMITER)]
        try:
            if len(parts) == 1:
                return cls(first=int(parts[0]), last=int(parts[0]))
            if len(parts) == 2:
                return cls(first=int(parts[0]), last=int(parts[1]))
        except ValueError as e:
            raise DataFormatError(f"Malformed index range: {text!r}") from e
        raise DataFormatError(f"Malformed index range: {text!r}")


RangeLike = Union[IndexRange, Tuple[int, int], int, str]


def coerce_range(value: RangeLike) -> IndexRange:
    """Build an IndexRange from a range, an ``(first, last)`` pair, an index or a string."""
    if isinstance(value, IndexRange):
        return value
    if isinstance(value, str):
        return IndexRange.parse(value)
    if isinstance(value, int):
        return IndexRange(first=value, last=value)
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return IndexRange(first=int(value[0]), last=int(value[1]))
    raise DataFormatError(f"Malformed index range: {value!r}")


def canonicalize_ranges(ranges: Iterable[RangeLike]) -> Tuple[IndexRange, ...]:
    """Sort ranges and merge the ones that overlap or touch.

    Args:
        ranges: Ranges in any order, possibly overlapping

    Returns:
        Minimal tuple of disjoint, non-adjacent ranges sorted by first index
    """
    ordered = sorted((coerce_range(r) for r in ranges), key=lambda r: (r.first, r.last))
    if not ordered:
        return ()

    compact = []
    first, last = ordered[0].first, ordered[0].last
    for r in ordered[1:]:
        if last + 1 >= r.first:
            # max() covers a range fully contained in the current one
            last = max(last, r.last)
        else:
            compact.append(IndexRange(first=first, last=last))
            first, last = r.first, r.last
    compact.append(IndexRange(first=first, last=last))
    return tuple(compact)
