"""Temporal index of a single segment.

A TemporalIndex is the time base of one physical file: a start time, an
exact rational sample step, a sample count, and three independent
exclusion sets.

Exclusions:
-----------
- dropped: samples that were expected but never recorded; storage
  compacts around them.
- cropped: inclusive ranges removed from playback; stored canonicalized.
- blank: samples whose content is synthetic filler; they occupy storage.

An index is valid when it lies in ``[0, num_samples)`` and no exclusion
mechanism claims it. Exclusion is boolean per index, so an index dropped
and cropped at the same time is only subtracted once from valid_count().

A step of zero is a sentinel used by gapless series aggregates: the time
axis is not meaningful there, only the counts are.

Example:
    >>> from fractions import Fraction
    >>> ti = TemporalIndex(start=Time(0), step=Fraction(1, 20), num_samples=10, cropped=[(2, 2)])
    >>> ti.cropped_count
    1
    >>> ti.recorded_index(5)
    4
"""

from bisect import bisect_left
from fractions import Fraction
import math
from typing import Any, Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, Field, PrivateAttr, field_validator, model_validator

from ..exceptions import DataFormatError
from .ranges import IndexRange, canonicalize_ranges
from .wallclock import Time, as_fraction

__all__ = ["TemporalIndex"]

HALF = Fraction(1, 2)


class TemporalIndex(BaseModel):
    """Time base of a segment with dropped, cropped and blank samples.

    Attributes:
        start: Absolute time of sample 0
        step: Exact sample period in seconds (0 for gapless aggregates)
        num_samples: Number of logical samples
        dropped: Sorted indices that were never recorded
        cropped: Canonical inclusive ranges excluded from playback
        blank: Sorted indices holding filler content
    """

    model_config = {"frozen": True, "extra": "forbid", "arbitrary_types_allowed": True}

    start: Time = Field(default_factory=Time, description="Absolute time of the first sample")
    step: Fraction = Field(default=Fraction(1, 20), description="Exact sample period in seconds")
    num_samples: int = Field(default=100, ge=0, description="Number of logical samples")
    dropped: Tuple[int, ...] = Field(default=(), description="Indices never recorded")
    cropped: Tuple[IndexRange, ...] = Field(default=(), description="Canonical inclusive ranges excluded from playback")
    blank: Tuple[int, ...] = Field(default=(), description="Indices holding filler content")

    # Derived lookups, pure functions of the fields above
    _dropped_outside_cropped: Tuple[int, ...] = PrivateAttr(default=())
    _blank_only: Tuple[int, ...] = PrivateAttr(default=())
    _cropped_count: int = PrivateAttr(default=0)
    _cropped_lasts: Tuple[int, ...] = PrivateAttr(default=())

    @field_validator("step", mode="before")
    @classmethod
    def _coerce_step(cls, v: Any) -> Fraction:
        try:
            step = as_fraction(v)
        except (TypeError, ValueError, ZeroDivisionError) as e:
            raise DataFormatError(f"Invalid sample step: {v!r}") from e
        if step < 0:
            raise DataFormatError(f"Sample step must not be negative: {step}")
        return step

    @field_validator("dropped", "blank", mode="before")
    @classmethod
    def _sort_indices(cls, v: Any) -> Tuple[int, ...]:
        if v is None:
            return ()
        return tuple(sorted({int(i) for i in v}))

    @field_validator("cropped", mode="before")
    @classmethod
    def _canonicalize_cropped(cls, v: Any) -> Tuple[IndexRange, ...]:
        if v is None:
            return ()
        return canonicalize_ranges(v)

    @model_validator(mode="after")
    def _check_bounds(self) -> "TemporalIndex":
        n = self.num_samples
        for name in ("dropped", "blank"):
            indices = getattr(self, name)
            if indices and (indices[0] < 0 or indices[-1] >= n):
                raise DataFormatError(f"{name.capitalize()} sample index out of range [0, {n}): {indices[0] if indices[0] < 0 else indices[-1]}")
        if self.cropped and self.cropped[-1].last >= n:
            raise DataFormatError(f"Cropped range {self.cropped[-1].to_string()} exceeds the number of samples ({n})")
        return self

    def model_post_init(self, __context: Any) -> None:
        self._cropped_count = sum(r.size for r in self.cropped)
        self._cropped_lasts = tuple(r.last for r in self.cropped)
        self._dropped_outside_cropped = tuple(i for i in self.dropped if not self._in_cropped(i))
        dropped = set(self.dropped)
        self._blank_only = tuple(i for i in self.blank if i not in dropped and not self._in_cropped(i))

    # ------------------------------------------------------------------
    # Index <-> time
    # ------------------------------------------------------------------

    @property
    def end(self) -> Time:
        return self.start + self.duration

    @property
    def duration(self) -> Fraction:
        return self.step * self.num_samples

    def index_to_start_time(self, index: int) -> Time:
        """Start time of a sample; extrapolated past the last sample."""
        return self.start + self.step * index

    def index_to_mid_time(self, index: int) -> Time:
        return self.start + self.step * (index + HALF)

    def time_to_index(self, time: Time) -> int:
        """Nearest sample to ``time``, clamped to the valid index range.

        A time exactly half a step from two samples maps to the earlier one.
        """
        if self.num_samples == 0 or self.step == 0:
            return 0
        position = (time - self.start) / self.step
        index = math.ceil(position - HALF)
        return min(max(index, 0), self.num_samples - 1)

    # ------------------------------------------------------------------
    # Exclusion predicates
    # ------------------------------------------------------------------

    def _in_cropped(self, index: int) -> bool:
        pos = bisect_left(self._cropped_lasts, index)
        return pos < len(self.cropped) and self.cropped[pos].first <= index

    def is_dropped(self, index: int) -> bool:
        pos = bisect_left(self.dropped, index)
        return pos < len(self.dropped) and self.dropped[pos] == index

    def is_cropped(self, index: int) -> bool:
        return self._in_cropped(index)

    def is_blank(self, index: int) -> bool:
        pos = bisect_left(self.blank, index)
        return pos < len(self.blank) and self.blank[pos] == index

    def is_index_valid(self, index: int) -> bool:
        if index < 0 or index >= self.num_samples:
            return False
        return not (self.is_dropped(index) or self.is_cropped(index) or self.is_blank(index))

    def first_valid_index(self) -> Optional[int]:
        for i in range(self.num_samples):
            if self.is_index_valid(i):
                return i
        return None

    # ------------------------------------------------------------------
    # Counts and storage mapping
    # ------------------------------------------------------------------

    @property
    def dropped_count(self) -> int:
        return len(self.dropped)

    @property
    def cropped_count(self) -> int:
        return self._cropped_count

    @property
    def blank_count(self) -> int:
        return len(self.blank)

    def valid_count(self) -> int:
        """Samples that are neither dropped, cropped nor blank."""
        excluded = self._cropped_count + len(self._dropped_outside_cropped) + len(self._blank_only)
        return self.num_samples - excluded

    def recorded_count(self) -> int:
        """Samples physically present in storage (blank filler included)."""
        return self.num_samples - self._cropped_count - len(self._dropped_outside_cropped)

    def recorded_index(self, index: int) -> int:
        """Map a logical sample index to its position in storage.

        Raises:
            DataFormatError: If the sample is dropped or cropped and therefore not stored
        """
        if index < 0 or index >= self.num_samples:
            raise DataFormatError(f"Sample index {index} out of range [0, {self.num_samples})")
        if self.is_dropped(index) or self.is_cropped(index):
            raise DataFormatError(f"Sample {index} is not stored (dropped or cropped)")
        dropped_before = bisect_left(self._dropped_outside_cropped, index)
        cropped_before = sum(r.count_before(index) for r in self.cropped)
        return index - dropped_before - cropped_before

    # ------------------------------------------------------------------
    # Relations and copies
    # ------------------------------------------------------------------

    def overlaps_with(self, other: "TemporalIndex") -> bool:
        """True when the half-open windows ``[start, end)`` intersect."""
        return self.start < other.end and other.start < self.end

    def with_start(self, start: Time) -> "TemporalIndex":
        return self.model_copy(update={"start": start})

    def shifted_exclusions(self, offset: int) -> Dict[str, Iterable]:
        """Exclusion sets moved by ``offset`` samples, for building aggregates."""
        return {
            "dropped": [i + offset for i in self.dropped],
            "cropped": [(r.first + offset, r.last + offset) for r in self.cropped],
            "blank": [i + offset for i in self.blank],
        }

    # ------------------------------------------------------------------
    # Header form
    # ------------------------------------------------------------------

    def to_header(self, include_start: bool = True) -> Dict[str, Any]:
        header: Dict[str, Any] = {
            "step": [self.step.numerator, self.step.denominator],
            "num_samples": self.num_samples,
            "dropped": list(self.dropped),
            "cropped": [r.to_string() for r in self.cropped],
            "blank": list(self.blank),
        }
        if include_start:
            header["start"] = self.start.to_header()
        return header

    @classmethod
    def from_header(cls, data: Dict[str, Any], start: Optional[Time] = None) -> "TemporalIndex":
        """Rebuild from to_header() output; ``start`` overrides a missing header start."""
        try:
            if start is None:
                start = Time.from_header(data["start"])
            return cls(
                start=start,
                step=data["step"],
                num_samples=int(data["num_samples"]),
                dropped=data.get("dropped", ()),
                cropped=data.get("cropped", ()),
                blank=data.get("blank", ()),
            )
        except (KeyError, TypeError) as e:
            raise DataFormatError(f"Malformed timing header: {e}") from e
