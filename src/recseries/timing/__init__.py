"""Exact time primitives and the per-segment temporal index.

Example:
    >>> from fractions import Fraction
    >>> from recseries.timing import TemporalIndex, Time
    >>> ti = TemporalIndex(start=Time.from_milliseconds(0), step=Fraction(1, 20), num_samples=100)
    >>> ti.time_to_index(Time(Fraction(25, 1000)))
    0
"""

from .index import TemporalIndex
from .ranges import IndexRange, canonicalize_ranges, coerce_range
from .wallclock import Duration, Time, as_fraction

__all__ = [
    # Wall clock
    "Time",
    "Duration",
    "as_fraction",
    # Ranges
    "IndexRange",
    "canonicalize_ranges",
    "coerce_range",
    # Index
    "TemporalIndex",
]
