"""Absolute wall-clock instants with exact rational precision.

A Time stores seconds since the Unix epoch as a Fraction together with the
UTC offset (seconds) of the clock that produced it. Arithmetic with
durations stays exact; floats only appear in to_datetime().
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from fractions import Fraction
import functools
from numbers import Rational
from typing import Union

__all__ = ["Time", "Duration", "as_fraction"]

Duration = Union[Fraction, int]


def as_fraction(value) -> Fraction:
    """Coerce a duration-like value to an exact Fraction.

    Accepts Fractions, ints, ``(num, den)`` pairs, decimal strings
    (``"0.05"`` or ``"1/20"``) and floats, which are read through their
    shortest decimal repr so that ``0.05`` becomes exactly 1/20.
    """
    if isinstance(value, Fraction):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean is not a valid duration")
    if isinstance(value, (int, Rational)):
        return Fraction(value)
    if isinstance(value, float):
        return Fraction(repr(value))
    if isinstance(value, str):
        return Fraction(value.strip())
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return Fraction(int(value[0]), int(value[1]))
    raise TypeError(f"Cannot interpret {value!r} as an exact duration")


@functools.total_ordering
class Time:
    """Absolute time as exact seconds since the epoch.

    Ordering and hashing only consider the instant; the UTC offset is
    carried along for display and for writing back to file headers.
    """

    __slots__ = ("_secs", "_utc_offset")

    def __init__(self, secs_since_epoch: Duration = 0, utc_offset: int = 0):
        self._secs = as_fraction(secs_since_epoch)
        self._utc_offset = int(utc_offset)

    @classmethod
    def from_milliseconds(cls, ms: int, utc_offset: int = 0) -> "Time":
        return cls(Fraction(int(ms), 1000), utc_offset)

    @property
    def secs_since_epoch(self) -> Fraction:
        return self._secs

    @property
    def utc_offset(self) -> int:
        return self._utc_offset

    def to_milliseconds(self) -> int:
        """Whole milliseconds since the epoch (floor)."""
        scaled = self._secs * 1000
        return scaled.numerator // scaled.denominator

    def to_datetime(self) -> datetime:
        tz = timezone(timedelta(seconds=self._utc_offset))
        return datetime.fromtimestamp(float(self._secs), tz=tz)

    def with_utc_offset(self, utc_offset: int) -> "Time":
        return Time(self._secs, utc_offset)

    def __add__(self, duration: Duration) -> "Time":
        return Time(self._secs + as_fraction(duration), self._utc_offset)

    def __sub__(self, other):
        if isinstance(other, Time):
            return self._secs - other._secs
        return Time(self._secs - as_fraction(other), self._utc_offset)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Time):
            return NotImplemented
        return self._secs == other._secs

    def __lt__(self, other: "Time") -> bool:
        if not isinstance(other, Time):
            return NotImplemented
        return self._secs < other._secs

    def __hash__(self) -> int:
        return hash(self._secs)

    def __repr__(self) -> str:
        return f"Time({self._secs!s}, utc_offset={self._utc_offset})"

    def __str__(self) -> str:
        return self.to_datetime().isoformat(timespec="milliseconds")

    def to_header(self) -> dict:
        return {"secs": [self._secs.numerator, self._secs.denominator], "utc_offset": self._utc_offset}

    @classmethod
    def from_header(cls, data: dict) -> "Time":
        num, den = data["secs"]
        return cls(Fraction(int(num), int(den)), int(data.get("utc_offset", 0)))
