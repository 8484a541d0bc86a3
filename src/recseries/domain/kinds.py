"""Enumerations shared by segment files and series.

DataKind identifies what a segment file holds and therefore which series
type composes it. DataType is the element type of the stored samples.
SetStatus is the curation label of a cell or vessel.
"""

from enum import Enum

__all__ = ["DataKind", "DataType", "SetStatus", "MOVIE_KINDS"]


class DataKind(str, Enum):
    """Kind of recording held by a segment file."""

    MOVIE = "movie"
    EXTERNAL_MOVIE = "external_movie"  # movie clocked by an external device
    CELL_SET = "cell_set"
    EVENTS = "events"
    GPIO = "gpio"
    VESSEL_SET = "vessel_set"
    UNKNOWN = "unknown"


class DataType(str, Enum):
    """Element type of stored samples."""

    U8 = "u8"
    U16 = "u16"
    F32 = "f32"

    @property
    def numpy_dtype(self) -> str:
        return {"u8": "<u1", "u16": "<u2", "f32": "<f4"}[self.value]


class SetStatus(str, Enum):
    """Curation status of a cell or vessel."""

    ACCEPTED = "accepted"
    UNDECIDED = "undecided"
    REJECTED = "rejected"


MOVIE_KINDS = frozenset({DataKind.MOVIE, DataKind.EXTERNAL_MOVIE})
