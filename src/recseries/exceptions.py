"""Exception hierarchy for recseries.

All errors raised on purpose by the package derive from RecSeriesError.
None of them derive from ValueError, so they pass unchanged through
pydantic validators instead of being folded into a ValidationError.

Hierarchy:
----------
- RecSeriesError
  ├── FileIOError       read/write/seek failure on a segment file
  ├── DataFormatError   malformed header or index data
  ├── SeriesError       segments that cannot form one series
  └── UserInputError    unsupported data kind or pairing given by the caller

Programming precondition violations (e.g. reading a global sample index
beyond the last segment) are reported with AssertionError instead.
"""

from pathlib import Path
from typing import Optional, Union

__all__ = [
    "RecSeriesError",
    "FileIOError",
    "DataFormatError",
    "SeriesError",
    "UserInputError",
]


class RecSeriesError(Exception):
    """Base class for all recseries errors.

    Attributes:
        message: Human readable description
        file_path: Offending file, when one is known
    """

    def __init__(self, message: str, file_path: Optional[Union[str, Path]] = None):
        self.message = message
        self.file_path = str(file_path) if file_path is not None else None
        super().__init__(message)


class FileIOError(RecSeriesError):
    """Underlying read, write or seek failure."""

    pass


class DataFormatError(RecSeriesError):
    """Malformed header, timing or index data."""

    pass


class SeriesError(RecSeriesError):
    """Segments are not compatible members of one series."""

    pass


class UserInputError(RecSeriesError):
    """Caller passed an unsupported data kind or unpaired recordings."""

    pass
