"""recseries: multi-segment recording series with exact time bases.

Package Structure:
-----------------
- timing: Time, IndexRange and TemporalIndex (exact rational time bases)
- domain: data kinds, geometry and sample containers
- formats: segment files and their per-kind readers
- series: segment files composed into one validated timeline
- sync: cross-device start-time synchronization and timestamp export
- tasks: cooperative asynchronous read primitives
- config: settings from TOML and the environment
"""

from .exceptions import DataFormatError, FileIOError, RecSeriesError, SeriesError, UserInputError
from .series import build_series
from .sync import synchronize_start_times
from .timing import TemporalIndex, Time

__version__ = "0.1.0"

__all__ = [
    "RecSeriesError",
    "FileIOError",
    "DataFormatError",
    "SeriesError",
    "UserInputError",
    "Time",
    "TemporalIndex",
    "build_series",
    "synchronize_start_times",
]
