"""Value types shared by segment files and series.

Package Structure:
-----------------
- kinds: DataKind, DataType and SetStatus enumerations
- spatial: SpacingInfo and Color
- data: Trace, LogicalTrace and VideoFrame sample containers

All models are frozen and reject unknown fields.
"""

from .data import LogicalTrace, Trace, VideoFrame
from .kinds import MOVIE_KINDS, DataKind, DataType, SetStatus
from .spatial import Color, SpacingInfo

__all__ = [
    # Kinds
    "DataKind",
    "DataType",
    "SetStatus",
    "MOVIE_KINDS",
    # Geometry
    "SpacingInfo",
    "Color",
    # Samples
    "Trace",
    "LogicalTrace",
    "VideoFrame",
]
