"""Segment files: on-disk container, header mutation and per-kind readers.

Example:
    >>> from recseries.formats import read_segment
    >>> movie = read_segment("rec_0001.rseg")
    >>> movie.temporal_index.num_samples
    300
"""

from .base import FileSegment, build_header
from .container import FIXED_OFFSET_KINDS, SegmentFile, read_data_kind, write_segment_file
from .factory import SEGMENT_TYPES, read_segment
from .gpio import GpioSegment
from .headers import rewrite_json_header, write_start_time
from .movie import MovieSegment
from .traces import CellSetSegment, ChannelStreamSegment, EventsSegment, ObjectSetSegment, VesselSetSegment

__all__ = [
    # Container
    "SegmentFile",
    "FIXED_OFFSET_KINDS",
    "read_data_kind",
    "write_segment_file",
    # Header mutation
    "write_start_time",
    "rewrite_json_header",
    # Segments
    "FileSegment",
    "build_header",
    "MovieSegment",
    "ObjectSetSegment",
    "CellSetSegment",
    "VesselSetSegment",
    "ChannelStreamSegment",
    "EventsSegment",
    "GpioSegment",
    # Factory
    "SEGMENT_TYPES",
    "read_segment",
]
