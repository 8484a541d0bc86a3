"""Multi-segment series: several segment files presented as one timeline.

Example:
    >>> from recseries.series import build_series
    >>> series = build_series(["rec_0001.rseg", "rec_0002.rseg"])
    >>> segment, local = series.segments[series.locate(450)[0]], series.locate(450)[1]
"""

from .checks import (
    check_count,
    check_data_type,
    check_kind,
    check_no_overlap,
    check_same,
    check_spacing,
    check_step,
    check_supported_kind,
)
from .collection import SegmentCollection
from .factory import SERIES_TYPES, build_series
from .fanout import AsyncFanout
from .kinds import CellSetSeries, ChannelSeries, EventsSeries, GpioSeries, MovieSeries, ObjectSetSeries, VesselSetSeries
from .protocols import Segment

__all__ = [
    # Protocol
    "Segment",
    # Compatibility rules
    "check_supported_kind",
    "check_kind",
    "check_spacing",
    "check_data_type",
    "check_step",
    "check_no_overlap",
    "check_count",
    "check_same",
    # Collections
    "SegmentCollection",
    "ObjectSetSeries",
    "ChannelSeries",
    "MovieSeries",
    "CellSetSeries",
    "VesselSetSeries",
    "EventsSeries",
    "GpioSeries",
    # Fan-out
    "AsyncFanout",
    # Factory
    "SERIES_TYPES",
    "build_series",
]
