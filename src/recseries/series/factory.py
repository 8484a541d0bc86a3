"""Build the right series type for a list of segment files."""

import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Type, Union

from ..domain import DataKind
from ..exceptions import DataFormatError
from ..formats import read_data_kind
from ..tasks import WorkQueue
from .collection import SegmentCollection
from .kinds import CellSetSeries, EventsSeries, GpioSeries, MovieSeries, VesselSetSeries

logger = logging.getLogger(__name__)

__all__ = ["SERIES_TYPES", "build_series"]

SERIES_TYPES: Dict[DataKind, Type[SegmentCollection]] = {
    DataKind.MOVIE: MovieSeries,
    DataKind.EXTERNAL_MOVIE: MovieSeries,
    DataKind.CELL_SET: CellSetSeries,
    DataKind.EVENTS: EventsSeries,
    DataKind.GPIO: GpioSeries,
    DataKind.VESSEL_SET: VesselSetSeries,
}


def build_series(paths: Iterable[Union[str, Path]], queue: Optional[WorkQueue] = None) -> SegmentCollection:
    """Open every file and compose the segments into one series.

    The series type is chosen from the data kind of the first file; the
    kind of every other file is then checked against it.

    Args:
        paths: Segment files, in any order
        queue: Work queue for asynchronous reads (reads run inline if None)

    Returns:
        A validated series

    Raises:
        DataFormatError: If ``paths`` is empty or a file is malformed
        FileIOError: If a file cannot be read
        SeriesError: If the files cannot belong to one series

    Example:
        >>> series = build_series(["rec_0001.rseg", "rec_0002.rseg"])
        >>> series.temporal_index.num_samples
        600
    """
    paths = [Path(p) for p in paths]
    if not paths:
        raise DataFormatError("Cannot build a series from an empty list of files.")
    kind = read_data_kind(paths[0])
    series_type = SERIES_TYPES.get(kind)
    if series_type is None:
        raise DataFormatError(f"Unsupported data kind '{kind.value}' for a series: {paths[0]}", paths[0])
    logger.debug(f"Building {series_type.series_type} from {len(paths)} file(s)")
    return series_type.from_files(paths, queue)
