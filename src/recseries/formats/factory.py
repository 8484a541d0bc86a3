"""Open a segment file with the reader matching its stored data kind."""

import logging
from pathlib import Path
from typing import Dict, Optional, Type, Union

from ..domain import DataKind
from ..exceptions import DataFormatError
from ..tasks import WorkQueue
from .base import FileSegment
from .container import read_data_kind
from .gpio import GpioSegment
from .movie import MovieSegment
from .traces import CellSetSegment, EventsSegment, VesselSetSegment

logger = logging.getLogger(__name__)

__all__ = ["SEGMENT_TYPES", "read_segment"]

SEGMENT_TYPES: Dict[DataKind, Type[FileSegment]] = {
    DataKind.MOVIE: MovieSegment,
    DataKind.EXTERNAL_MOVIE: MovieSegment,
    DataKind.CELL_SET: CellSetSegment,
    DataKind.EVENTS: EventsSegment,
    DataKind.GPIO: GpioSegment,
    DataKind.VESSEL_SET: VesselSetSegment,
}


def read_segment(path: Union[str, Path], queue: Optional[WorkQueue] = None) -> FileSegment:
    """Open any segment file.

    Raises:
        FileIOError: If the file cannot be read
        DataFormatError: If the file is malformed or holds an unknown kind
    """
    kind = read_data_kind(path)
    segment_type = SEGMENT_TYPES.get(kind)
    if segment_type is None:
        raise DataFormatError(f"Unsupported data kind '{kind.value}': {path}", path)
    return segment_type(path, queue)
