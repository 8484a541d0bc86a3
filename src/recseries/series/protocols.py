"""Protocol definitions for series members.

Protocols provide structural subtyping so the series package only depends
on the capabilities it composes, not on the concrete file readers. Any
object with these attributes can be a member of a SegmentCollection.
"""

from pathlib import Path
from typing import Optional, Protocol

from ..domain import DataKind, DataType, SpacingInfo
from ..timing import TemporalIndex


class Segment(Protocol):
    """Minimal interface of one member of a series.

    Attributes:
        file_path: Identity of the backing file
        kind: Data kind of the member
        temporal_index: Time base of the member
        spacing: Image geometry (None for channel based kinds)
        data_type: Element type of the samples
    """

    file_path: Path
    kind: DataKind
    temporal_index: TemporalIndex
    spacing: Optional[SpacingInfo]
    data_type: DataType

    def cancel_pending_reads(self) -> None: ...

    def close_for_writing(self) -> None: ...
