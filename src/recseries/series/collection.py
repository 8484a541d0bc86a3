"""Generic composition of segments into one logical series.

A SegmentCollection owns an ordered tuple of compatible segments and
presents them as one randomly indexable timeline. Construction is
all-or-nothing: segments are sorted by start time, every compatibility
rule is checked, and only then does the collection take ownership.

Aggregate time bases:
---------------------
- temporal_index: gapless aggregate. Its step is 0 because the gaps
  between segments make a single step meaningless; only counts matter.
  Exclusions of every segment are carried over, shifted by the number of
  samples in the segments before it.
- global_temporal_index(): real-time span from the first start to the
  last end, sampled with the first segment's step.

Kind-specific series subclass SegmentCollection in kinds.py and extend
_check_member() with their own count and shape rules.
"""

import logging
from pathlib import Path
from typing import ClassVar, FrozenSet, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from ..domain import DataKind, DataType, SpacingInfo
from ..exceptions import DataFormatError
from ..formats import read_segment
from ..tasks import WorkQueue
from ..timing import TemporalIndex
from . import checks
from .protocols import Segment

logger = logging.getLogger(__name__)

__all__ = ["SegmentCollection"]

S = TypeVar("S", bound=Segment)


class SegmentCollection(Generic[S]):
    """Ordered, validated composition of segments.

    ``SegmentCollection()`` builds an explicitly invalid placeholder;
    ``SegmentCollection(segments)`` validates and takes ownership.

    Raises:
        DataFormatError: If ``segments`` is empty
        SeriesError: If two segments cannot belong to one series
    """

    series_type: ClassVar[str] = "Series"
    data_kinds: ClassVar[FrozenSet[DataKind]] = frozenset()

    def __init__(self, segments: Optional[Iterable[S]] = None):
        self._segments: Tuple[S, ...] = ()
        self._offsets: Tuple[int, ...] = ()
        self._temporal_index: Optional[TemporalIndex] = None
        self._is_valid = False

        if segments is None:
            return

        members = list(segments)
        if not members:
            raise DataFormatError("Cannot build a series from an empty list of files.")
        for member in members:
            checks.check_supported_kind(member, self.data_kinds)

        # sorted() is stable: equal start times keep their input order
        ordered = sorted(members, key=lambda s: s.temporal_index.start)
        reference = ordered[0]
        for previous, member in zip(ordered, ordered[1:]):
            self._check_member(reference, previous, member)

        offsets: List[int] = []
        total = 0
        for member in ordered:
            offsets.append(total)
            total += member.temporal_index.num_samples
        aggregate = self._gapless_index(ordered, offsets, total)

        self._segments = tuple(ordered)
        self._offsets = tuple(offsets)
        self._temporal_index = aggregate
        self._is_valid = True
        logger.debug(f"Built {self.series_type} from {len(ordered)} segment(s) with {total} samples")

    @classmethod
    def from_files(cls, paths: Iterable[Union[str, Path]], queue: Optional[WorkQueue] = None) -> "SegmentCollection":
        """Open every file and compose the segments into a series."""
        paths = list(paths)
        if not paths:
            raise DataFormatError("Cannot build a series from an empty list of files.")
        return cls([read_segment(p, queue) for p in paths])

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _check_member(self, reference: S, previous: S, member: S) -> None:
        """Rules for one member; subclasses append kind-specific rules."""
        checks.check_kind(reference, member)
        checks.check_spacing(reference, member)
        checks.check_data_type(reference, member)
        checks.check_step(previous, member)
        checks.check_no_overlap(previous, member)

    @staticmethod
    def _gapless_index(ordered: Sequence[S], offsets: Sequence[int], total: int) -> TemporalIndex:
        dropped: List[int] = []
        cropped: List[Tuple[int, int]] = []
        blank: List[int] = []
        for member, offset in zip(ordered, offsets):
            shifted = member.temporal_index.shifted_exclusions(offset)
            dropped.extend(shifted["dropped"])
            cropped.extend(shifted["cropped"])
            blank.extend(shifted["blank"])
        return TemporalIndex(
            start=ordered[0].temporal_index.start,
            step=0,
            num_samples=total,
            dropped=dropped,
            cropped=cropped,
            blank=blank,
        )

    def _require_valid(self) -> None:
        if not self._is_valid:
            raise DataFormatError(f"{self.series_type} placeholder holds no segments")

    def _first_segment(self) -> S:
        """Earliest segment; representative values and shared metadata come from it."""
        self._require_valid()
        return self._segments[0]

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def is_valid(self) -> bool:
        return self._is_valid

    @property
    def segments(self) -> Tuple[S, ...]:
        return self._segments

    @property
    def segment_offsets(self) -> Tuple[int, ...]:
        """Global index of the first sample of each segment."""
        return self._offsets

    def __len__(self) -> int:
        return len(self._segments)

    @property
    def temporal_index(self) -> TemporalIndex:
        self._require_valid()
        return self._temporal_index

    @property
    def temporal_indices(self) -> List[TemporalIndex]:
        return [s.temporal_index for s in self._segments]

    def global_temporal_index(self) -> TemporalIndex:
        """Time base spanning the whole series in real time, gaps included."""
        self._require_valid()
        first = self._segments[0].temporal_index
        last = self._segments[-1].temporal_index
        if first.step == 0:
            return TemporalIndex(start=first.start, step=0, num_samples=0)
        span = (last.end - first.start) / first.step
        return TemporalIndex(start=first.start, step=first.step, num_samples=span.numerator // span.denominator)

    @property
    def file_paths(self) -> List[Path]:
        return [s.file_path for s in self._segments]

    @property
    def file_name(self) -> str:
        """Synthetic identifier of the series, not the path of a real file."""
        names = ", ".join(p.name for p in self.file_paths)
        return f"**{self.series_type}({names})"

    @property
    def spacing(self) -> Optional[SpacingInfo]:
        self._require_valid()
        return self._first_segment().spacing

    @property
    def data_type(self) -> DataType:
        self._require_valid()
        return self._first_segment().data_type

    # ------------------------------------------------------------------
    # Index mapping
    # ------------------------------------------------------------------

    def locate(self, global_index: int) -> Tuple[int, int]:
        """Map a global sample index to ``(segment position, local index)``.

        An index beyond the last segment maps to ``(len(segments), 0)``.
        Readers treat that result as a precondition violation.
        """
        assert global_index >= 0, f"Negative global index {global_index}"
        remaining = global_index
        for position, member in enumerate(self._segments):
            count = member.temporal_index.num_samples
            if remaining < count:
                return position, remaining
            remaining -= count
        return len(self._segments), 0

    def _located(self, global_index: int) -> Tuple[S, int]:
        self._require_valid()
        position, local = self.locate(global_index)
        assert position < len(self._segments), f"Global index {global_index} is beyond the last segment of {self.file_name}"
        return self._segments[position], local

    # ------------------------------------------------------------------
    # Broadcast operations
    # ------------------------------------------------------------------

    def cancel_pending_reads(self) -> None:
        for member in self._segments:
            member.cancel_pending_reads()

    def close_for_writing(self) -> None:
        for member in self._segments:
            member.close_for_writing()

    def __repr__(self) -> str:
        if not self._is_valid:
            return f"{type(self).__name__}(<invalid>)"
        return f"{type(self).__name__}({len(self._segments)} segments, {self._temporal_index.num_samples} samples)"
