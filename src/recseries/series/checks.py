"""Compatibility rules between the members of one series.

Each rule raises SeriesError naming the violated rule and the offending
file. Geometry, type and count rules compare a member with the earliest
segment of the series; timing rules compare it with the member just
before it in start-time order.
"""

from typing import Callable, FrozenSet, Sequence

from ..domain import DataKind
from ..exceptions import SeriesError
from .protocols import Segment

__all__ = [
    "check_supported_kind",
    "check_kind",
    "check_spacing",
    "check_data_type",
    "check_step",
    "check_no_overlap",
    "check_count",
    "check_same",
]


def _fail(rule: str, member: Segment) -> None:
    raise SeriesError(f"Series member {rule}: {member.file_path}", member.file_path)


def check_kind(reference: Segment, member: Segment) -> None:
    if member.kind != reference.kind:
        _fail("with data set type different than reference", member)


def check_spacing(reference: Segment, member: Segment) -> None:
    if member.spacing != reference.spacing:
        _fail("has spacing info different than reference", member)


def check_data_type(reference: Segment, member: Segment) -> None:
    if member.data_type != reference.data_type:
        _fail("has data type different than reference", member)


def check_step(previous: Segment, member: Segment) -> None:
    if member.temporal_index.step != previous.temporal_index.step:
        _fail("has different frame rate than reference", member)


def check_no_overlap(previous: Segment, member: Segment) -> None:
    if member.temporal_index.start < previous.temporal_index.end:
        _fail("temporally overlaps with the reference", member)


def check_count(reference: Segment, member: Segment, count: Callable[[Segment], int], noun: str) -> None:
    if count(member) != count(reference):
        _fail(f"with mismatching number of {noun}", member)


def check_same(reference: Segment, member: Segment, value: Callable[[Segment], Sequence], what: str) -> None:
    """Generic equality rule for kind-specific properties."""
    if value(member) != value(reference):
        _fail(f"with mismatching {what}", member)


def check_supported_kind(member: Segment, kinds: FrozenSet[DataKind]) -> None:
    if kinds and member.kind not in kinds:
        _fail("with data set type different than reference", member)
