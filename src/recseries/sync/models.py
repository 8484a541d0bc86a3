"""Synchronization models.

Defines the state machine, the transient request and the per-target
corrections produced by one synchronization run, and the options of the
aligned timestamp export.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..domain import DataKind
from ..tasks import AsyncTaskStatus

__all__ = [
    "SyncState",
    "SynchronizationRequest",
    "StartTimeCorrection",
    "TargetFailure",
    "SynchronizationResult",
    "TimestampFormat",
    "ExportInput",
]


class SyncState(str, Enum):
    """Lifecycle of one synchronization run."""

    IDLE = "idle"
    VALIDATING = "validating"
    COMPUTING = "computing"
    PERSISTING = "persisting"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


class SynchronizationRequest(BaseModel):
    """One reference recording and the targets to align to it.

    Attributes:
        reference: Reference file (its wall-clock start is ground truth)
        reference_kind: Data kind of the reference
        targets: ``(path, kind)`` of every target, duplicates removed
    """

    model_config = {"frozen": True, "extra": "forbid"}

    reference: Path = Field(..., description="Timing reference file")
    reference_kind: DataKind = Field(..., description="Data kind of the timing reference")
    targets: Tuple[Tuple[Path, DataKind], ...] = Field(default=(), description="(path, kind) of every target file")

    @property
    def target_paths(self) -> List[Path]:
        return [path for path, _ in self.targets]


class StartTimeCorrection(BaseModel):
    """Start time computed for one target.

    Attributes:
        file_path: Target file
        kind: Data kind of the target
        first_tick: Device tick of the target's first sample (µs)
        actual_start_ms: Start time stored before the run
        expected_start_ms: Start time implied by the reference
        written: Whether the header was rewritten
    """

    model_config = {"frozen": True, "extra": "forbid"}

    file_path: Path = Field(..., description="Target file")
    kind: DataKind = Field(..., description="Data kind of the target")
    first_tick: int = Field(..., description="Device tick of the first sample in microseconds")
    actual_start_ms: int = Field(..., description="Stored start time before the run (ms since epoch)")
    expected_start_ms: int = Field(..., description="Start time implied by the reference (ms since epoch)")
    written: bool = Field(default=False, description="Whether the start time was rewritten")

    @property
    def offset_ms(self) -> int:
        return self.expected_start_ms - self.actual_start_ms


class TargetFailure(BaseModel):
    """A target skipped because of a file I/O or data-format error."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    file_path: Path = Field(..., description="Target file")
    error: Exception = Field(..., description="Error that aborted this target")


class SynchronizationResult(BaseModel):
    """Outcome of one synchronization run.

    Attributes:
        status: Complete, cancelled or error
        state: Final state of the run
        corrections: One entry per target processed
        failures: Targets skipped because of an error, in processing order
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    status: AsyncTaskStatus = Field(..., description="Completion status of the run")
    state: SyncState = Field(..., description="Final state of the run")
    corrections: Tuple[StartTimeCorrection, ...] = Field(default=(), description="Per-target corrections")
    failures: Tuple[TargetFailure, ...] = Field(default=(), description="Per-target failures")

    @property
    def first_error(self) -> Optional[Exception]:
        return self.failures[0].error if self.failures else None

    @property
    def num_written(self) -> int:
        return sum(1 for c in self.corrections if c.written)


class TimestampFormat(str, Enum):
    """Time column format of the aligned timestamp export."""

    TSC = "tsc"
    FIRST_DATA_ITEM = "first"
    UNIX_EPOCH = "unix"


class ExportInput(BaseModel):
    """One named series of the aligned timestamp export."""

    model_config = {"frozen": True, "extra": "forbid"}

    name: str = Field(..., min_length=1, description="Column name prefix")
    paths: Tuple[Path, ...] = Field(..., min_length=1, description="Segment files of the series")
