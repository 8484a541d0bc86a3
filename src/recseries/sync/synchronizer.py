"""Cross-device start-time synchronization.

Paired devices share a hardware tick counter but each stamps its files
with its own wall clock. Given one reference recording whose wall-clock
start is trusted, the start time of every target is corrected so that
the difference between start times equals the difference between the
device ticks of their first samples.

State machine:
--------------
IDLE -> VALIDATING -> COMPUTING -> PERSISTING -> COMPLETE | FAILED | CANCELLED

- VALIDATING: data kinds, recording-UUID pairing and tick availability.
  Any user-input error fails the run before a single file is modified.
- COMPUTING: expected start of every target from the tick deltas.
- PERSISTING: headers rewritten in place, only where the stored start
  differs from the expected one.

A file I/O or data-format error on one target skips that target only;
the run then ends FAILED with the first such error surfaced.

Example:
    >>> from recseries.sync import synchronize_start_times
    >>> synchronize_start_times("gpio.rseg", ["behavior.rseg", "calcium.rseg"])
    <AsyncTaskStatus.COMPLETE: 'complete'>
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ..domain import MOVIE_KINDS, DataKind
from ..exceptions import DataFormatError, FileIOError, RecSeriesError, UserInputError
from ..formats import FileSegment, read_segment, write_start_time
from ..tasks import AsyncTaskStatus, CheckInCallback, check_in_requests_cancel
from ..timing import Time
from .models import StartTimeCorrection, SynchronizationRequest, SynchronizationResult, SyncState, TargetFailure
from .ticks import expected_start_ms, first_device_tick, get_recording_uuid, require_frame_timestamps

logger = logging.getLogger(__name__)

__all__ = [
    "REFERENCE_KINDS",
    "TARGET_KINDS",
    "clean_targets",
    "check_reference_kind",
    "check_target_kind",
    "check_recording_uuids",
    "ClockSynchronizer",
    "synchronize_start_times",
]

REFERENCE_KINDS = frozenset({DataKind.GPIO}) | MOVIE_KINDS
TARGET_KINDS = MOVIE_KINDS

PathLike = Union[str, Path]


# =============================================================================
# Validation rules
# =============================================================================


def clean_targets(reference: PathLike, targets: Iterable[PathLike]) -> List[Path]:
    """Remove duplicate targets and the reference itself, keeping input order."""
    reference = Path(reference)
    given = [Path(t) for t in targets]
    unique = list(dict.fromkeys(given))
    if len(unique) != len(given):
        logger.warning("Duplicate input align files found, removing from list of input align files.")
    if reference in unique:
        logger.warning("Cannot align file to itself, removing from list of input align files.")
        unique.remove(reference)
    return unique


def _naming(message: str, path: Optional[PathLike]) -> str:
    return f"{message}: {path}" if path is not None else message


def check_reference_kind(kind: DataKind, path: Optional[Path] = None) -> None:
    if kind not in REFERENCE_KINDS:
        raise UserInputError(_naming("Unsupported data type - only gpio files and movies are supported as a timing reference.", path), path)


def check_target_kind(kind: DataKind, path: Optional[Path] = None, allowed=TARGET_KINDS) -> None:
    if kind not in allowed:
        raise UserInputError(_naming("Unsupported data type - only movies are supported as input files to align to a timing reference.", path), path)


def check_recording_uuids(reference: FileSegment, targets: Sequence[FileSegment]) -> str:
    """Require every target to share the recording UUID of the reference.

    Returns:
        The reference recording UUID

    Raises:
        UserInputError: If the reference has no UUID or a target's differs
    """
    reference_uuid = get_recording_uuid(reference)
    if not reference_uuid:
        raise UserInputError(
            f"Cannot determine if files are paired and synchronized - no recording UUID in timing reference file metadata: {reference.file_path}",
            reference.file_path,
        )
    for target in targets:
        target_uuid = get_recording_uuid(target)
        if target_uuid != reference_uuid:
            raise UserInputError(
                f"Files are not paired and synchronized - recording UUID of align file ({target_uuid}) "
                f"does not match recording UUID of timing reference file ({reference_uuid}): {target.file_path}",
                target.file_path,
            )
    return reference_uuid


# =============================================================================
# Synchronizer
# =============================================================================


class ClockSynchronizer:
    """Correct the wall-clock start times of targets against a reference.

    Args:
        reference: Timing reference (GPIO or movie)
        targets: Movies to align; duplicates and the reference are removed
        check_in: Progress callback; returning True cancels the run before
            the next header is written

    Raises (from run()):
        UserInputError: Unsupported kind, unpaired files or missing ticks
        FileIOError: If the reference cannot be read
        DataFormatError: If the reference is malformed
    """

    def __init__(self, reference: PathLike, targets: Iterable[PathLike], check_in: Optional[CheckInCallback] = None):
        self._reference = Path(reference)
        self._targets = clean_targets(reference, targets)
        self._check_in = check_in
        self._state = SyncState.IDLE
        self._request: Optional[SynchronizationRequest] = None

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def request(self) -> Optional[SynchronizationRequest]:
        """Validated request, available once validation has passed."""
        return self._request

    @property
    def target_paths(self) -> List[Path]:
        return list(self._targets)

    def run(self) -> SynchronizationResult:
        failures: List[TargetFailure] = []
        try:
            self._state = SyncState.VALIDATING
            reference, targets = self._validate(failures)

            self._state = SyncState.COMPUTING
            corrections = self._compute(reference, targets, failures)

            self._state = SyncState.PERSISTING
            corrections, cancelled = self._persist(corrections, reference.temporal_index.start.utc_offset, failures)
        except RecSeriesError:
            self._state = SyncState.FAILED
            raise

        if cancelled:
            self._state = SyncState.CANCELLED
            status = AsyncTaskStatus.CANCELLED
        elif failures:
            self._state = SyncState.FAILED
            status = AsyncTaskStatus.ERROR
            logger.warning(f"Synchronization finished with {len(failures)} failed target(s); first error: {failures[0].error}")
        else:
            self._state = SyncState.COMPLETE
            status = AsyncTaskStatus.COMPLETE
        return SynchronizationResult(status=status, state=self._state, corrections=tuple(corrections), failures=tuple(failures))

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _validate(self, failures: List[TargetFailure]) -> Tuple[FileSegment, List[FileSegment]]:
        reference = read_segment(self._reference)
        check_reference_kind(reference.kind, self._reference)

        targets: List[FileSegment] = []
        for path in self._targets:
            try:
                target = read_segment(path)
            except (FileIOError, DataFormatError) as e:
                logger.warning(f"Skipping target {path}: {e}")
                failures.append(TargetFailure(file_path=path, error=e))
                continue
            check_target_kind(target.kind, path)
            targets.append(target)

        check_recording_uuids(reference, targets)
        for target in targets:
            require_frame_timestamps(target)

        self._request = SynchronizationRequest(
            reference=self._reference,
            reference_kind=reference.kind,
            targets=tuple((t.file_path, t.kind) for t in targets),
        )
        return reference, targets

    def _compute(self, reference: FileSegment, targets: Sequence[FileSegment], failures: List[TargetFailure]) -> List[StartTimeCorrection]:
        reference_ms = reference.temporal_index.start.to_milliseconds()
        reference_tick = first_device_tick(reference)
        logger.debug(f"Reference {reference.file_path.name}: start {reference_ms} ms, first tick {reference_tick}")

        corrections: List[StartTimeCorrection] = []
        for target in targets:
            try:
                tick = first_device_tick(target)
            except DataFormatError as e:
                logger.warning(f"Skipping target {target.file_path}: {e}")
                failures.append(TargetFailure(file_path=target.file_path, error=e))
                continue
            actual = target.temporal_index.start.to_milliseconds()
            expected = expected_start_ms(reference_ms, reference_tick, tick)
            logger.debug(f"Synchronize start time diff of {target.file_path.name}: {expected - actual} ms")
            corrections.append(
                StartTimeCorrection(
                    file_path=target.file_path,
                    kind=target.kind,
                    first_tick=tick,
                    actual_start_ms=actual,
                    expected_start_ms=expected,
                )
            )
        return corrections

    def _persist(
        self, corrections: Sequence[StartTimeCorrection], utc_offset: int, failures: List[TargetFailure]
    ) -> Tuple[List[StartTimeCorrection], bool]:
        done: List[StartTimeCorrection] = []
        total = len(corrections)
        for position, correction in enumerate(corrections):
            if check_in_requests_cancel(self._check_in, position / total):
                logger.info(f"Synchronization cancelled after {position} of {total} target(s)")
                return done, True

            if correction.expected_start_ms == correction.actual_start_ms:
                done.append(correction)
                continue
            start = Time.from_milliseconds(correction.expected_start_ms, utc_offset)
            try:
                write_start_time(correction.file_path, start, correction.kind)
            except (FileIOError, DataFormatError) as e:
                logger.warning(f"Failed to write start time of {correction.file_path}: {e}")
                failures.append(TargetFailure(file_path=correction.file_path, error=e))
                continue
            done.append(correction.model_copy(update={"written": True}))

        return done, False


def synchronize_start_times(
    reference: PathLike,
    targets: Iterable[PathLike],
    check_in: Optional[CheckInCallback] = None,
) -> AsyncTaskStatus:
    """Correct target start times against a reference recording.

    Returns:
        COMPLETE, CANCELLED, or ERROR when a target failed with a file I/O
        or data-format error (the remaining targets are still processed)

    Raises:
        UserInputError: If the inputs cannot be synchronized; no file is modified
    """
    return ClockSynchronizer(reference, targets, check_in).run().status
