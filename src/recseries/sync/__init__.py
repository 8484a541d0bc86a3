"""Cross-device start-time synchronization and aligned timestamp export.

Example:
    >>> from recseries.sync import ClockSynchronizer
    >>> result = ClockSynchronizer("gpio.rseg", ["behavior.rseg"]).run()
    >>> [c.expected_start_ms for c in result.corrections]
    [1700000000500]
"""

from .export import EXPORT_ALIGN_KINDS, export_aligned_timestamps, format_tick, read_series_ticks
from .models import (
    ExportInput,
    StartTimeCorrection,
    SynchronizationRequest,
    SynchronizationResult,
    SyncState,
    TargetFailure,
    TimestampFormat,
)
from .synchronizer import (
    REFERENCE_KINDS,
    TARGET_KINDS,
    ClockSynchronizer,
    check_recording_uuids,
    check_reference_kind,
    check_target_kind,
    clean_targets,
    synchronize_start_times,
)
from .ticks import (
    TICKS_PER_MILLISECOND,
    TICKS_PER_SECOND,
    expected_start_ms,
    first_device_tick,
    get_recording_uuid,
    round_half_away,
)

__all__ = [
    # Models
    "SyncState",
    "SynchronizationRequest",
    "StartTimeCorrection",
    "TargetFailure",
    "SynchronizationResult",
    "TimestampFormat",
    "ExportInput",
    # Ticks
    "TICKS_PER_MILLISECOND",
    "TICKS_PER_SECOND",
    "round_half_away",
    "get_recording_uuid",
    "first_device_tick",
    "expected_start_ms",
    # Synchronization
    "REFERENCE_KINDS",
    "TARGET_KINDS",
    "clean_targets",
    "check_reference_kind",
    "check_target_kind",
    "check_recording_uuids",
    "ClockSynchronizer",
    "synchronize_start_times",
    # Export
    "EXPORT_ALIGN_KINDS",
    "read_series_ticks",
    "format_tick",
    "export_aligned_timestamps",
]
