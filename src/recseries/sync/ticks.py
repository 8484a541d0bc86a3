"""Device ticks and wall-clock arithmetic for start-time synchronization.

Device ticks are microseconds of a hardware counter shared by paired
devices; wall-clock start times are stored in milliseconds. The ratio
between the two units is fixed at 1000:1.
"""

from fractions import Fraction
import json
import logging
from typing import Any, Dict

from ..domain import MOVIE_KINDS, DataKind
from ..exceptions import DataFormatError, UserInputError

logger = logging.getLogger(__name__)

__all__ = [
    "TICKS_PER_MILLISECOND",
    "TICKS_PER_SECOND",
    "round_half_away",
    "extra_properties",
    "get_recording_uuid",
    "require_frame_timestamps",
    "first_device_tick",
    "expected_start_ms",
]

TICKS_PER_MILLISECOND = 1000
TICKS_PER_SECOND = 1_000_000


def round_half_away(value) -> int:
    """Round to the nearest integer, halves away from zero."""
    value = Fraction(value)
    magnitude = (abs(value) * 2 + 1) // 2
    return int(magnitude) if value >= 0 else -int(magnitude)


def extra_properties(segment) -> Dict[str, Any]:
    """Decoded extra properties of a segment (empty if none are stored)."""
    raw = segment.get_extra_properties()
    if not raw:
        return {}
    try:
        properties = json.loads(raw)
    except json.JSONDecodeError as e:
        raise DataFormatError(f"Extra properties are not valid JSON: {segment.file_path} ({e})", segment.file_path) from e
    if not isinstance(properties, dict):
        raise DataFormatError(f"Extra properties are not a JSON object: {segment.file_path}", segment.file_path)
    return properties


def get_recording_uuid(segment) -> str:
    """Recording UUID shared by paired devices, or "" when not stored."""
    interface = extra_properties(segment).get("processingInterface") or {}
    return str(interface.get("recordingUUID", "")) if isinstance(interface, dict) else ""


def require_frame_timestamps(segment) -> None:
    if not segment.has_frame_timestamps():
        raise UserInputError(f"Cannot get first tsc from movie with no frame timestamps: {segment.file_path}", segment.file_path)


def first_device_tick(segment) -> int:
    """Device tick of the first sample of a GPIO or movie segment.

    GPIO files store it as ``firstTsc``. Movies read the timestamp of
    frame 0, or extrapolate backward from the first valid frame when the
    leading frames are excluded.

    Raises:
        UserInputError: If the tick is not stored or the kind is unsupported
        DataFormatError: If a movie has no valid frame
    """
    kind = segment.kind
    if kind == DataKind.GPIO:
        properties = extra_properties(segment)
        if "firstTsc" not in properties:
            raise UserInputError(f"GPIO first tsc not stored in file metadata: {segment.file_path}", segment.file_path)
        return int(properties["firstTsc"])

    if kind not in MOVIE_KINDS:
        raise UserInputError(f"Unsupported data type - can only get first tsc of gpio files and movies: {segment.file_path}", segment.file_path)

    require_frame_timestamps(segment)
    index = segment.temporal_index
    if index.is_index_valid(0):
        return segment.get_frame_timestamp(0)

    first_valid = index.first_valid_index()
    if first_valid is None:
        raise DataFormatError(f"Failed to find index of first valid frame: {segment.file_path}", segment.file_path)
    first_valid_tick = segment.get_frame_timestamp(first_valid)
    step_ticks = index.step * TICKS_PER_SECOND
    tick = round_half_away(first_valid_tick - step_ticks * first_valid)
    logger.debug(f"Extrapolated first tick of {segment.file_path.name} from frame {first_valid}: {tick}")
    return tick


def expected_start_ms(reference_start_ms: int, reference_tick: int, target_tick: int) -> int:
    """Wall-clock start (ms) of a target implied by the tick delta to the reference."""
    return reference_start_ms + round_half_away(Fraction(target_tick - reference_tick, TICKS_PER_MILLISECOND))
