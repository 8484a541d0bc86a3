"""Export device timestamps of synchronized series to one CSV file.

Every input is a named series (one or more segment files). Movies
contribute the device tick of every stored frame; GPIO files contribute
the tick of every logical event, ``firstTsc`` plus the event offset,
together with the channel it occurred on. Ticks are written raw or
converted to seconds relative to the reference.

Columns:
--------
``<name> Timestamp (s)`` for every input, followed by ``<name> Channel``
for GPIO inputs. Inputs with fewer timestamps leave their cells blank.
"""

from fractions import Fraction
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..domain import MOVIE_KINDS, DataKind
from ..exceptions import UserInputError
from ..series import SegmentCollection, build_series
from ..tasks import AsyncTaskStatus, CheckInCallback, check_in_requests_cancel
from ..utils import time_block, write_csv
from .models import ExportInput, TimestampFormat
from .synchronizer import check_recording_uuids, check_reference_kind, check_target_kind
from .ticks import TICKS_PER_SECOND, first_device_tick

logger = logging.getLogger(__name__)

__all__ = ["EXPORT_ALIGN_KINDS", "read_series_ticks", "format_tick", "export_aligned_timestamps"]

EXPORT_ALIGN_KINDS = frozenset({DataKind.GPIO}) | MOVIE_KINDS

InputLike = Union[ExportInput, Tuple[str, Sequence[Union[str, Path]]]]


def _as_input(value: InputLike) -> ExportInput:
    if isinstance(value, ExportInput):
        return value
    name, paths = value
    return ExportInput(name=name, paths=tuple(Path(p) for p in paths))


def read_series_ticks(series: SegmentCollection) -> Tuple[List[int], Optional[List[str]]]:
    """Device ticks of a series and, for GPIO, the channel of each tick.

    Movie frames that were never stored (dropped or cropped) are skipped.

    Raises:
        UserInputError: If a movie has no frame timestamps or a GPIO file no ``firstTsc``
    """
    ticks: List[int] = []
    if series.segments[0].kind == DataKind.GPIO:
        channels: List[str] = []
        for segment in series.segments:
            first_tick = first_device_tick(segment)
            for name in segment.channel_names:
                offsets = segment.get_event_offsets(name)
                ticks.extend(first_tick + int(o) for o in offsets)
                channels.extend([name] * len(offsets))
        return ticks, channels

    for segment in series.segments:
        if not segment.has_frame_timestamps():
            raise UserInputError(f"No frame timestamps stored in movie file to export: {segment.file_path}", segment.file_path)
        index = segment.temporal_index
        for i in range(index.num_samples):
            if index.is_dropped(i) or index.is_cropped(i):
                continue
            ticks.append(segment.get_frame_timestamp(i))
    return ticks, None


def format_tick(tick: int, time_format: TimestampFormat, reference_tick: int, reference_start_s: Fraction, precision: int) -> str:
    if time_format == TimestampFormat.TSC:
        return str(tick)
    seconds = Fraction(tick - reference_tick, TICKS_PER_SECOND)
    if time_format == TimestampFormat.UNIX_EPOCH:
        seconds += reference_start_s
    return f"{float(seconds):.{precision}f}"


def export_aligned_timestamps(
    reference: InputLike,
    align: Sequence[InputLike],
    output_csv: Union[str, Path],
    time_format: TimestampFormat = TimestampFormat.TSC,
    float_precision: int = 6,
    check_in: Optional[CheckInCallback] = None,
) -> AsyncTaskStatus:
    """Write the device timestamps of a reference and aligned series to CSV.

    Args:
        reference: ``(name, paths)`` of the timing reference (GPIO or movie)
        align: ``(name, paths)`` of every series to align (GPIO or movie)
        output_csv: Output file
        time_format: Raw ticks, seconds from the reference's first sample,
            or seconds since the Unix epoch
        float_precision: Decimals of converted timestamps
        check_in: Progress callback called once per row; returning True
            cancels the export and no file is written

    Returns:
        COMPLETE, or CANCELLED if the check-in callback asked to stop

    Raises:
        UserInputError: Unsupported kind, unpaired files, duplicate names or missing ticks
        SeriesError: If the files of one input cannot form a series
    """
    inputs = [_as_input(reference)] + [_as_input(a) for a in align]
    names = [i.name for i in inputs]
    if len(set(names)) != len(names):
        raise UserInputError(f"Export input names must be unique: {names}")

    series = [build_series(i.paths) for i in inputs]
    check_reference_kind(series[0].segments[0].kind, inputs[0].paths[0])
    for item, s in zip(inputs[1:], series[1:]):
        check_target_kind(s.segments[0].kind, item.paths[0], allowed=EXPORT_ALIGN_KINDS)
    check_recording_uuids(series[0].segments[0], [s.segments[0] for s in series[1:]])

    reference_segment = series[0].segments[0]
    reference_tick = first_device_tick(reference_segment)
    reference_start_s = Fraction(reference_segment.temporal_index.start.to_milliseconds(), 1000)

    with time_block(f"Reading timestamps of {len(inputs)} series", logger):
        columns = [read_series_ticks(s) for s in series]

    fieldnames: List[str] = []
    for name, (_, channels) in zip(names, columns):
        fieldnames.append(f"{name} Timestamp (s)")
        if channels is not None:
            fieldnames.append(f"{name} Channel")

    num_rows = max(len(ticks) for ticks, _ in columns)
    rows: List[Dict[str, str]] = []
    for row_index in range(num_rows):
        row: Dict[str, str] = {}
        for name, (ticks, channels) in zip(names, columns):
            if row_index >= len(ticks):
                continue
            row[f"{name} Timestamp (s)"] = format_tick(ticks[row_index], time_format, reference_tick, reference_start_s, float_precision)
            if channels is not None:
                row[f"{name} Channel"] = channels[row_index]
        rows.append(row)
        if check_in_requests_cancel(check_in, row_index / num_rows):
            logger.info(f"Timestamp export cancelled at row {row_index} of {num_rows}")
            return AsyncTaskStatus.CANCELLED

    write_csv(output_csv, rows, fieldnames=fieldnames)
    logger.info(f"Exported {num_rows} aligned timestamp row(s) to {output_csv}")
    return AsyncTaskStatus.COMPLETE
