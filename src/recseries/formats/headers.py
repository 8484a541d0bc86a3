"""In-place mutation of segment file headers.

Both primitives leave the sample payload and the file size untouched:

- write_start_time() for fixed-offset kinds (movies) overwrites the 16
  prefix bytes at START_OFFSET.
- For every other kind the JSON header is re-encoded with the new
  ``timing.start`` and padded into the capacity reserved when the file
  was written. A header that no longer fits raises DataFormatError.
"""

import json
import logging
from pathlib import Path
import struct
from typing import Any, Dict, Union

from ..domain import DataKind
from ..exceptions import DataFormatError, FileIOError
from ..timing import Time
from .container import FIXED_OFFSET_KINDS, PREFIX_SIZE, START_FORMAT, START_OFFSET, decode_header, encode_header, unpack_prefix

logger = logging.getLogger(__name__)

__all__ = ["write_start_time", "rewrite_json_header"]


def _rewrite_header_in_place(f, path: Path, update) -> None:
    f.seek(0)
    _, _, capacity = unpack_prefix(f.read(PREFIX_SIZE), path)
    header = decode_header(f.read(capacity), capacity, path)
    header = update(header)
    encoded = encode_header(header)
    if len(encoded) > capacity:
        raise DataFormatError(f"Rewritten header ({len(encoded)} bytes) exceeds the reserved capacity ({capacity} bytes): {path}", path)
    f.seek(PREFIX_SIZE)
    f.write(encoded.ljust(capacity, b" "))


def rewrite_json_header(path: Union[str, Path], header: Dict[str, Any]) -> None:
    """Replace the JSON header of a segment file within its reserved capacity.

    Raises:
        FileIOError: If the file cannot be opened or written
        DataFormatError: If the file is malformed or the header does not fit
    """
    path = Path(path)
    try:
        with open(path, "r+b") as f:
            _rewrite_header_in_place(f, path, lambda _: header)
    except OSError as e:
        raise FileIOError(f"Failed to rewrite segment header: {path} ({e})", path) from e
    logger.debug(f"Rewrote header of {path.name}")


def write_start_time(path: Union[str, Path], start: Time, kind: DataKind) -> None:
    """Overwrite only the start time stored in a segment file.

    Args:
        path: Segment file to modify
        start: New start time
        kind: Data kind of the file, which selects the header layout

    Raises:
        FileIOError: If the file cannot be opened or written
        DataFormatError: If the file is malformed or the header does not fit
    """
    path = Path(path)

    def _set_start(header: Dict[str, Any]) -> Dict[str, Any]:
        timing = header.get("timing")
        if not isinstance(timing, dict):
            raise DataFormatError(f"Segment header has no timing section: {path}", path)
        timing["start"] = start.to_header()
        return header

    try:
        with open(path, "r+b") as f:
            if kind in FIXED_OFFSET_KINDS:
                # Validates the magic before touching any byte
                unpack_prefix(f.read(PREFIX_SIZE), path)
                if start.secs_since_epoch < 0:
                    raise DataFormatError(f"Start time before the epoch cannot be stored: {start!r}", path)
                f.seek(START_OFFSET)
                f.write(struct.pack(START_FORMAT, start.to_milliseconds(), start.utc_offset))
            else:
                _rewrite_header_in_place(f, path, _set_start)
    except OSError as e:
        raise FileIOError(f"Failed to write start time: {path} ({e})", path) from e

    logger.info(f"Set start time of {path.name} to {start.to_milliseconds()} ms (UTC offset {start.utc_offset} s)")
