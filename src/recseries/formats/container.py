"""Binary container shared by every segment file.

Layout:
-------
    offset 0    8 bytes   magic b"RSEGMNT1"
    offset 8    u64 LE    start time, milliseconds since epoch (fixed-offset kinds)
    offset 16   i64 LE    UTC offset of the start time, seconds (fixed-offset kinds)
    offset 24   u64 LE    JSON header capacity C
    offset 32   C bytes   UTF-8 JSON header, padded with spaces
    offset 32+C           numpy .npz payload holding the sample arrays

The header capacity is larger than the encoded header so that metadata can
be rewritten in place (see headers.py) without moving the sample payload.

Movies keep their start time in the fixed binary prefix. Every other kind
keeps it in the JSON header under ``timing.start`` and leaves the prefix
start fields at zero.
"""

import io
import json
import logging
from pathlib import Path
import struct
from typing import Any, Dict, Mapping, Optional, Union
import zipfile

import numpy as np

from ..domain import DataKind
from ..exceptions import DataFormatError, FileIOError
from ..timing import Time

logger = logging.getLogger(__name__)

__all__ = [
    "MAGIC",
    "PREFIX_SIZE",
    "FIXED_OFFSET_KINDS",
    "SegmentFile",
    "write_segment_file",
    "read_data_kind",
    "encode_header",
    "decode_header",
    "unpack_prefix",
]

MAGIC = b"RSEGMNT1"
PREFIX_FORMAT = "<8sQqQ"
PREFIX_SIZE = struct.calcsize(PREFIX_FORMAT)
START_OFFSET = len(MAGIC)
START_FORMAT = "<Qq"

# Kinds whose start time lives at START_OFFSET rather than in the JSON header
FIXED_OFFSET_KINDS = frozenset({DataKind.MOVIE})


def encode_header(header: Mapping[str, Any]) -> bytes:
    return json.dumps(header, sort_keys=True, separators=(",", ":")).encode("utf-8")


def unpack_prefix(raw: bytes, path: Path):
    if len(raw) < PREFIX_SIZE:
        raise DataFormatError(f"Truncated segment file prefix: {path}", path)
    magic, start_ms, utc_offset, capacity = struct.unpack(PREFIX_FORMAT, raw[:PREFIX_SIZE])
    if magic != MAGIC:
        raise DataFormatError(f"Not a segment file (bad magic {magic!r}): {path}", path)
    return start_ms, utc_offset, capacity


def decode_header(raw: bytes, capacity: int, path: Path) -> Dict[str, Any]:
    if len(raw) < capacity:
        raise DataFormatError(f"Truncated segment file header: {path}", path)
    try:
        header = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DataFormatError(f"Undecodable segment file header: {path} ({e})", path) from e
    if not isinstance(header, dict) or "kind" not in header:
        raise DataFormatError(f"Segment file header has no data kind: {path}", path)
    return header


class SegmentFile:
    """Decoded contents of one segment file.

    Attributes:
        path: Location of the file
        header: Decoded JSON header
        arrays: Sample arrays from the payload
        prefix_start: Start time from the binary prefix
        capacity: Reserved JSON header size in bytes
    """

    def __init__(self, path: Path, header: Dict[str, Any], arrays: Dict[str, np.ndarray], prefix_start: Time, capacity: int):
        self.path = path
        self.header = header
        self.arrays = arrays
        self.prefix_start = prefix_start
        self.capacity = capacity

    @property
    def kind(self) -> DataKind:
        try:
            return DataKind(self.header["kind"])
        except ValueError:
            return DataKind.UNKNOWN

    @property
    def start(self) -> Optional[Time]:
        """Start time of the segment, from wherever its kind stores it."""
        if self.kind in FIXED_OFFSET_KINDS:
            return self.prefix_start
        timing = self.header.get("timing", {})
        if "start" not in timing:
            return None
        return Time.from_header(timing["start"])

    @classmethod
    def open(cls, path: Union[str, Path]) -> "SegmentFile":
        """Read and decode a segment file.

        Raises:
            FileIOError: If the file cannot be read
            DataFormatError: If the file is not a well-formed segment file
        """
        path = Path(path)
        try:
            with open(path, "rb") as f:
                start_ms, utc_offset, capacity = unpack_prefix(f.read(PREFIX_SIZE), path)
                header = decode_header(f.read(capacity), capacity, path)
                payload = f.read()
        except OSError as e:
            raise FileIOError(f"Failed to read segment file: {path} ({e})", path) from e

        arrays: Dict[str, np.ndarray] = {}
        if payload:
            try:
                with np.load(io.BytesIO(payload), allow_pickle=False) as npz:
                    arrays = {name: npz[name] for name in npz.files}
            except (ValueError, OSError, zipfile.BadZipFile) as e:
                raise DataFormatError(f"Corrupt sample payload in segment file: {path} ({e})", path) from e

        logger.debug(f"Opened {header.get('kind')} segment {path.name} ({len(arrays)} arrays)")
        return cls(path, header, arrays, Time.from_milliseconds(start_ms, utc_offset), capacity)


def write_segment_file(
    path: Union[str, Path],
    header: Dict[str, Any],
    arrays: Mapping[str, np.ndarray],
    start: Optional[Time] = None,
    header_reserve: int = 1024,
) -> Path:
    """Write a new segment file.

    Args:
        path: Output file path (parent directories are created)
        header: JSON-able header; must contain ``kind``
        arrays: Sample arrays stored in the payload
        start: Start time written to the prefix for fixed-offset kinds
        header_reserve: Spare header capacity for later in-place rewrites

    Returns:
        Path of the written file
    """
    path = Path(path)
    kind = DataKind(header["kind"])
    encoded = encode_header(header)
    capacity = len(encoded) + max(0, int(header_reserve))

    start_ms, utc_offset = 0, 0
    if kind in FIXED_OFFSET_KINDS:
        if start is None:
            raise DataFormatError(f"A {kind.value} segment needs a start time in its prefix: {path}", path)
        start_ms, utc_offset = start.to_milliseconds(), start.utc_offset

    payload = io.BytesIO()
    np.savez(payload, **dict(arrays))

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(struct.pack(PREFIX_FORMAT, MAGIC, start_ms, utc_offset, capacity))
            f.write(encoded.ljust(capacity, b" "))
            f.write(payload.getvalue())
    except OSError as e:
        raise FileIOError(f"Failed to write segment file: {path} ({e})", path) from e

    logger.debug(f"Wrote {kind.value} segment {path.name} (header {len(encoded)}/{capacity} bytes)")
    return path


def read_data_kind(path: Union[str, Path]) -> DataKind:
    """Data kind of a segment file, read from its header only."""
    path = Path(path)
    try:
        with open(path, "rb") as f:
            _, _, capacity = unpack_prefix(f.read(PREFIX_SIZE), path)
            header = decode_header(f.read(capacity), capacity, path)
    except OSError as e:
        raise FileIOError(f"Failed to read segment file: {path} ({e})", path) from e
    try:
        return DataKind(header["kind"])
    except ValueError:
        return DataKind.UNKNOWN
