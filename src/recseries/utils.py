"""Foundation utilities for recseries.

Small helpers shared by the CLI and the synchronization/export layer:
report and table writers, segment file hashing, timing and logging
setup. This module must not import any other recseries module.

Writers replace their output atomically: the content goes to a temporary
file next to the target, which is renamed over the target only once it
is complete. A failed or interrupted export never leaves a partial file.
"""

from __future__ import annotations

from contextlib import contextmanager
import csv
from enum import Enum
from fractions import Fraction
import hashlib
import json
import logging
import os
from pathlib import Path
import tempfile
import time
from typing import IO, Any, Callable, Iterator

from pydantic import BaseModel

__all__ = [
    "write_json",
    "write_csv",
    "file_hash",
    "time_block",
    "JsonLogFormatter",
    "configure_logging",
]


# ============================================================================
# Atomic writes
# ============================================================================


def _replace_atomically(path: Path | str, write: Callable[[IO[str]], None], newline: str | None = None) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline=newline) as f:
            write(f)
        os.replace(tmp_name, path)
    except BaseException:
        os.unlink(tmp_name)
        raise
    return path


# ============================================================================
# JSON reports
# ============================================================================


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (Path, Fraction)):
        return str(value)
    if isinstance(value, BaseException):
        return f"{type(value).__name__}: {value}"
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def write_json(path: Path | str, obj: Any, indent: int = 2) -> Path:
    """Write a report as indented JSON.

    Pydantic models, paths, enums, fractions and exceptions nested in
    ``obj`` are converted to plain JSON values.

    Returns:
        The written path
    """
    return _replace_atomically(path, lambda f: json.dump(obj, f, indent=indent, ensure_ascii=False, default=_json_default))


# ============================================================================
# CSV tables
# ============================================================================


def write_csv(
    path: Path | str,
    rows: list[dict[str, Any]],
    fieldnames: list[str] | None = None,
) -> Path:
    """Write rows to a CSV file with explicit column order.

    Keys missing from a row are written as empty cells, so columns of
    different lengths line up from the top.

    Args:
        path: Target CSV file path
        rows: One dictionary per table row
        fieldnames: Column order (default: keys of the first row)

    Returns:
        The written path

    Raises:
        ValueError: If rows is empty and no fieldnames are given
        OSError: If the file cannot be written
    """
    if fieldnames is None:
        if not rows:
            raise ValueError("Cannot write CSV: rows is empty and no fieldnames provided")
        fieldnames = list(rows[0].keys())

    def write(f: IO[str]) -> None:
        writer = csv.DictWriter(f, fieldnames=fieldnames, restval="")
        writer.writeheader()
        writer.writerows(rows)

    return _replace_atomically(path, write, newline="")


# ============================================================================
# Segment file hashing
# ============================================================================


def file_hash(path: Path | str, algorithm: str = "sha256", chunk_size: int = 1 << 20) -> str:
    """Hex digest of a file's content, read in chunks.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the algorithm is not supported by hashlib
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    try:
        hasher = hashlib.new(algorithm)
    except ValueError as e:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}") from e

    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


# ============================================================================
# Timing
# ============================================================================


@contextmanager
def time_block(label: str, logger: logging.Logger | None = None) -> Iterator[None]:
    """Time a block and report it on exit, even if the block raises.

    Example:
        with time_block("Reading timestamps of 3 series", logger):
            columns = [read_series_ticks(s) for s in series]
        # "Reading timestamps of 3 series completed in 0.012s"
    """
    started = time.perf_counter()
    try:
        yield
    finally:
        message = f"{label} completed in {time.perf_counter() - started:.3f}s"
        if logger is not None:
            logger.info(message)
        else:
            print(message)


# ============================================================================
# Logging configuration
# ============================================================================


class JsonLogFormatter(logging.Formatter):
    """One JSON object per record, for log collectors."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def configure_logging(level: str = "INFO", structured: bool = False) -> None:
    """Install a single stderr handler on the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL), any case
        structured: Emit JSON lines instead of human-readable text

    Raises:
        ValueError: If level is not a known logging level
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    handler = logging.StreamHandler()
    handler.setLevel(numeric_level)
    if structured:
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)
    root_logger.addHandler(handler)
