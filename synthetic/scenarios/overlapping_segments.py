"""Overlapping scenario: two segments share the same time window.

Configuration:
- 3 movie segments of 3, 4 and 5 samples
- The second and third segments both start at T0 + 60 s
"""

from pathlib import Path
from typing import List, Union

from recseries.domain import DataKind
from synthetic.segments_synth import DEFAULT_START_MS, SegmentTimingOptions, write_segment


def make_series(root: Union[str, Path]) -> List[Path]:
    """Generate segment files whose time windows overlap."""
    root = Path(root)
    starts = [DEFAULT_START_MS, DEFAULT_START_MS + 60_000, DEFAULT_START_MS + 60_000]
    return [
        write_segment(root / f"overlap_{k:04d}.rseg", DataKind.MOVIE, SegmentTimingOptions(start_ms=start, num_samples=count))
        for k, (start, count) in enumerate(zip(starts, [3, 4, 5]))
    ]
