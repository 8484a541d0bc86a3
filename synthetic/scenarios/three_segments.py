"""Three-segment scenario: compatible segments separated by gaps.

Configuration:
- 3 segments of 3, 4 and 5 samples (12 in total)
- Starts at T0, T0 + 60 s and T0 + 120 s
- Step 1/20 s, spacing 4 columns x 3 rows
"""

from pathlib import Path
from typing import List, Union

from recseries.domain import DataKind
from synthetic.series_synth import SeriesSynthOptions, build_series_files


def make_series(root: Union[str, Path], *, kind: DataKind = DataKind.MOVIE, **knobs) -> List[Path]:
    """Generate the segment files of a three-segment series.

    Args:
        root: Output directory
        kind: Data kind of every segment
        **knobs: Kind-specific writer options (e.g. num_objects=3)

    Returns:
        Segment file paths in start-time order

    Example:
        >>> from synthetic.scenarios import three_segments
        >>> paths = three_segments.make_series("/tmp/test")
        >>> len(paths)
        3
    """
    return build_series_files(root, SeriesSynthOptions(kind=kind, samples_per_segment=[3, 4, 5], knobs=knobs))
