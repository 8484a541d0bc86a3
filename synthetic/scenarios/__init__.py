"""Scenario builders for synthetic segment fixtures.

Pre-configured scenarios that wrap the synthetic generators with specific
parameter combinations for common test cases:

- three_segments: Three compatible segments separated by gaps
- overlapping_segments: Two segments sharing one time window
- paired_devices: GPIO reference plus movies with wrong start times

Example:
    >>> from synthetic.scenarios import three_segments
    >>> paths = three_segments.make_series(root="/tmp/test")
"""

from . import overlapping_segments, paired_devices, three_segments

__all__ = [
    "three_segments",
    "overlapping_segments",
    "paired_devices",
]
