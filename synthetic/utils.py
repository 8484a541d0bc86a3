"""Shared helpers of the synthetic segment generators.

- Numbered segment file names from a ``*`` pattern
- Parent directory creation before a writer opens its file
- Seeded random streams, one per (seed, purpose) pair
"""

from __future__ import annotations

from pathlib import Path
import random
from typing import List, Union

import numpy as np


def numbered_paths(pattern: Union[str, Path], count: int, *, pad: int = 4) -> List[Path]:
    """File paths of ``count`` consecutive segments.

    The ``*`` in the file name becomes a 1-based index zero-padded to
    ``pad`` digits: ``segment_*.rseg`` gives ``segment_0001.rseg``, ...

    Raises:
        ValueError: If the file name has no ``*``
    """
    pattern = Path(pattern)
    if "*" not in pattern.name:
        raise ValueError(f"Segment file pattern needs a '*' placeholder: {pattern}")
    return [pattern.with_name(pattern.name.replace("*", f"{i:0{pad}d}")) for i in range(1, count + 1)]


def ensure_parent_dir(path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def deterministic_rng(seed: int, *components: Union[str, int]) -> random.Random:
    """Reproducible stream for one purpose, independent of other components.

    ``deterministic_rng(7, "ticks")`` and ``deterministic_rng(7, "images")``
    never share state, so adding draws in one generator does not shift the
    values of another.
    """
    return random.Random(":".join(str(c) for c in (seed,) + components))


def deterministic_numpy_rng(seed: int, *components: Union[str, int]) -> np.random.Generator:
    """Numpy counterpart of `deterministic_rng` for array-valued draws."""
    return np.random.default_rng(deterministic_rng(seed, *components).getrandbits(64))
