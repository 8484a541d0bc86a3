"""Sample containers returned by segment and series reads.

All containers carry the temporal index that describes their samples so a
caller can map sample positions back to absolute time.
"""

from __future__ import annotations

from typing import List, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from ..timing import TemporalIndex, Time

__all__ = ["Trace", "LogicalTrace", "VideoFrame"]


class Trace(BaseModel):
    """Dense sampled signal, one value per logical sample."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    temporal_index: TemporalIndex = Field(..., description="Time base of the samples")
    values: np.ndarray = Field(..., description="One float per logical sample")

    def __len__(self) -> int:
        return int(self.values.shape[0])


class LogicalTrace(BaseModel):
    """Sparse stream of timestamped values on one named channel.

    Attributes:
        temporal_index: Time base of the owning segment or series
        name: Channel name
        events: Ordered ``(time, value)`` pairs
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    temporal_index: TemporalIndex = Field(..., description="Time base of the owning segment or series")
    name: str = Field(..., description="Channel name")
    events: Tuple[Tuple[Time, float], ...] = Field((), description="Ordered (time, value) pairs")

    @property
    def times(self) -> List[Time]:
        return [t for t, _ in self.events]

    @property
    def values(self) -> List[float]:
        return [v for _, v in self.events]

    def __len__(self) -> int:
        return len(self.events)


class VideoFrame(BaseModel):
    """One decoded movie frame."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    index: int = Field(..., ge=0, description="Logical frame index within its movie or series")
    start: Time = Field(..., description="Start time of the frame")
    pixels: np.ndarray = Field(..., description="Pixel array of shape (rows, cols)")
