"""GPIO segments.

A GPIO segment is either analog (one dense trace sampled on the segment's
time base) or digital (sparse logical events per named channel). Its
extra properties carry ``firstTsc``, the device tick of the first sample,
which makes a GPIO file usable as a timing reference.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np

from ..domain import DataKind, DataType, Trace
from ..exceptions import DataFormatError
from ..tasks import ReadCallback, WorkQueue
from ..timing import TemporalIndex
from .base import build_header
from .traces import ChannelStreamSegment

__all__ = ["GpioSegment"]


class GpioSegment(ChannelStreamSegment):
    """General purpose I/O recording."""

    data_kinds = frozenset({DataKind.GPIO})

    def __init__(self, file_path: Union[str, Path], queue: Optional[WorkQueue] = None):
        super().__init__(file_path, queue)
        self._is_analog = bool(self.header.get("is_analog", False))
        if self._is_analog and self._array("analog").shape[0] != self.temporal_index.num_samples:
            raise DataFormatError(f"Analog GPIO trace length does not match the number of samples: {file_path}", file_path)

    @property
    def is_analog(self) -> bool:
        return self._is_analog

    def get_analog_data(self) -> Trace:
        if not self._is_analog:
            raise DataFormatError(f"GPIO file holds digital data only: {self.file_path}", self.file_path)
        return Trace(temporal_index=self.temporal_index, values=np.array(self._array("analog"), dtype=np.float32))

    def get_analog_data_async(self, callback: ReadCallback) -> None:
        self._read_async(self.get_analog_data, callback)

    @classmethod
    def write(
        cls,
        path: Union[str, Path],
        temporal_index: TemporalIndex,
        streams: Optional[Dict[str, Any]] = None,
        analog: Optional[np.ndarray] = None,
        analog_channel: str = "analog",
        first_tsc: Optional[int] = None,
        extra_properties: Optional[dict] = None,
        header_reserve: int = 1024,
    ) -> Path:
        """Write a GPIO segment, digital (``streams``) or analog (``analog``).

        Args:
            path: Output file path
            temporal_index: Time base of the segment
            streams: Channel name -> ``(offsets_us, values)`` for digital data
            analog: Dense samples for analog data
            analog_channel: Channel name reported for analog data
            first_tsc: Device tick of the first sample, stored as ``firstTsc``
            extra_properties: Other acquisition metadata
            header_reserve: Spare header capacity
        """
        if (streams is None) == (analog is None):
            raise DataFormatError("A GPIO segment holds either digital streams or analog data")

        properties = dict(extra_properties or {})
        if first_tsc is not None:
            properties["firstTsc"] = int(first_tsc)

        if analog is not None:
            channels: Sequence[str] = [analog_channel]
            arrays = {"analog": np.asarray(analog, dtype=np.float32)}
        else:
            channels = list(streams.keys())
            arrays = cls._channel_arrays(streams)

        header = build_header(
            DataKind.GPIO,
            DataType.F32,
            temporal_index,
            extra_properties=json.dumps(properties),
            channels=list(channels),
            is_analog=analog is not None,
        )
        return cls._write(path, header, arrays, temporal_index, header_reserve)
