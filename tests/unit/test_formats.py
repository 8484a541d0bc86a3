"""Unit tests for segment files.

Tests the binary container, per-kind readers, in-place header mutation
and the kind-dispatching factory.
"""

from fractions import Fraction
import json
from pathlib import Path

import numpy as np
import pytest

from recseries.domain import Color, DataKind, SetStatus
from recseries.exceptions import DataFormatError, FileIOError
from recseries.formats import (
    CellSetSegment,
    EventsSegment,
    GpioSegment,
    MovieSegment,
    SegmentFile,
    VesselSetSegment,
    read_data_kind,
    read_segment,
    rewrite_json_header,
    write_start_time,
)
from recseries.tasks import WorkQueue
from recseries.timing import Time
from synthetic import (
    GpioSynthOptions,
    MovieSynthOptions,
    SegmentTimingOptions,
    write_cell_set_segment,
    write_events_segment,
    write_gpio_segment,
    write_movie_segment,
    write_vessel_set_segment,
)
from synthetic.segments_synth import DEFAULT_START_MS

pytestmark = pytest.mark.unit


class TestContainer:
    """Test the shared binary container."""

    def test_Should_ReadKindFromHeader_When_FileValid(self, tmp_path):
        # Arrange
        path = write_events_segment(tmp_path / "events.rseg")

        # Act & Assert
        assert read_data_kind(path) == DataKind.EVENTS

    def test_Should_RaiseFileIOError_When_FileMissing(self, tmp_path):
        with pytest.raises(FileIOError):
            read_data_kind(tmp_path / "missing.rseg")

    def test_Should_RaiseDataFormatError_When_MagicWrong(self, tmp_path):
        # Arrange
        path = tmp_path / "bogus.rseg"
        path.write_bytes(b"NOTASEGMENTFILE" * 4)

        # Act & Assert
        with pytest.raises(DataFormatError, match="bad magic"):
            SegmentFile.open(path)

    def test_Should_RaiseDataFormatError_When_FileTruncated(self, tmp_path):
        path = tmp_path / "short.rseg"
        path.write_bytes(b"RSEG")
        with pytest.raises(DataFormatError, match="Truncated"):
            read_segment(path)

    def test_Should_StoreMovieStartInPrefix_When_FixedOffsetKind(self, tmp_path):
        """MOVIE files keep the start out of the JSON header."""
        # Arrange
        path = write_movie_segment(tmp_path / "movie.rseg")

        # Act
        opened = SegmentFile.open(path)

        # Assert
        assert "start" not in opened.header["timing"]
        assert opened.start == Time.from_milliseconds(DEFAULT_START_MS)

    def test_Should_StoreStartInJson_When_OtherKind(self, tmp_path):
        path = write_movie_segment(tmp_path / "ext.rseg", kind=DataKind.EXTERNAL_MOVIE)
        assert "start" in SegmentFile.open(path).header["timing"]


class TestMovieSegment:
    """Test reading movie segments."""

    def test_Should_ReadFrameContent_When_FrameStored(self, tmp_path):
        # Arrange
        timing = SegmentTimingOptions(num_samples=5, dropped=[1], cropped=[(3, 3)])
        movie = MovieSegment(write_movie_segment(tmp_path / "m.rseg", MovieSynthOptions(timing=timing)))

        # Act
        frame = movie.get_frame(4)

        # Assert
        assert movie.num_frames == 5
        assert frame.index == 4
        assert frame.pixels.shape == (3, 4)
        assert np.all(frame.pixels == 5)
        assert frame.start == movie.temporal_index.index_to_start_time(4)

    def test_Should_ReturnZeros_When_FrameDropped(self, tmp_path):
        timing = SegmentTimingOptions(num_samples=5, dropped=[1])
        movie = MovieSegment(write_movie_segment(tmp_path / "m.rseg", MovieSynthOptions(timing=timing)))
        assert not np.any(movie.get_frame(1).pixels)

    def test_Should_MapTimestampsThroughStorage_When_FramesDropped(self, tmp_path):
        """Timestamps are stored per recorded frame, like pixels."""
        # Arrange
        timing = SegmentTimingOptions(num_samples=4, step="1/10", dropped=[0])
        path = write_movie_segment(tmp_path / "m.rseg", MovieSynthOptions(timing=timing, first_tick=1_000_000))

        # Act
        movie = MovieSegment(path)

        # Assert
        assert movie.has_frame_timestamps()
        assert movie.get_frame_timestamp(1) == 1_100_000
        assert movie.get_frame_timestamp(3) == 1_300_000
        with pytest.raises(DataFormatError):
            movie.get_frame_timestamp(0)

    def test_Should_RaiseDataFormatError_When_NoTimestampsStored(self, tmp_path):
        movie = MovieSegment(write_movie_segment(tmp_path / "m.rseg"))
        assert not movie.has_frame_timestamps()
        with pytest.raises(DataFormatError, match="no frame timestamps"):
            movie.get_frame_timestamp(0)

    def test_Should_RaiseDataFormatError_When_OpenedWithWrongReader(self, tmp_path):
        path = write_events_segment(tmp_path / "events.rseg")
        with pytest.raises(DataFormatError, match="Expected a"):
            MovieSegment(path)

    def test_Should_DeliverFrameThroughQueue_When_ReadAsync(self, tmp_path):
        # Arrange
        queue = WorkQueue()
        movie = MovieSegment(write_movie_segment(tmp_path / "m.rseg"), queue)
        results = []

        # Act
        movie.get_frame_async(2, results.append)
        assert results == []
        queue.run_pending()

        # Assert
        assert len(results) == 1
        assert np.all(results[0].get().pixels == 3)

    def test_Should_DeliverErrorInResult_When_AsyncReadFails(self, tmp_path):
        timing = SegmentTimingOptions(num_samples=3)
        movie = MovieSegment(write_movie_segment(tmp_path / "m.rseg", MovieSynthOptions(timing=timing)))
        results = []

        movie.get_frame_async(10, results.append)

        assert not results[0].ok
        assert isinstance(results[0].exception, AssertionError)

    def test_Should_DropQueuedReads_When_Cancelled(self, tmp_path):
        queue = WorkQueue()
        movie = MovieSegment(write_movie_segment(tmp_path / "m.rseg"), queue)
        results = []
        movie.get_frame_async(0, results.append)

        movie.cancel_pending_reads()

        assert queue.run_pending() == 0
        assert results == []


class TestObjectSetSegments:
    """Test cell and vessel set readers and curation metadata."""

    def test_Should_ReadTraceAndImage_When_CellSetOpened(self, tmp_path):
        # Arrange
        cells = CellSetSegment(write_cell_set_segment(tmp_path / "cells.rseg", num_objects=3))

        # Act
        trace = cells.get_trace(2)

        # Assert
        assert cells.num_cells == 3
        assert trace.values.dtype == np.float32
        assert trace.values.tolist() == [2000.0 + i for i in range(10)]
        assert cells.get_image(0).shape == (3, 4)

    def test_Should_DefaultCurationMetadata_When_Written(self, tmp_path):
        cells = CellSetSegment(write_cell_set_segment(tmp_path / "cells.rseg"))
        assert cells.get_name(1) == "C01"
        assert cells.get_status(0) == SetStatus.UNDECIDED
        assert cells.get_color(0) == Color(r=255, g=255, b=255, a=255)
        assert cells.is_active(0)

    def test_Should_PersistEdits_When_ClosedForWriting(self, tmp_path):
        """Metadata edits are rewritten in place and survive reopening."""
        # Arrange
        path = write_cell_set_segment(tmp_path / "cells.rseg")
        size_before = path.stat().st_size
        cells = CellSetSegment(path)

        # Act
        cells.set_status(0, SetStatus.ACCEPTED)
        cells.set_name(1, "renamed")
        cells.set_color(1, Color(r=1, g=2, b=3))
        cells.set_active(0, False)
        cells.close_for_writing()
        reopened = CellSetSegment(path)

        # Assert
        assert path.stat().st_size == size_before
        assert reopened.get_status(0) == SetStatus.ACCEPTED
        assert reopened.get_name(1) == "renamed"
        assert reopened.get_color(1) == Color(r=1, g=2, b=3, a=255)
        assert not reopened.is_active(0)

    def test_Should_ReadDirections_When_VesselSetOpened(self, tmp_path):
        vessels = VesselSetSegment(write_vessel_set_segment(tmp_path / "vessels.rseg"))
        assert vessels.num_vessels == 2
        assert vessels.get_direction_trace(1).values[3] == -1003.0


class TestChannelSegments:
    """Test events and GPIO readers."""

    def test_Should_ConvertOffsetsToTimes_When_LogicalDataRead(self, tmp_path):
        # Arrange
        timing = SegmentTimingOptions(num_samples=10, step="1/10")
        events = EventsSegment(write_events_segment(tmp_path / "events.rseg", timing=timing, events_per_channel=1))

        # Act
        trace = events.get_logical_data("C01")

        # Assert
        assert events.channel_names == ["C00", "C01"]
        assert trace.name == "C01"
        assert trace.times == [events.temporal_index.start + Fraction(1, 2)]
        assert trace.values == [2.0]

    def test_Should_RaiseDataFormatError_When_ChannelUnknown(self, tmp_path):
        events = EventsSegment(write_events_segment(tmp_path / "events.rseg"))
        with pytest.raises(DataFormatError, match="No channel named"):
            events.get_logical_data("nope")

    def test_Should_ReadFirstTsc_When_GpioWritten(self, tmp_path):
        gpio = GpioSegment(write_gpio_segment(tmp_path / "gpio.rseg", first_tsc=42))
        assert json.loads(gpio.get_extra_properties())["firstTsc"] == 42
        assert not gpio.is_analog

    def test_Should_ReadDenseTrace_When_GpioAnalog(self, tmp_path):
        gpio = GpioSegment(write_gpio_segment(tmp_path / "gpio.rseg", GpioSynthOptions(analog=True)))
        assert gpio.is_analog
        assert gpio.channel_names == ["analog"]
        assert gpio.get_analog_data().values.tolist() == list(range(10))

    def test_Should_RaiseDataFormatError_When_AnalogReadOnDigital(self, tmp_path):
        gpio = GpioSegment(write_gpio_segment(tmp_path / "gpio.rseg"))
        with pytest.raises(DataFormatError, match="digital data only"):
            gpio.get_analog_data()

    def test_Should_RejectStreamsAndAnalogTogether_When_Writing(self, tmp_path, ten_samples):
        with pytest.raises(DataFormatError):
            GpioSegment.write(tmp_path / "gpio.rseg", ten_samples, streams={"a": ([], [])}, analog=np.zeros(10))


class TestWriteStartTime:
    """Test in-place start time mutation."""

    def test_Should_RewritePrefixOnly_When_MovieKind(self, tmp_path):
        # Arrange
        path = write_movie_segment(tmp_path / "movie.rseg")
        before = path.read_bytes()
        new_start = Time.from_milliseconds(DEFAULT_START_MS + 1234, utc_offset=-3600)

        # Act
        write_start_time(path, new_start, DataKind.MOVIE)
        after = path.read_bytes()

        # Assert
        assert len(after) == len(before)
        assert after[:8] == before[:8]
        assert after[24:] == before[24:]
        start = MovieSegment(path).temporal_index.start
        assert start == new_start
        assert start.utc_offset == -3600

    def test_Should_RewriteJsonHeader_When_ExternalMovie(self, tmp_path):
        # Arrange
        path = write_movie_segment(tmp_path / "ext.rseg", kind=DataKind.EXTERNAL_MOVIE)
        size_before = path.stat().st_size
        new_start = Time.from_milliseconds(DEFAULT_START_MS + 500)

        # Act
        write_start_time(path, new_start, DataKind.EXTERNAL_MOVIE)

        # Assert
        assert path.stat().st_size == size_before
        assert MovieSegment(path).temporal_index.start == new_start

    def test_Should_KeepSamplePayload_When_HeaderRewritten(self, tmp_path):
        path = write_gpio_segment(tmp_path / "gpio.rseg", GpioSynthOptions(analog=True))
        write_start_time(path, Time.from_milliseconds(0), DataKind.GPIO)
        assert GpioSegment(path).get_analog_data().values.tolist() == list(range(10))

    def test_Should_RaiseDataFormatError_When_HeaderOutgrowsCapacity(self, tmp_path):
        """A header that no longer fits its reserved capacity is rejected untouched."""
        # Arrange
        path = write_events_segment(tmp_path / "events.rseg")
        before = path.read_bytes()
        header = dict(SegmentFile.open(path).header)
        header["padding"] = "x" * 5000

        # Act & Assert
        with pytest.raises(DataFormatError, match="exceeds the reserved capacity"):
            rewrite_json_header(path, header)
        assert path.read_bytes() == before

    def test_Should_RaiseFileIOError_When_FileMissing(self, tmp_path):
        with pytest.raises(FileIOError):
            write_start_time(Path(tmp_path / "missing.rseg"), Time(0), DataKind.GPIO)


class TestReadSegment:
    @pytest.mark.parametrize(
        "writer,expected",
        [
            (write_movie_segment, MovieSegment),
            (write_cell_set_segment, CellSetSegment),
            (write_vessel_set_segment, VesselSetSegment),
            (write_events_segment, EventsSegment),
            (write_gpio_segment, GpioSegment),
        ],
    )
    def test_Should_PickReaderByKind_When_Opened(self, tmp_path, writer, expected):
        segment = read_segment(writer(tmp_path / "segment.rseg"))
        assert type(segment) is expected
