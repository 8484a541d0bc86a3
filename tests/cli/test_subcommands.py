"""CLI subcommand tests.

Runs every command through Typer's CliRunner on synthetic segment files
and checks output, written files and exit codes.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from recseries.cli import app
from recseries.formats import read_segment
from synthetic.segments_synth import DEFAULT_START_MS
from synthetic.series_synth import PairedRecordingOptions, build_paired_recording

pytestmark = pytest.mark.cli

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_root_logger(monkeypatch):
    """Every command reconfigures the root logger; undo it after each test."""
    monkeypatch.delenv("RECSERIES_LOGGING__LEVEL", raising=False)
    monkeypatch.delenv("RECSERIES_EXPORT__TIME_FORMAT", raising=False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestInfoCommand:
    """Test the info subcommand."""

    def test_Should_DescribeSeries_When_FilesCompatible(self, movie_paths):
        """Info SHALL print the synthetic series name and aggregate counts."""
        # Arrange
        args = ["info"] + [str(p) for p in movie_paths]

        # Act
        result = runner.invoke(app, args)

        # Assert
        assert result.exit_code == 0, result.output
        assert "**MovieSeries(" in result.output
        assert "segments: 3" in result.output
        assert "samples:  12 (12 valid)" in result.output

    def test_Should_PrintHashes_When_HashRequested(self, movie_paths):
        result = runner.invoke(app, ["info", "--hash", str(movie_paths[0])])

        assert result.exit_code == 0, result.output
        assert "sha256=" in result.output

    def test_Should_FailWithNonZeroExit_When_SegmentsOverlap(self, overlapping_paths):
        """Info SHALL exit 1 with the series error on stderr."""
        result = runner.invoke(app, ["info"] + [str(p) for p in overlapping_paths])

        assert result.exit_code == 1
        assert "temporally overlaps" in result.output

    def test_Should_FailWithNonZeroExit_When_FileMissing(self, tmp_path):
        result = runner.invoke(app, ["info", str(tmp_path / "missing.rseg")])
        assert result.exit_code == 1


class TestSyncCommand:
    """Test the sync subcommand."""

    def test_Should_RewriteStartAndReport_When_FilesPaired(self, paired, tmp_path):
        # Arrange
        report = tmp_path / "report.json"

        # Act
        result = runner.invoke(app, ["sync", str(paired.reference), str(paired.targets[0]), "--report", str(report)])

        # Assert
        assert result.exit_code == 0, result.output
        assert "rewritten" in result.output
        data = json.loads(report.read_text())
        assert data["status"] == "complete"
        assert data["corrections"][0]["expected_start_ms"] == DEFAULT_START_MS + 500
        assert read_segment(paired.targets[0]).temporal_index.start.to_milliseconds() == DEFAULT_START_MS + 500

    def test_Should_ReportUnchanged_When_RunTwice(self, paired):
        runner.invoke(app, ["sync", str(paired.reference), str(paired.targets[0])])

        result = runner.invoke(app, ["sync", str(paired.reference), str(paired.targets[0])])

        assert result.exit_code == 0, result.output
        assert "unchanged" in result.output

    def test_Should_FailWithNonZeroExit_When_UuidsDiffer(self, tmp_path):
        recording = build_paired_recording(tmp_path, PairedRecordingOptions(target_recording_uuid="AC-other"))

        result = runner.invoke(app, ["sync", str(recording.reference), str(recording.targets[0])])

        assert result.exit_code == 1
        assert "not paired and synchronized" in result.output

    def test_Should_FailWithNonZeroExit_When_TargetMissing(self, paired, tmp_path):
        """Sync SHALL still align the other targets but exit 1."""
        result = runner.invoke(app, ["sync", str(paired.reference), str(tmp_path / "missing.rseg"), str(paired.targets[0])])

        assert result.exit_code == 1
        assert "failed" in result.output
        assert read_segment(paired.targets[0]).temporal_index.start.to_milliseconds() == DEFAULT_START_MS + 500


class TestExportTimestampsCommand:
    """Test the export-timestamps subcommand."""

    def test_Should_WriteCsv_When_InputsPaired(self, paired, tmp_path):
        # Arrange
        output = tmp_path / "ts.csv"

        # Act
        result = runner.invoke(
            app,
            ["export-timestamps", "--reference", f"gpio={paired.reference}", "--align", f"cam={paired.targets[0]}", "--output", str(output)],
        )

        # Assert
        assert result.exit_code == 0, result.output
        with open(output, newline="") as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["cam Timestamp (s)"] == str(5_000_000_000 + 500_000)

    def test_Should_UseSettingsFormat_When_NoFormatGiven(self, paired, tmp_path, settings_toml):
        """The default time format comes from the [export] section of the settings."""
        output = tmp_path / "ts.csv"

        result = runner.invoke(
            app,
            ["--config", str(settings_toml), "export-timestamps", "--reference", f"gpio={paired.reference}", "--align", f"cam={paired.targets[0]}", "-o", str(output)],
        )

        assert result.exit_code == 0, result.output
        with open(output, newline="") as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["cam Timestamp (s)"] == "0.500000"

    def test_Should_OverrideSettings_When_FormatGiven(self, paired, tmp_path, settings_toml):
        output = tmp_path / "ts.csv"

        result = runner.invoke(
            app,
            [
                "--config",
                str(settings_toml),
                "export-timestamps",
                "--reference",
                f"gpio={paired.reference}",
                "--align",
                f"cam={paired.targets[0]}",
                "-o",
                str(output),
                "--format",
                "tsc",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "5000500000" in output.read_text()

    def test_Should_FailWithUsageError_When_InputMalformed(self, paired, tmp_path):
        result = runner.invoke(app, ["export-timestamps", "--reference", str(paired.reference), "--align", "x=y", "-o", str(tmp_path / "ts.csv")])
        assert result.exit_code != 0


class TestGlobalOptions:
    def test_Should_FailWithNonZeroExit_When_ConfigMissing(self, movie_paths, tmp_path):
        result = runner.invoke(app, ["--config", str(tmp_path / "missing.toml"), "info", str(movie_paths[0])])

        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_Should_FailWithNonZeroExit_When_LogLevelInvalid(self, movie_paths):
        result = runner.invoke(app, ["--log-level", "LOUD", "info", str(movie_paths[0])])
        assert result.exit_code == 1

    def test_Should_ShowHelp_When_NoArguments(self):
        result = runner.invoke(app, [])
        assert "info" in result.output
        assert "export-timestamps" in result.output
