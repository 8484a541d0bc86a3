"""Unit tests for the cli module.

Tests command registration and NAME=PATH argument parsing without
running any command.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import typer

pytestmark = pytest.mark.unit


class TestCLISubcommands:
    """Test CLI subcommand availability."""

    @pytest.mark.parametrize("name", ["info", "sync", "export-timestamps"])
    def test_Should_ProvideCommand_When_Imported(self, name):
        """THE MODULE SHALL provide the info, sync and export-timestamps subcommands."""
        # Arrange & Act
        from recseries.cli import app

        # Assert
        commands = [cmd.name for cmd in app.registered_commands]
        assert name in commands


class TestParseNamedPaths:
    """Test parsing of NAME=PATH[,PATH...] export inputs."""

    def test_Should_SplitNameAndPaths_When_SeveralPathsGiven(self):
        # Arrange
        from recseries.cli import parse_named_paths

        # Act
        parsed = parse_named_paths("cam = a.rseg, b.rseg")

        # Assert
        assert parsed.name == "cam"
        assert parsed.paths == (Path("a.rseg"), Path("b.rseg"))

    def test_Should_KeepEqualsInPath_When_PathContainsEquals(self):
        from recseries.cli import parse_named_paths

        assert parse_named_paths("gpio=dir=1/gpio.rseg").paths == (Path("dir=1/gpio.rseg"),)

    @pytest.mark.parametrize("value", ["gpio.rseg", "=gpio.rseg", "gpio=", "gpio= , "])
    def test_Should_RaiseBadParameter_When_Malformed(self, value):
        from recseries.cli import parse_named_paths

        with pytest.raises(typer.BadParameter):
            parse_named_paths(value)
