"""Unit tests for settings loading and validation.

Tests TOML loading, strict schema validation, level normalization and
environment variable precedence over TOML values.
"""

import os
from pathlib import Path

from pydantic import ValidationError
import pytest

from recseries.config import ExportConfig, LoggingConfig, Settings, load_settings

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep RECSERIES_* variables of the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.upper().startswith("RECSERIES_"):
            monkeypatch.delenv(name)


class TestDefaults:
    def test_Should_UseDefaults_When_NoFileGiven(self):
        """Should fall back to INFO logging and raw tick export."""
        settings = load_settings()

        assert settings.logging.level == "INFO"
        assert settings.logging.structured is False
        assert settings.export.time_format == "tsc"
        assert settings.export.float_precision == 6


class TestTomlLoading:
    """Test settings loaded from TOML files."""

    def test_Should_LoadValues_When_ValidTomlProvided(self, settings_toml):
        """Should read every section of the TOML file."""
        settings = load_settings(settings_toml)

        assert settings.logging.level == "DEBUG"
        assert settings.export.time_format == "first"

    def test_Should_RaiseFileNotFoundError_When_FileMissing(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_settings(tmp_path / "missing.toml")

    def test_Should_RejectSettings_When_UnknownSectionPresent(self, tmp_path):
        """Should reject keys outside the schema."""
        path = tmp_path / "bad.toml"
        path.write_text("[pipeline]\nname = 'x'\n")

        with pytest.raises(ValidationError):
            load_settings(path)

    def test_Should_RejectSettings_When_UnknownKeyInSection(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[export]\ncolumns = 3\n")

        with pytest.raises(ValidationError):
            load_settings(path)

    def test_Should_AcceptPathString_When_Loading(self, settings_toml):
        assert load_settings(str(settings_toml)).logging.level == "DEBUG"


class TestEnvironmentOverrides:
    """Test that environment variables beat TOML values."""

    def test_Should_PreferEnvironment_When_TomlAlsoSetsValue(self, settings_toml, monkeypatch):
        # Arrange
        monkeypatch.setenv("RECSERIES_LOGGING__LEVEL", "warning")

        # Act
        settings = load_settings(settings_toml)

        # Assert
        assert settings.logging.level == "WARNING"
        assert settings.export.time_format == "first"

    def test_Should_ReadNestedValue_When_OnlyEnvironmentSet(self, monkeypatch):
        monkeypatch.setenv("RECSERIES_EXPORT__FLOAT_PRECISION", "3")
        assert Settings().export.float_precision == 3


class TestValidation:
    @pytest.mark.parametrize("level", ["debug", "Info", "WARNING", "error", "critical"])
    def test_Should_NormalizeLevel_When_ValidLevelGiven(self, level):
        assert LoggingConfig(level=level).level == level.upper()

    def test_Should_RejectLevel_When_Unknown(self):
        with pytest.raises(ValidationError, match="Invalid logging.level"):
            LoggingConfig(level="VERBOSE")

    def test_Should_RejectFormat_When_Unknown(self):
        with pytest.raises(ValidationError):
            ExportConfig(time_format="iso")

    def test_Should_RejectPrecision_When_OutOfRange(self):
        with pytest.raises(ValidationError):
            ExportConfig(float_precision=20)

    def test_Should_BeImmutable_When_Loaded(self):
        config = LoggingConfig()
        with pytest.raises(ValidationError):
            config.level = "DEBUG"


def test_Should_LoadExampleToml_When_WrittenByHand(tmp_path: Path):
    """Should load the example shown in the module documentation."""
    path = tmp_path / "recseries.toml"
    path.write_text('[logging]\nlevel = "DEBUG"\n\n[export]\nfloat_precision = 6\ntime_format = "unix"\n')

    settings = load_settings(path)

    assert settings.export.time_format == "unix"
