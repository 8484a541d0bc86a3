"""Settings for recseries.

Settings are read from an optional TOML file and from environment variables
prefixed with ``RECSERIES_``. Nested sections use ``__`` as delimiter, so
``RECSERIES_LOGGING__LEVEL=DEBUG`` sets ``settings.logging.level``.
Environment variables take precedence over values from the TOML file.

Example TOML:
-------------
    [logging]
    level = "DEBUG"

    [export]
    float_precision = 6
    time_format = "unix"
"""

from pathlib import Path
from typing import Literal, Optional, Union

try:
    import tomllib
except ImportError:
    import tomli as tomllib

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

__all__ = ["LoggingConfig", "ExportConfig", "Settings", "load_settings"]

VALID_LOGGING_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    level: str = Field(default="INFO", description="Root log level")
    structured: bool = Field(default=False, description="Emit JSON log lines")

    @field_validator("level", mode="before")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = str(v).upper()
        if level not in VALID_LOGGING_LEVELS:
            raise ValueError(f"Invalid logging.level: {v}. Must be one of {sorted(VALID_LOGGING_LEVELS)}")
        return level


class ExportConfig(BaseModel):
    """Timestamp export configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    float_precision: int = Field(default=6, ge=0, le=12, description="Decimals written for timestamps in seconds")
    time_format: Literal["tsc", "first", "unix"] = Field(default="tsc", description="Default exported time format")


class Settings(BaseSettings):
    """Top-level recseries settings."""

    model_config = SettingsConfigDict(
        env_prefix="RECSERIES_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="forbid",
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Environment first, so it overrides values loaded from TOML."""
        return (
            env_settings,
            init_settings,
            file_secret_settings,
        )


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """Load settings from an optional TOML file plus the environment.

    Args:
        path: Optional path to a TOML settings file

    Returns:
        Validated Settings instance

    Raises:
        FileNotFoundError: If path is given but does not exist
        ValidationError: If settings violate the schema
    """
    if path is None:
        return Settings()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "rb") as f:
        data = tomllib.load(f)

    return Settings(**data)
