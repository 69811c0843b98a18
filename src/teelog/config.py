"""
Logger Configuration.

Every key can be given explicitly, read from the environment with the
``TEELOG_`` prefix, or loaded from the ``logger:`` section of a YAML file.
Zero and empty values fall back to the documented default, so a merged
configuration is always complete.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

LOG_DIR = "logs"
LOG_FILE = "app.log"
ERROR_LOG_FILE = "error.log"

DEFAULT_LEVEL = "info"
DEFAULT_TIME_FORMAT = "rfc3339nano"
DEFAULT_MAX_SIZE_MB = 100
DEFAULT_MAX_BACKUPS = 5
DEFAULT_MAX_AGE_DAYS = 30
DEFAULT_BUFFER_SIZE = 256 * 1024
DEFAULT_ASYNC_BUFFER_SIZE = 256 * 1024
DEFAULT_ASYNC_FLUSH_INTERVAL_MS = 1000

# Keys whose zero/empty value means "use the default".
_DEFAULTED_KEYS = (
    "level",
    "filename",
    "error_filename",
    "time_format",
    "max_size",
    "max_backups",
    "max_age",
    "buffer_size",
    "async_buffer_size",
    "async_flush_interval",
)


class LoggerConfig(BaseSettings):
    """Validated logger settings."""

    model_config = SettingsConfigDict(
        env_prefix="TEELOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    level: str = Field(default=DEFAULT_LEVEL, description="debug, info, warn, error, panic or fatal")
    filename: str = Field(default=str(Path(LOG_DIR) / LOG_FILE), description="Main log file path")
    error_filename: str = Field(
        default=str(Path(LOG_DIR) / ERROR_LOG_FILE),
        description="Error log file path (error level and above)",
    )
    time_format: str = Field(
        default=DEFAULT_TIME_FORMAT,
        description="rfc3339nano, rfc3339, epoch or a strftime pattern",
    )
    max_size: int = Field(default=DEFAULT_MAX_SIZE_MB, description="Max size of one log file (MB)")
    max_backups: int = Field(default=DEFAULT_MAX_BACKUPS, description="Rotated files to keep")
    max_age: int = Field(default=DEFAULT_MAX_AGE_DAYS, description="Days to keep rotated files")
    buffer_size: int = Field(default=DEFAULT_BUFFER_SIZE, description="Write buffer size (bytes)")
    compress: bool = Field(default=True, description="Gzip rotated files")
    console: bool = Field(default=True, description="Also write to stdout")
    disable_caller: bool = Field(default=False, description="Omit the caller key")
    disable_stacktrace: bool = Field(default=False, description="Omit stack traces at error level")
    enable_async: bool = Field(default=False, description="Flush buffers periodically in the background")
    async_buffer_size: int = Field(default=DEFAULT_ASYNC_BUFFER_SIZE, description="Async buffer size (bytes)")
    async_flush_interval: int = Field(
        default=DEFAULT_ASYNC_FLUSH_INTERVAL_MS,
        description="Background flush interval (ms)",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_empty_values(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return {
            key: value
            for key, value in data.items()
            if not (key in _DEFAULTED_KEYS and (value is None or value == "" or value == 0))
        }

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def async_flush_seconds(self) -> float:
        return self.async_flush_interval / 1000.0


ConfigSource = Union[LoggerConfig, Mapping[str, Any], None]


def merge_with_defaults(config: ConfigSource = None) -> LoggerConfig:
    """Return a complete configuration; merging an already merged one is a no-op."""
    if isinstance(config, LoggerConfig):
        return config
    try:
        return LoggerConfig(**dict(config or {}))
    except ValidationError as exc:
        raise ConfigurationError("invalid logger configuration", details={"errors": exc.errors()}) from exc


def load_config_from_yaml(config_path: Union[str, Path]) -> LoggerConfig:
    """Load the ``logger:`` section of a YAML file."""
    path = Path(config_path)
    if not path.is_file():
        raise ConfigurationError(f"config file not found: {path}", details={"path": str(path)})

    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"failed to parse config file: {exc}", details={"path": str(path)}) from exc

    if not isinstance(document, dict):
        raise ConfigurationError("config file must contain a mapping", details={"path": str(path)})
    section: Optional[Any] = document.get("logger")
    if section is None:
        section = {}
    if not isinstance(section, dict):
        raise ConfigurationError("'logger' section must be a mapping", details={"path": str(path)})

    return merge_with_defaults(section)
