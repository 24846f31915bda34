"""Shared logging configuration."""

from pathlib import Path
from typing import Literal, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from .config_utils import expand_path_variables


class LoggingConfig(BaseModel):
    """Logging section of the melodex configuration.

    ``setup_logging`` consumes these values; see ``apply_logging_config``.
    """

    model_config = ConfigDict(extra='forbid')

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level"
    )
    format: Literal["simple", "detailed", "json"] = Field(
        default="simple",
        description="Console log format"
    )
    file: str | None = Field(
        default=None,
        description="Optional rotating JSON log file (supports ${USER_LOGS} etc.)"
    )
    max_file_size_mb: int = Field(default=10, ge=1)
    backup_count: int = Field(default=5, ge=0)

    @field_validator('level', mode='before')
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator('format', mode='before')
    @classmethod
    def normalize_format(cls, v: str) -> str:
        if isinstance(v, str):
            return v.lower()
        return v

    @property
    def log_file_path(self) -> Optional[Path]:
        """Expanded log file path, or None when file logging is off."""
        if not self.file:
            return None
        return Path(expand_path_variables(self.file))


def apply_logging_config(config: LoggingConfig) -> None:
    """Configure the root logger from a LoggingConfig."""
    from .logging import setup_logging

    setup_logging(
        level=config.level,
        format=config.format,
        log_file=config.log_file_path,
        max_file_size_mb=config.max_file_size_mb,
        backup_count=config.backup_count,
    )
