"""Settings consumed by seekpage.infra.logging.setup_logging()."""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """Root logger level and console output.

    Read from LOG_* variables, e.g. LOG_LEVEL=debug, LOG_JSON_LOGS=false.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    level: LogLevel = Field(default="INFO", description="Root logger level")
    json_logs: bool = Field(default=True, description="JSON Lines instead of plain text")
    console_enabled: bool = Field(default=True, description="Write records to stderr")

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @property
    def level_int(self) -> int:
        return logging.getLevelNamesMapping()[self.level]

    def to_logging_kwargs(self) -> dict[str, object]:
        """Keyword arguments for configure_logging()."""
        return {
            "log_level": self.level,
            "json_logs": self.json_logs,
            "console_enabled": self.console_enabled,
        }
