"""Logging configuration.

seekpage never installs handlers on its own loggers (``seekpage.*``); they
propagate to the root logger, which applications configure here:

    from seekpage.infra.logging import setup_logging

    setup_logging()  # LOG_LEVEL, LOG_JSON_LOGS, LOG_CONSOLE_ENABLED
"""

from __future__ import annotations

import logging
import logging.config
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from seekpage.core.settings.logging_ import LoggingSettings

logger = logging.getLogger(__name__)
_LOGGING_INITIALIZED = False


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **overrides: Any,
) -> None:
    """Configure logging from LoggingSettings, once per process.

    Later calls are no-ops so several entrypoints can call this safely.

    Args:
        log_settings: Settings to apply (default: get_logging_settings())
        force: Apply even if logging was already set up
        **overrides: configure_logging() arguments taking precedence over settings
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    if log_settings is None:
        from seekpage.core.settings import get_logging_settings

        log_settings = get_logging_settings()

    configure_logging(**{**log_settings.to_logging_kwargs(), **overrides})
    _LOGGING_INITIALIZED = True


def build_logging_config(
    log_level: str = "INFO",
    json_logs: bool = True,
    console_enabled: bool = True,
) -> dict[str, Any]:
    """dictConfig schema for the root logger with an optional stderr handler."""
    level = log_level.upper()
    handlers: dict[str, Any] = {}
    if console_enabled:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
            "level": level,
            "formatter": "json" if json_logs else "plain",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "seekpage.infra.logging.formatters.JSONFormatter"},
            "plain": {"format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s"},
        },
        "handlers": handlers,
        "root": {"level": level, "handlers": list(handlers)},
    }


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    console_enabled: bool = True,
    capture_warnings: bool = True,
) -> None:
    """Apply build_logging_config() to the root logger.

    Args:
        log_level: Root level name, case-insensitive
        json_logs: JSON Lines instead of plain text
        console_enabled: Attach the stderr handler
        capture_warnings: Route ``warnings.warn`` through logging
    """
    logging.captureWarnings(capture_warnings)
    logging.config.dictConfig(build_logging_config(log_level, json_logs, console_enabled))
    logger.debug("Logging configured", extra={"log_level": log_level, "json_logs": json_logs})
