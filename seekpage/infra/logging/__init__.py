"""Logging for seekpage and the applications embedding it.

Library code logs through stdlib loggers under ``seekpage.*``; debug lines
whose text is costly to build go through a lazy logger:

    log = get_lazy_logger("seekpage.pagination")
    log.debug(lambda: f"pagination.keyset: {statement}")

Applications install handlers once at startup with setup_logging().
"""

from seekpage.infra.logging.config import build_logging_config, configure_logging, setup_logging
from seekpage.infra.logging.formatters import JSONFormatter
from seekpage.infra.logging.lazy import LazyLoggerAdapter, LazyString, get_lazy_logger, lazy

__all__ = [
    "JSONFormatter",
    "LazyLoggerAdapter",
    "LazyString",
    "build_logging_config",
    "configure_logging",
    "get_lazy_logger",
    "lazy",
    "setup_logging",
]
