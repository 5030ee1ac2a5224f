"""Process-wide settings instances.

Each loader reads the environment on first call and returns the same frozen
instance afterwards. Tests that change environment variables call
clear_all_caches() so the next call picks the change up; code that needs
different values can also pass an explicit instance, e.g.
``KeysetPaginator(session, stmt, settings=PaginationSettings(max_limit=500))``.
"""

from __future__ import annotations

from functools import lru_cache

from .logging_ import LoggingSettings
from .pagination import PaginationSettings


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """LoggingSettings from LOG_* variables."""
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_pagination_settings() -> PaginationSettings:
    """PaginationSettings from PAGINATION_* variables."""
    return PaginationSettings()


def clear_all_caches() -> None:
    """Forget every cached settings instance."""
    for loader in (get_logging_settings, get_pagination_settings):
        loader.cache_clear()
