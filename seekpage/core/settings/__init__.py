"""Pydantic Settings v2 configuration.

Settings come from environment variables (or a local .env file) and are
immutable once loaded. Import them via the cached loaders:

    from seekpage.core.settings import get_pagination_settings

    settings = get_pagination_settings()
    print(settings.default_limit)

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables
    3. .env file
"""

from __future__ import annotations

from .loader import clear_all_caches, get_logging_settings, get_pagination_settings
from .logging_ import LoggingSettings
from .pagination import PaginationSettings

__all__ = [
    "LoggingSettings",
    "PaginationSettings",
    "clear_all_caches",
    "get_logging_settings",
    "get_pagination_settings",
]
