"""Mapped model base, statement filters, pagination errors and the repository.

BaseRepository pages a model with its primary key as the fallback order;
OrderBy and CollectionFilter build the statements it pages over.
"""

from seekpage.core.database.base import (
    NAMING_CONVENTION,
    Base,
    IntegerPKMixin,
)
from seekpage.core.database.exceptions import (
    IncompleteCursorError,
    InvalidCursorError,
    InvalidFilterError,
    RepositoryError,
)
from seekpage.core.database.filters import CollectionFilter, OrderBy, StatementFilter
from seekpage.core.database.repository import BaseRepository

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "BaseRepository",
    "CollectionFilter",
    "IncompleteCursorError",
    "IntegerPKMixin",
    "InvalidCursorError",
    "InvalidFilterError",
    "OrderBy",
    "RepositoryError",
    "StatementFilter",
]
