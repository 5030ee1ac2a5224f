"""Errors raised while preparing a paginated query.

All of them are raised before the page query reaches the database. Errors
from the driver itself (``sqlalchemy.exc.*``) are not wrapped and reach the
caller unchanged.

    RepositoryError
    ├── InvalidFilterError        unusable ordering, limit or identity key
    └── InvalidCursorError        cursor cannot be read (also a ValueError)
        └── IncompleteCursorError cursor lacks sort key columns
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class RepositoryError(Exception):
    """Base class; carries a message and structured details for logs and APIs."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})

    def __str__(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} ({rendered})"


class InvalidFilterError(RepositoryError):
    """The statement cannot be paginated as configured.

    Duplicate or unnamed sort columns, a missing identity key, an unknown sort
    direction or a non-positive page limit. ``details["filter"]`` names the
    offending input (``order_by``, ``limit``, ``identity``).
    """

    def __init__(self, message: str, filter_name: str | None = None):
        super().__init__(message, details={"filter": filter_name} if filter_name else None)


class InvalidCursorError(RepositoryError, ValueError):
    """A cursor token or structured cursor could not be turned into a boundary."""


class IncompleteCursorError(InvalidCursorError):
    """The cursor boundary lacks one or more sort key columns.

    Attributes:
        missing_columns: Every missing column, in sort key order
    """

    def __init__(self, missing_columns: Sequence[str]):
        self.missing_columns = list(missing_columns)
        super().__init__(
            f"Cursor seek position is missing keys: {', '.join(self.missing_columns)}",
            details={"missing": self.missing_columns},
        )

    def __repr__(self) -> str:
        return f"IncompleteCursorError(missing_columns={self.missing_columns!r})"


__all__ = [
    "IncompleteCursorError",
    "InvalidCursorError",
    "InvalidFilterError",
    "RepositoryError",
]
