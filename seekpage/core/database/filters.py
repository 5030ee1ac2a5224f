"""Composable statement filters.

A filter takes a ``Select`` and returns a new one; statements are immutable,
so filters can be chained and reused. Keyset pagination only ever adds to a
statement, so everything applied here survives into every page:

    stmt = select(User)
    stmt = CollectionFilter(User.status, ["active", "pending"]).apply(stmt)
    stmt = OrderBy((User.created_at, "desc"), User.id).apply(stmt)

    page = await KeysetPaginator(session, stmt).page()
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from sqlalchemy import Select, false

from seekpage.core.database.exceptions import InvalidFilterError


class StatementFilter(ABC):
    """Something that can be applied to a select statement."""

    @abstractmethod
    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Return a copy of statement with the filter applied."""


class OrderBy(StatementFilter):
    """Add ORDER BY clauses in the shapes the sort key resolver reads.

    Entries are columns, ``col.asc()`` / ``col.desc()`` expressions or
    ``(column, direction)`` pairs with a case-insensitive direction (None
    means ascending). The first entry has the highest sort priority.

    Example:
        stmt = OrderBy((Post.score, "DESC"), Post.id).apply(stmt)

        # Drop whatever ordering the statement already had
        stmt = OrderBy(Post.id, replace=True).apply(stmt)
    """

    def __init__(self, *ordering: Any, replace: bool = False):
        """Initialize ordering filter.

        Args:
            *ordering: Columns, ordering expressions or (column, direction) pairs
            replace: Clear the statement's existing ORDER BY first

        Raises:
            InvalidFilterError: If no column is given or a direction is unknown
        """
        if not ordering:
            raise InvalidFilterError("OrderBy needs at least one column", filter_name="order_by")
        self.clauses = [self._clause(item) for item in ordering]
        self.replace = replace

    @staticmethod
    def _clause(item: Any) -> Any:
        if not isinstance(item, tuple):
            return item
        column, direction = item
        direction = "asc" if direction is None else str(direction).strip().lower()
        if direction == "asc":
            return column.asc()
        if direction == "desc":
            return column.desc()
        msg = f"Unknown sort direction {item[1]!r}, expected 'asc' or 'desc'"
        raise InvalidFilterError(msg, filter_name="order_by")

    def apply(self, statement: Select[Any]) -> Select[Any]:
        if self.replace:
            statement = statement.order_by(None)
        return statement.order_by(*self.clauses)


class CollectionFilter(StatementFilter):
    """Restrict a column to a set of values (``IN`` / ``NOT IN``).

    An empty value set matches nothing, or everything when excluding.

    Example:
        stmt = CollectionFilter(Post.author_id, [1, 2, 3]).apply(stmt)
        stmt = CollectionFilter(Post.state, ["deleted"], exclude=True).apply(stmt)
    """

    def __init__(self, column: Any, values: Sequence[Any], *, exclude: bool = False):
        self.column = column
        self.values = list(values)
        self.exclude = exclude

    def apply(self, statement: Select[Any]) -> Select[Any]:
        if not self.values:
            return statement if self.exclude else statement.where(false())
        if self.exclude:
            return statement.where(self.column.not_in(self.values))
        return statement.where(self.column.in_(self.values))


__all__ = [
    "CollectionFilter",
    "OrderBy",
    "StatementFilter",
]
