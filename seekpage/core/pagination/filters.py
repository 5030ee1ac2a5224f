"""Seek predicate compilation for keyset pagination.

Instead of OFFSET, a keyset page is selected with a WHERE condition that
seeks directly past the cursor position. For a composite sort key the
condition must behave like a lexicographic tuple comparison

    (c0, c1, ..., cn) > (v0, v1, ..., vn)

with ">" resolved per column from its direction. It is expanded recursively
into plain comparisons so it runs on any engine:

    c0 >= v0 AND (c0 > v0 OR (<prior equalities> AND <rest of the key>))

For ORDER BY age DESC, id ASC with cursor at (30, 5):

    age <= 30 AND (age < 30 OR id > 5)

The leading non-strict comparison is implied by the rest of the expression.
It is kept so the planner can turn it into a range scan on an index over the
first sort column before evaluating the tie-break disjunction.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, false, or_

from seekpage.core.database.filters import StatementFilter
from seekpage.core.pagination.sort_key import SortDirection

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.sql.elements import ColumnElement

    from seekpage.core.pagination.sort_key import SortKey


@dataclass(slots=True, frozen=True)
class SeekTerm:
    """One column of a seek predicate.

    Attributes:
        column: Column expression to compare
        value: Boundary value for the column
        want_greater: True if rows after the boundary have larger values
    """

    column: Any
    value: Any
    want_greater: bool

    def strict(self) -> ColumnElement[bool]:
        return self.column > self.value if self.want_greater else self.column < self.value

    def inclusive(self) -> ColumnElement[bool]:
        return self.column >= self.value if self.want_greater else self.column <= self.value

    def equal(self) -> ColumnElement[bool]:
        return self.column == self.value


def build_seek_terms(sort_key: SortKey, boundary: Mapping[str, Any]) -> list[SeekTerm]:
    """Pair each sort column with its boundary value.

    The sort key must already be in the direction the query executes in
    (reversed for backward pages), so ascending always means "greater".
    """
    return [
        SeekTerm(col.column, boundary[col.name], col.direction is SortDirection.ASC)
        for col in sort_key
    ]


def compile_seek_predicate(
    seek: Sequence[SeekTerm],
    prior: Sequence[SeekTerm] = (),
) -> ColumnElement[bool]:
    """Compile seek terms into a WHERE condition selecting rows past the boundary.

    Args:
        seek: Remaining seek terms, highest sort priority first
        prior: Terms consumed by enclosing recursion levels; they must all be
            equal for the remaining terms to decide

    Returns:
        Boolean SQL expression. An empty seek list compiles to FALSE.
    """
    if not seek:
        return false()

    head, rest = seek[0], seek[1:]
    if not rest:
        return head.strict()

    tail = compile_seek_predicate(rest, (head, *prior))
    if prior:
        tail = and_(*(term.equal() for term in prior), tail)

    return and_(head.inclusive(), or_(head.strict(), tail))


class KeysetFilter(StatementFilter):
    """Apply a keyset seek condition to a SQLAlchemy query.

    The condition is added with ``Select.where`` and therefore ANDed with any
    filters already on the statement. Without a boundary (first page) the
    statement is returned untouched.

    Example:
        stmt = select(User).where(User.is_active == True)
        stmt = KeysetFilter(sort_key, {"age": 30, "id": 5}).apply(stmt)
    """

    def __init__(self, sort_key: SortKey, boundary: Mapping[str, Any] | None) -> None:
        """Initialize keyset filter.

        Args:
            sort_key: Sort key in the executed direction
            boundary: Decoded boundary point, or None for the first page
        """
        self.sort_key = sort_key
        self.boundary = boundary

    @property
    def predicate(self) -> ColumnElement[bool] | None:
        if self.boundary is None:
            return None
        return compile_seek_predicate(build_seek_terms(self.sort_key, self.boundary))

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Apply the seek condition to statement."""
        predicate = self.predicate
        if predicate is None:
            return statement
        return statement.where(predicate)


__all__ = [
    "KeysetFilter",
    "SeekTerm",
    "build_seek_terms",
    "compile_seek_predicate",
]
