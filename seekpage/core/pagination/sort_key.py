"""Sort key resolution for keyset pagination.

A keyset page is only well defined against a total order, so every paginated
statement is reduced to a SortKey: the ordered list of (column, direction)
pairs its ORDER BY declares. The first column is the primary sort, the rest
are tie-breakers.

Resolution order:
    1. An explicit ``order_by`` sequence passed by the caller
    2. The ORDER BY clauses already present on the statement
    3. The identity (primary key) columns of the selected entity, ascending

SQLAlchemy statements are immutable, so the resolver never changes the
caller's statement. It returns a ResolvedOrdering carrying both the SortKey
and the statement that will actually be executed, with the resolved ordering
applied when it did not come from the statement itself.

Example:
    stmt = select(User).order_by(User.age.desc(), User.id)
    resolved = resolve_sort_key(stmt)
    resolved.sort_key.names  # ("age", "id")
    [c.direction for c in resolved.sort_key]  # [SortDirection.DESC, SortDirection.ASC]
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.sql import operators
from sqlalchemy.sql.elements import UnaryExpression

from seekpage.core.database.exceptions import InvalidFilterError

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.sql.elements import ColumnElement


class SortDirection(StrEnum):
    """Direction of a single sort column."""

    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: str | SortDirection | None) -> SortDirection:
        """Normalize a direction, case-insensitively.

        ``None`` means ascending, matching SQL's default.

        Raises:
            InvalidFilterError: If the value is neither asc nor desc
        """
        if value is None:
            return cls.ASC
        if isinstance(value, SortDirection):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            msg = f"Unknown sort direction {value!r}, expected 'asc' or 'desc'"
            raise InvalidFilterError(msg, filter_name="order_by") from e

    def reversed(self) -> SortDirection:
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


@dataclass(slots=True, frozen=True)
class SortColumn:
    """One entry of a SortKey.

    Attributes:
        name: Cursor key; also the attribute read from result rows
        column: Column expression compared in the seek predicate
        direction: Sort direction in the declared (forward) order
    """

    name: str
    column: Any
    direction: SortDirection = SortDirection.ASC

    def clause(self) -> ColumnElement[Any]:
        """ORDER BY expression for this column."""
        if self.direction is SortDirection.DESC:
            return self.column.desc()
        return self.column.asc()

    def reversed(self) -> SortColumn:
        return SortColumn(self.name, self.column, self.direction.reversed())


@dataclass(slots=True, frozen=True)
class SortKey:
    """Ordered, immutable sequence of sort columns with unique names."""

    columns: tuple[SortColumn, ...]

    def __post_init__(self) -> None:
        seen: set[str] = set()
        duplicates = []
        for col in self.columns:
            if col.name in seen:
                duplicates.append(col.name)
            seen.add(col.name)
        if duplicates:
            msg = f"Sort key columns must be unique, duplicated: {', '.join(duplicates)}"
            raise InvalidFilterError(msg, filter_name="order_by")

    def __iter__(self) -> Iterator[SortColumn]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(col.name for col in self.columns)

    def reversed(self) -> SortKey:
        """Same columns with every direction flipped (backward paging)."""
        return SortKey(tuple(col.reversed() for col in self.columns))

    def clauses(self) -> list[ColumnElement[Any]]:
        return [col.clause() for col in self.columns]


@dataclass(slots=True, frozen=True)
class ResolvedOrdering:
    """A SortKey together with the statement ordered by it.

    Attributes:
        sort_key: Resolved sort key
        statement: Statement to execute; its ORDER BY matches sort_key
    """

    sort_key: SortKey
    statement: Select[Any]

    def reversed(self) -> ResolvedOrdering:
        """Flip every direction and re-apply it as the statement ordering."""
        sort_key = self.sort_key.reversed()
        statement = self.statement.order_by(None).order_by(*sort_key.clauses())
        return ResolvedOrdering(sort_key, statement)


def identity_key(entity: Any) -> list[tuple[str, Any]]:
    """Primary key columns of a mapped class (or alias) as (name, column) pairs.

    Composite primary keys are returned in mapper order.

    Raises:
        InvalidFilterError: If the entity is not mapped
    """
    try:
        insp = sa_inspect(entity)
    except Exception as e:
        msg = f"{entity!r} is not a mapped entity, cannot derive an identity key"
        raise InvalidFilterError(msg, filter_name="identity") from e

    mapper = getattr(insp, "mapper", None)
    if mapper is None:
        msg = f"{entity!r} is not a mapped entity, cannot derive an identity key"
        raise InvalidFilterError(msg, filter_name="identity")

    result = []
    for pk_col in mapper.primary_key:
        prop = mapper.get_property_by_column(pk_col)
        result.append((prop.key, getattr(entity, prop.key)))
    return result


def infer_identity(statement: Select[Any]) -> list[tuple[str, Any]] | None:
    """Identity key of the first entity a statement selects, if any."""
    for description in statement.column_descriptions:
        entity = description.get("entity")
        if entity is not None:
            return identity_key(entity)
    return None


def resolve_sort_key(
    statement: Select[Any],
    identity: Sequence[tuple[str, Any]] | None = None,
    order_by: Sequence[Any] | None = None,
) -> ResolvedOrdering:
    """Resolve the effective sort key of a statement.

    Args:
        statement: Statement to paginate
        identity: Fallback (name, column) pairs, usually from identity_key()
        order_by: Explicit ordering; columns, ``col.desc()`` expressions or
            ``(column, "asc" | "desc" | None)`` tuples. Replaces any ORDER BY
            on the statement.

    Returns:
        ResolvedOrdering with the sort key and the statement to execute

    Raises:
        InvalidFilterError: If no ordering is declared and no identity is known,
            or an ordering clause cannot be mapped to a named column
    """
    if order_by:
        columns = tuple(_sort_column(item, statement) for item in order_by)
        sort_key = SortKey(columns)
        return ResolvedOrdering(
            sort_key, statement.order_by(None).order_by(*sort_key.clauses())
        )

    declared = statement._order_by_clauses
    if declared:
        sort_key = SortKey(tuple(_sort_column(clause, statement) for clause in declared))
        return ResolvedOrdering(sort_key, statement)

    if not identity:
        msg = "Statement has no ORDER BY and no identity key to fall back on"
        raise InvalidFilterError(msg, filter_name="order_by")

    sort_key = SortKey(tuple(SortColumn(name, column) for name, column in identity))
    return ResolvedOrdering(sort_key, statement.order_by(*sort_key.clauses()))


def _sort_column(item: Any, statement: Select[Any]) -> SortColumn:
    """Normalize one ordering declaration into a SortColumn."""
    if isinstance(item, tuple):
        column, direction = item if len(item) == 2 else (item[0], None)
        name, element, _ = _unwrap(column, statement)
        return SortColumn(name, element, SortDirection.parse(direction))

    name, element, direction = _unwrap(item, statement)
    return SortColumn(name, element, direction)


def _unwrap(clause: Any, statement: Select[Any]) -> tuple[str, Any, SortDirection]:
    """Strip direction/nulls modifiers and label references off an ORDER BY clause."""
    if hasattr(clause, "__clause_element__"):
        clause = clause.__clause_element__()

    direction = SortDirection.ASC
    node = clause
    while True:
        if isinstance(node, UnaryExpression) and node.modifier is not None:
            if node.modifier is operators.desc_op:
                direction = SortDirection.DESC
            elif node.modifier is operators.asc_op:
                direction = SortDirection.ASC
            elif node.modifier not in (operators.nulls_first_op, operators.nulls_last_op):
                break
            node = node.element
            continue

        visit_name = getattr(node, "__visit_name__", None)
        if visit_name == "textual_label_reference":
            # order_by("name") refers to a selected column by name
            try:
                node = statement.selected_columns[node.element]
            except KeyError as e:
                msg = f"ORDER BY refers to unknown column {node.element!r}"
                raise InvalidFilterError(msg, filter_name="order_by") from e
            continue
        if visit_name == "label_reference":
            node = node.element
            continue
        break

    name = getattr(node, "key", None)
    if not name:
        msg = f"Cannot paginate on unnamed ORDER BY expression {clause!s}"
        raise InvalidFilterError(msg, filter_name="order_by")
    return name, node, direction


__all__ = [
    "ResolvedOrdering",
    "SortColumn",
    "SortDirection",
    "SortKey",
    "identity_key",
    "infer_identity",
    "resolve_sort_key",
]
