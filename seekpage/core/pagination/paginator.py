"""Keyset page assembly.

KeysetPaginator ties the pieces together for one statement:

    resolve sort key -> decode cursor -> compile seek predicate
        -> execute -> encode outgoing cursor

Backward pages are fetched by flipping every sort direction and running an
ordinary forward seek from ``cursor.first``. The rows come back in reverse;
the outgoing cursor is built from them as fetched and the rows are then put
back into declared order before they are returned.

Example:
    stmt = select(User).where(User.is_active == True).order_by(User.age.desc(), User.id)
    paginator = KeysetPaginator(session, stmt)

    first = await paginator.page(limit=20)
    second = await paginator.page(first.token, limit=20)
    again_first = await paginator.previous_page(second.token, limit=20)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar

from sqlalchemy import func, select

from seekpage.core.database.exceptions import InvalidFilterError
from seekpage.core.pagination.cursor import Cursor, decode_boundary, encode_cursor
from seekpage.core.pagination.filters import KeysetFilter
from seekpage.core.pagination.schemas import PageResult
from seekpage.core.pagination.sort_key import infer_identity, resolve_sort_key
from seekpage.core.settings import get_pagination_settings
from seekpage.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sqlalchemy import Result, Select
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql.elements import ColumnElement

    from seekpage.core.pagination.sort_key import ResolvedOrdering, SortKey
    from seekpage.core.settings import PaginationSettings

CursorLike = Cursor | dict[str, Any] | str | None

T = TypeVar("T")


class Pageable(Protocol[T]):
    """Keyset pagination over one statement.

    Any object providing these operations can serve pages; KeysetPaginator is
    the SQLAlchemy implementation.
    """

    def resolve(self, *, backward: bool = False) -> ResolvedOrdering: ...

    def decode(
        self, cursor: Cursor | None, sort_key: SortKey, *, backward: bool = False
    ) -> dict[str, Any] | None: ...

    def compile(
        self, sort_key: SortKey, boundary: Mapping[str, Any] | None
    ) -> ColumnElement[bool] | None: ...

    async def assemble(
        self,
        cursor: CursorLike,
        *,
        backward: bool = False,
        limit: int | None = None,
        include_total: bool = False,
    ) -> PageResult[T]: ...

    async def page(
        self,
        cursor: CursorLike = None,
        limit: int | None = None,
        *,
        include_total: bool | None = None,
    ) -> PageResult[T]: ...

    async def previous_page(
        self,
        cursor: CursorLike,
        limit: int | None = None,
        *,
        include_total: bool | None = None,
    ) -> PageResult[T]: ...


class KeysetPaginator(Generic[T]):
    """Serve keyset pages of a SQLAlchemy select statement.

    The statement keeps its own WHERE clauses, ordering and limit; pagination
    only adds to them. When the statement has no ORDER BY (and no
    ``order_by`` is given) rows are ordered by the identity key.

    Attributes:
        session: Session the statements are executed on
        statement: Base statement, without any pagination applied
        settings: Pagination defaults (page size, total counting)
    """

    __slots__ = ("session", "statement", "settings", "_identity", "_order_by", "_logger", "_lazy")

    def __init__(
        self,
        session: AsyncSession,
        statement: Select[Any],
        *,
        identity: Sequence[tuple[str, Any]] | None = None,
        order_by: Sequence[Any] | None = None,
        settings: PaginationSettings | None = None,
    ) -> None:
        """Initialize paginator.

        Args:
            session: Async database session
            statement: Select statement to paginate
            identity: Fallback sort key as (name, column) pairs; inferred from
                the first selected entity when omitted
            order_by: Explicit ordering replacing the statement's ORDER BY
            settings: Pagination settings (defaults to get_pagination_settings())
        """
        self.session = session
        self.statement = statement
        self.settings = settings or get_pagination_settings()
        self._identity = identity
        self._order_by = order_by
        self._logger = logging.getLogger("seekpage.pagination")
        self._lazy = get_lazy_logger("seekpage.pagination")

    def resolve(self, *, backward: bool = False) -> ResolvedOrdering:
        """Resolve the sort key, reversed for backward pages."""
        identity = self._identity
        if identity is None and not self._order_by and not self.statement._order_by_clauses:
            identity = infer_identity(self.statement)

        resolved = resolve_sort_key(self.statement, identity, self._order_by)
        _check_row_columns(self.statement, resolved.sort_key)
        return resolved.reversed() if backward else resolved

    def decode(
        self, cursor: Cursor | None, sort_key: SortKey, *, backward: bool = False
    ) -> dict[str, Any] | None:
        """Pick and validate the seek boundary of a cursor.

        Forward pages seek past ``cursor.last``, backward pages before
        ``cursor.first``.
        """
        if cursor is None:
            return None
        return decode_boundary(cursor.first if backward else cursor.last, sort_key)

    def compile(
        self, sort_key: SortKey, boundary: Mapping[str, Any] | None
    ) -> ColumnElement[bool] | None:
        """Seek predicate for a boundary, None for the first page."""
        return KeysetFilter(sort_key, boundary).predicate

    async def assemble(
        self,
        cursor: CursorLike,
        *,
        backward: bool = False,
        limit: int | None = None,
        include_total: bool = False,
    ) -> PageResult[T]:
        """Fetch one page.

        Args:
            cursor: Cursor of the page seen last (None for the first page)
            backward: Fetch the page before the cursor instead of after it
            limit: Page size; defaults to the statement's own limit, then to
                settings.default_limit
            include_total: Also count the whole result set, ignoring the cursor

        Returns:
            PageResult with items in declared order

        Raises:
            InvalidCursorError: If the cursor is malformed or incomplete
            InvalidFilterError: If the sort key or limit is unusable
        """
        cursor = Cursor.coerce(cursor)
        resolved = self.resolve(backward=backward)
        sort_key = resolved.sort_key
        # the seek predicate takes the place of OFFSET
        statement = resolved.statement.offset(None)

        boundary = self.decode(cursor, sort_key, backward=backward)
        page_limit = self._page_limit(statement, limit)

        total = None
        if include_total:
            total = await self._count(statement)

        statement = KeysetFilter(sort_key, boundary).apply(statement)
        if page_limit is not None:
            statement = statement.limit(page_limit)

        self._lazy.debug(lambda: f"pagination.keyset: {statement}")

        result = await self.session.execute(statement)
        rows = self._rows(result, statement)

        forward_key = sort_key.reversed() if backward else sort_key
        outgoing = encode_cursor(rows, forward_key, backward=backward, previous=cursor)
        if backward:
            rows.reverse()

        self._logger.debug(
            "Keyset page fetched",
            extra={
                "sort_key": list(forward_key.names),
                "backward": backward,
                "has_cursor": boundary is not None,
                "limit": page_limit,
                "rows": len(rows),
            },
        )
        return PageResult(items=rows, cursor=outgoing, total=total)

    async def page(
        self,
        cursor: CursorLike = None,
        limit: int | None = None,
        *,
        include_total: bool | None = None,
    ) -> PageResult[T]:
        """Fetch the page after a cursor (the first page when cursor is None)."""
        if include_total is None:
            include_total = self.settings.count_total
        return await self.assemble(cursor, limit=limit, include_total=include_total)

    async def previous_page(
        self,
        cursor: CursorLike,
        limit: int | None = None,
        *,
        include_total: bool | None = None,
    ) -> PageResult[T]:
        """Fetch the page before a cursor."""
        if include_total is None:
            include_total = self.settings.count_total
        return await self.assemble(
            cursor, backward=True, limit=limit, include_total=include_total
        )

    def _page_limit(self, statement: Select[Any], limit: int | None) -> int | None:
        """Effective LIMIT, or None to keep the one already on the statement."""
        if limit is None:
            if statement._limit_clause is not None:
                return None
            return self.settings.default_limit

        if limit < 1:
            msg = f"Page limit must be a positive integer, got {limit}"
            raise InvalidFilterError(msg, filter_name="limit")
        if limit > self.settings.max_limit:
            self._logger.warning(
                "Requested page limit exceeds maximum, clamping",
                extra={"requested": limit, "max_limit": self.settings.max_limit},
            )
            return self.settings.max_limit
        return limit

    async def _count(self, statement: Select[Any]) -> int:
        """Count rows matching the caller's filters, before any seek predicate."""
        snapshot = statement.order_by(None).limit(None).offset(None)
        count_stmt = select(func.count()).select_from(snapshot.subquery())
        return (await self.session.execute(count_stmt)).scalar_one()

    @staticmethod
    def _rows(result: Result[Any], statement: Select[Any]) -> list[Any]:
        """ORM instances for single-entity selects, Row objects otherwise."""
        if _single_entity(statement) is not None:
            return list(result.scalars().all())
        return list(result.all())


def _single_entity(statement: Select[Any]) -> Any | None:
    """The mapped entity when the statement selects exactly one, else None."""
    descriptions = statement.column_descriptions
    if len(descriptions) != 1:
        return None
    entity = descriptions[0].get("entity")
    if entity is None or descriptions[0].get("expr") is not entity:
        return None
    return entity


def _check_row_columns(statement: Select[Any], sort_key: SortKey) -> None:
    """Every sort column must be readable from the rows the statement returns.

    Entity selects yield ORM instances, read by attribute; anything else
    yields Row objects, read by column label.

    Raises:
        InvalidFilterError: Naming the first sort column the rows lack
    """
    entity = _single_entity(statement)
    if entity is not None:
        missing = [name for name in sort_key.names if not hasattr(entity, name)]
    else:
        labels = {d.get("name") for d in statement.column_descriptions}
        missing = [name for name in sort_key.names if name not in labels]
    if missing:
        msg = f"Sort column {missing[0]!r} is not part of the result row"
        raise InvalidFilterError(msg, filter_name="order_by")


__all__ = [
    "CursorLike",
    "KeysetPaginator",
    "Pageable",
]
