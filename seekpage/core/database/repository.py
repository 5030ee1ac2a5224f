"""Minimal generic repository with keyset pagination.

Session is always explicit. The repository knows its model, so it supplies
the model's primary key as the fallback sort key and a default statement.

Example:
    from seekpage.core.database import BaseRepository

    class ArticleRepository(BaseRepository[Article]):
        async def published(self, session: AsyncSession, cursor: str | None = None):
            stmt = (
                select(Article)
                .where(Article.is_published == True)
                .order_by(Article.published_at.desc(), Article.id)
            )
            return await self.paginate_keyset(session, stmt, cursor=cursor)

    repo = ArticleRepository(Article)
    page = await repo.paginate_keyset(session, limit=20)  # ordered by id
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import select

from seekpage.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession

    from seekpage.core.pagination import CursorLike, KeysetPaginator, PageResult
    from seekpage.core.settings import PaginationSettings

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Generic repository exposing keyset pagination for one model.

    Provides:
        - paginator(session, statement) -> KeysetPaginator[T]
        - paginate_keyset(session, statement, cursor, limit) -> PageResult[T]
        - previous_keyset_page(session, cursor, statement, limit) -> PageResult[T]
    """

    __slots__ = ("model", "settings", "_lazy")

    def __init__(self, model: type[T], *, settings: PaginationSettings | None = None) -> None:
        """Initialize repository with model class.

        Args:
            model: SQLAlchemy model class (e.g., User, Post)
            settings: Pagination settings shared by every paginator
        """
        self.model = model
        self.settings = settings
        self._lazy = get_lazy_logger("seekpage.repository", model=model.__name__)

    def identity_key(self) -> list[tuple[str, Any]]:
        """Primary key columns of the model, used when no ordering is declared."""
        from seekpage.core.pagination import identity_key

        return identity_key(self.model)

    def paginator(
        self,
        session: AsyncSession,
        statement: Select[Any] | None = None,
        *,
        order_by: Sequence[Any] | None = None,
    ) -> KeysetPaginator[T]:
        """Build a paginator for a statement (default: ``select(model)``)."""
        from seekpage.core.pagination import KeysetPaginator

        if statement is None:
            statement = select(self.model)
        return KeysetPaginator(
            session,
            statement,
            identity=self.identity_key(),
            order_by=order_by,
            settings=self.settings,
        )

    async def paginate_keyset(
        self,
        session: AsyncSession,
        statement: Select[Any] | None = None,
        *,
        cursor: CursorLike = None,
        limit: int | None = None,
        order_by: Sequence[Any] | None = None,
        include_total: bool | None = None,
    ) -> PageResult[T]:
        """Fetch the page after a cursor.

        Args:
            session: Database session
            statement: Statement to paginate (default: all rows of the model)
            cursor: Cursor or token from a previous page; None for the first page
            limit: Page size
            order_by: Explicit ordering replacing the statement's ORDER BY
            include_total: Also count the whole result set

        Returns:
            PageResult[T] with items, cursor and optional total

        Example:
            page = await repo.paginate_keyset(session, limit=20)
            if page.items:
                next_page = await repo.paginate_keyset(session, cursor=page.token, limit=20)
        """
        result = await self.paginator(session, statement, order_by=order_by).page(
            cursor, limit, include_total=include_total
        )
        self._lazy.debug(
            lambda: f"db.paginate_keyset(limit={limit}) -> {result.count} items"
        )
        return result

    async def previous_keyset_page(
        self,
        session: AsyncSession,
        cursor: CursorLike,
        statement: Select[Any] | None = None,
        *,
        limit: int | None = None,
        order_by: Sequence[Any] | None = None,
        include_total: bool | None = None,
    ) -> PageResult[T]:
        """Fetch the page before a cursor.

        Items are returned in the declared order, not in the reversed order
        the database read them in.
        """
        result = await self.paginator(session, statement, order_by=order_by).previous_page(
            cursor, limit, include_total=include_total
        )
        self._lazy.debug(
            lambda: f"db.previous_keyset_page(limit={limit}) -> {result.count} items"
        )
        return result


__all__ = [
    "BaseRepository",
]
