"""Pagination response schemas for keyset pagination."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from seekpage.core.pagination.cursor import Cursor

T = TypeVar("T")


class PageResult(BaseModel, Generic[T]):
    """One page of a keyset-paginated result set.

    Items are always in the declared sort order, also for pages fetched
    backward. Pass ``cursor`` (or ``token``) to ``page()`` for the next page
    and to ``previous_page()`` for the one before.

    Usage:
        result = await paginator.page(limit=20)
        next_result = await paginator.page(result.token, limit=20)
        back = await paginator.previous_page(next_result.token, limit=20)

    Attributes:
        items: Rows of this page
        cursor: Boundaries of this page (forward order)
        total: Size of the whole result set ignoring the cursor (optional)
    """

    items: list[T] = Field(
        default_factory=list,
        description="List of items",
    )
    cursor: Cursor = Field(
        default_factory=Cursor,
        description="Position of this page",
    )
    total: int | None = Field(
        default=None,
        description="Total count (optional)",
    )

    @property
    def token(self) -> str | None:
        """Serialized cursor, or None when no page has been seen yet."""
        if self.cursor.is_empty:
            return None
        return self.cursor.to_token()

    @property
    def count(self) -> int:
        return len(self.items)


__all__ = [
    "PageResult",
]
