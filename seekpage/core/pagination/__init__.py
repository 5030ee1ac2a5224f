"""Cursor-based (keyset) pagination for SQLAlchemy select statements.

Keyset pagination is:
- Stable: pages don't shift when rows are inserted or deleted between requests
- Performant: seeks through an index instead of scanning OFFSET rows
- Bidirectional: the same cursor serves the next and the previous page

Usage:
    from seekpage.core.pagination import KeysetPaginator

    stmt = select(Article).order_by(Article.published_at.desc(), Article.id)
    paginator = KeysetPaginator(session, stmt)

    page = await paginator.page(limit=20)
    next_page = await paginator.page(page.token, limit=20)
    prev_page = await paginator.previous_page(next_page.token, limit=20)

The cursor stores the sort key values of the first and last row of a page.
Tokens are opaque URL-safe strings that clients pass back unchanged.
"""

from seekpage.core.pagination.cursor import (
    Cursor,
    CursorCodec,
    boundary_point,
    decode_boundary,
    encode_cursor,
)
from seekpage.core.pagination.filters import (
    KeysetFilter,
    SeekTerm,
    build_seek_terms,
    compile_seek_predicate,
)
from seekpage.core.pagination.paginator import CursorLike, KeysetPaginator, Pageable
from seekpage.core.pagination.schemas import PageResult
from seekpage.core.pagination.sort_key import (
    ResolvedOrdering,
    SortColumn,
    SortDirection,
    SortKey,
    identity_key,
    infer_identity,
    resolve_sort_key,
)

__all__ = [
    # Cursor
    "Cursor",
    "CursorCodec",
    "CursorLike",
    "boundary_point",
    "decode_boundary",
    "encode_cursor",
    # Seek predicate
    "KeysetFilter",
    "SeekTerm",
    "build_seek_terms",
    "compile_seek_predicate",
    # Paging
    "KeysetPaginator",
    "PageResult",
    "Pageable",
    # Sort key
    "ResolvedOrdering",
    "SortColumn",
    "SortDirection",
    "SortKey",
    "identity_key",
    "infer_identity",
    "resolve_sort_key",
]
