"""Cursor encoding and decoding for keyset pagination.

A cursor describes the page a client is looking at by the sort key values of
its two extremities, in the declared (forward) sort order:

    Cursor(first=<boundary of first row>, last=<boundary of last row>)

The next page seeks past ``last``; the previous page seeks before ``first``.
A boundary is a mapping of sort key column name to value. When the sort key
has a single column the value is stored bare:

    {"first": {"age": 30, "id": 5}, "last": {"age": 25, "id": 1}}
    {"first": 11, "last": 20}

For transport the cursor is serialized to compact JSON and then URL-safe
base64 encoded. datetime/date/time values travel as ISO 8601 strings, UUID
and Decimal as strings, enum members by name; decode_boundary() coerces them
back using the type of the sort column, so the round trip is lossless.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping, Sequence
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from pydantic import BaseModel, Field

from seekpage.core.database.exceptions import (
    IncompleteCursorError,
    InvalidCursorError,
    InvalidFilterError,
)

if TYPE_CHECKING:
    from seekpage.core.pagination.sort_key import SortColumn, SortKey


class Cursor(BaseModel):
    """Opaque position of a page in a keyset-paginated result set.

    Attributes:
        first: Boundary point of the page's first row (forward order)
        last: Boundary point of the page's last row (forward order)
    """

    first: Any = Field(default=None, description="Boundary of the first row")
    last: Any = Field(default=None, description="Boundary of the last row")

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return self.first is None and self.last is None

    def to_token(self) -> str:
        """Serialize to a URL-safe string."""
        return CursorCodec.encode(self)

    @classmethod
    def from_token(cls, token: str) -> Cursor:
        """Parse a string produced by to_token()."""
        return CursorCodec.decode(token)

    @classmethod
    def coerce(cls, value: Cursor | Mapping[str, Any] | str | None) -> Cursor | None:
        """Accept a cursor in any of its supported forms.

        Args:
            value: A Cursor, a ``{"first": ..., "last": ...}`` mapping,
                a token string, or None for the first page

        Raises:
            InvalidCursorError: If the value cannot be read as a cursor
        """
        if value is None or isinstance(value, Cursor):
            return value
        if isinstance(value, str):
            return CursorCodec.decode(value)
        if isinstance(value, Mapping):
            return cls(first=value.get("first"), last=value.get("last"))
        msg = f"Unsupported cursor type {type(value).__name__}"
        raise InvalidCursorError(msg)


class CursorCodec:
    """Encode and decode cursor tokens.

    Usage:
        token = CursorCodec.encode(Cursor(first={"id": 1}, last={"id": 10}))
        cursor = CursorCodec.decode(token)
    """

    @staticmethod
    def encode(cursor: Cursor) -> str:
        """Encode a cursor to an opaque string.

        Args:
            cursor: Cursor to serialize

        Returns:
            URL-safe base64 encoded JSON
        """
        payload = {
            "first": CursorCodec._serialize_value(cursor.first),
            "last": CursorCodec._serialize_value(cursor.last),
        }
        json_str = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        return base64.urlsafe_b64encode(json_str.encode()).decode()

    @staticmethod
    def decode(token: str) -> Cursor:
        """Decode a cursor string.

        Args:
            token: URL-safe base64 encoded cursor

        Returns:
            Cursor with raw JSON boundary values

        Raises:
            InvalidCursorError: If the token is invalid or corrupted
        """
        try:
            json_str = base64.urlsafe_b64decode(token.encode()).decode()
            payload = json.loads(json_str)
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            raise InvalidCursorError(f"Invalid cursor: {e}") from e

        if not isinstance(payload, dict):
            raise InvalidCursorError("Invalid cursor: expected a JSON object")
        return Cursor(first=payload.get("first"), last=payload.get("last"))

    @staticmethod
    def _serialize_value(value: Any) -> Any:
        """Serialize a boundary (or one of its values) to JSON-compatible form."""
        if isinstance(value, Mapping):
            return {k: CursorCodec._serialize_value(v) for k, v in value.items()}
        if isinstance(value, datetime | date | time):
            return value.isoformat()
        if isinstance(value, UUID | Decimal):
            return str(value)
        if isinstance(value, Enum):
            return value.name
        return value


def boundary_point(row: Any, sort_key: SortKey) -> Any:
    """Extract the boundary point of a result row.

    Works with ORM instances, ``Row`` objects and plain mappings. Single-column
    sort keys produce a bare value.
    """
    values = {col.name: _row_value(row, col.name) for col in sort_key}
    if len(sort_key) == 1:
        return values[sort_key.columns[0].name]
    return values


def encode_cursor(
    rows: Sequence[Any],
    sort_key: SortKey,
    *,
    backward: bool = False,
    previous: Cursor | None = None,
) -> Cursor:
    """Build the cursor describing a fetched page.

    Args:
        rows: Rows in the order the query returned them (reversed order when
            the page was fetched backward)
        sort_key: Sort key in declared (forward) order
        backward: Whether the rows came from a backward query
        previous: Cursor the page was requested with

    Returns:
        Cursor whose first/last follow forward order. For an empty page the
        previous cursor is returned unchanged.
    """
    if not rows:
        return previous if previous is not None else Cursor()

    start, end = (rows[-1], rows[0]) if backward else (rows[0], rows[-1])
    return Cursor(first=boundary_point(start, sort_key), last=boundary_point(end, sort_key))


def decode_boundary(raw: Any, sort_key: SortKey) -> dict[str, Any] | None:
    """Turn a raw boundary point into a column -> value mapping.

    Args:
        raw: Boundary from a Cursor (mapping, bare scalar or None)
        sort_key: Sort key the boundary must cover

    Returns:
        Mapping with one coerced value per sort key column, or None when no
        boundary was given

    Raises:
        InvalidCursorError: If a multi-column boundary is not a mapping
        IncompleteCursorError: If sort key columns are missing (all are named)
    """
    if raw is None:
        return None

    if len(sort_key) == 1 and not isinstance(raw, Mapping):
        raw = {sort_key.columns[0].name: raw}
    elif not isinstance(raw, Mapping):
        msg = f"Cursor seek position must be an object with keys {', '.join(sort_key.names)}"
        raise InvalidCursorError(msg)

    missing = [name for name in sort_key.names if name not in raw]
    if missing:
        raise IncompleteCursorError(missing)

    return {col.name: _coerce_value(col, raw[col.name]) for col in sort_key}


def _row_value(row: Any, name: str) -> Any:
    try:
        if isinstance(row, Mapping):
            return row[name]
        return getattr(row, name)
    except (AttributeError, KeyError) as e:
        msg = f"Sort column {name!r} is not part of the result row"
        raise InvalidFilterError(msg, filter_name="order_by") from e


def _coerce_value(column: SortColumn, value: Any) -> Any:
    """Convert a JSON-decoded value back to the sort column's Python type."""
    if value is None:
        return None

    column_type = getattr(column.column, "type", None)
    try:
        python_type = column_type.python_type if column_type is not None else None
    except NotImplementedError:
        python_type = None

    if python_type is None or isinstance(value, python_type):
        return value

    try:
        if issubclass(python_type, Enum):
            return _enum_member(python_type, value)
        if isinstance(value, str):
            if python_type is datetime:
                return datetime.fromisoformat(value)
            if python_type is date:
                return date.fromisoformat(value)
            if python_type is time:
                return time.fromisoformat(value)
            if python_type is UUID:
                return UUID(value)
        if python_type is Decimal and isinstance(value, str | int | float):
            return Decimal(str(value))
    except (ValueError, ArithmeticError) as e:
        msg = f"Invalid cursor value for {column.name!r}: {value!r}"
        raise InvalidCursorError(msg) from e
    return value


def _enum_member(enum_class: type[Enum], value: Any) -> Enum:
    """Look an enum member up by name (as tokens carry it), then by value."""
    try:
        return enum_class[value]
    except (KeyError, TypeError):
        return enum_class(value)


__all__ = [
    "Cursor",
    "CursorCodec",
    "boundary_point",
    "decode_boundary",
    "encode_cursor",
]
