"""Unit tests for KeysetPaginator against in-memory SQLite."""
from __future__ import annotations

import logging

import pytest
from sqlalchemy import event, select

from seekpage.core.database.exceptions import (
    IncompleteCursorError,
    InvalidCursorError,
    InvalidFilterError,
)
from seekpage.core.pagination import Cursor, KeysetPaginator
from seekpage.core.settings import PaginationSettings
from tests.conftest import BY_AGE_DESC
from tests.models import Membership, Person


def ids(result) -> list[int]:
    return [row.id for row in result.items]


async def walk_forward(paginator: KeysetPaginator, limit: int) -> list:
    """Every non-empty page, following tokens until the result set is exhausted."""
    pages = []
    token = None
    while True:
        result = await paginator.page(token, limit)
        if not result.items:
            return pages
        pages.append(result)
        token = result.token


@pytest.fixture
def by_age(db_session, pagination_settings) -> KeysetPaginator[Person]:
    stmt = select(Person).order_by(Person.age.desc(), Person.id)
    return KeysetPaginator(db_session, stmt, settings=pagination_settings)


@pytest.mark.unit
class TestForwardPaging:
    """Tests for page()."""

    async def test_first_page(self, by_age, people):
        result = await by_age.page(limit=3)

        assert ids(result) == [7, 4, 1]
        assert result.cursor == Cursor(first={"age": 40, "id": 7}, last={"age": 30, "id": 1})
        assert result.total is None

    async def test_walk_visits_every_row_once_in_order(self, by_age, people):
        """Following cursors yields the full ordering without gaps or repeats."""
        pages = await walk_forward(by_age, 3)

        assert [ids(p) for p in pages] == [[7, 4, 1], [3, 5, 8], [9, 2, 6], [10]]

    async def test_seek_past_structured_cursor(self, by_age, people):
        """A page starts right after the cursor's last boundary."""
        result = await by_age.page({"first": None, "last": {"age": 30, "id": 5}}, limit=10)

        assert ids(result) == [8, 9, 2, 6, 10]

    async def test_cursor_object_and_token_are_equivalent(self, by_age, people):
        first = await by_age.page(limit=4)

        via_cursor = await by_age.page(first.cursor, 4)
        via_token = await by_age.page(first.token, 4)

        assert ids(via_cursor) == ids(via_token) == [5, 8, 9, 2]

    async def test_empty_page_echoes_cursor(self, by_age, people):
        """Paging past the end returns no rows and the incoming cursor."""
        pages = await walk_forward(by_age, 5)
        last = pages[-1]

        result = await by_age.page(last.token, 5)

        assert result.items == []
        assert result.cursor == Cursor.from_token(last.token)
        assert result.token == last.token

    async def test_empty_result_set(self, by_age):
        result = await by_age.page()

        assert result.items == []
        assert result.cursor.is_empty
        assert result.token is None

    async def test_caller_filters_are_kept(self, db_session, people, pagination_settings):
        stmt = (
            select(Person)
            .where(Person.age >= 30)
            .order_by(Person.age.desc(), Person.id)
        )
        paginator = KeysetPaginator(db_session, stmt, settings=pagination_settings)

        pages = await walk_forward(paginator, 4)

        assert [ids(p) for p in pages] == [[7, 4, 1, 3], [5, 8, 9]]

    async def test_explicit_order_by_replaces_statement_ordering(
        self, db_session, people, pagination_settings
    ):
        stmt = select(Person).order_by(Person.name)
        paginator = KeysetPaginator(
            db_session,
            stmt,
            order_by=[(Person.age, "desc"), Person.id.asc()],
            settings=pagination_settings,
        )

        pages = await walk_forward(paginator, 5)

        assert [row for p in pages for row in ids(p)] == BY_AGE_DESC


@pytest.mark.unit
class TestBackwardPaging:
    """Tests for previous_page()."""

    async def test_previous_page_returns_declared_order(self, by_age, people):
        first = await by_age.page(limit=3)
        second = await by_age.page(first.token, 3)

        back = await by_age.previous_page(second.token, 3)

        assert ids(back) == [7, 4, 1]
        assert back.cursor == first.cursor

    async def test_backward_walk_mirrors_forward_walk(self, by_age, people):
        """Walking back from the last page revisits every page in reverse."""
        pages = await walk_forward(by_age, 3)

        token = pages[-1].token
        backward = []
        while True:
            result = await by_age.previous_page(token, 3)
            if not result.items:
                break
            backward.append(result)
            token = result.token

        assert [ids(p) for p in backward] == [ids(p) for p in reversed(pages[:-1])]
        assert [p.cursor for p in backward] == [p.cursor for p in reversed(pages[:-1])]

    async def test_previous_page_before_first_is_empty(self, by_age, people):
        first = await by_age.page(limit=3)

        result = await by_age.previous_page(first.token, 3)

        assert result.items == []
        assert result.cursor == first.cursor

    async def test_partial_previous_page(self, by_age, people):
        """A previous page near the start is short but still ordered."""
        result = await by_age.previous_page({"first": {"age": 30, "id": 1}}, 5)

        assert ids(result) == [7, 4]


@pytest.mark.unit
class TestLimits:
    """Tests for page size resolution."""

    async def test_default_limit_from_settings(self, by_age, people):
        result = await by_age.page()

        assert len(result.items) == 3

    async def test_statement_limit_is_kept(self, db_session, people, pagination_settings):
        stmt = select(Person).order_by(Person.id).limit(4)
        paginator = KeysetPaginator(db_session, stmt, settings=pagination_settings)

        first = await paginator.page()
        second = await paginator.page(first.token)

        assert ids(first) == [1, 2, 3, 4]
        assert ids(second) == [5, 6, 7, 8]

    async def test_statement_offset_is_dropped(self, db_session, people, pagination_settings):
        """Each page starts right after its cursor, whatever OFFSET the statement had."""
        stmt = select(Person).order_by(Person.id).offset(2)
        paginator = KeysetPaginator(db_session, stmt, settings=pagination_settings)

        pages = await walk_forward(paginator, 4)

        assert [ids(p) for p in pages] == [[1, 2, 3, 4], [5, 6, 7, 8], [9, 10]]

    async def test_limit_is_clamped_to_max(self, by_age, people, caplog):
        with caplog.at_level(logging.WARNING, logger="seekpage.pagination"):
            result = await by_age.page(limit=50)

        assert len(result.items) == 5
        record = next(r for r in caplog.records if r.name == "seekpage.pagination")
        assert record.requested == 50
        assert record.max_limit == 5

    @pytest.mark.parametrize("limit", [0, -1])
    async def test_non_positive_limit(self, by_age, people, limit):
        with pytest.raises(InvalidFilterError) as exc_info:
            await by_age.page(limit=limit)

        assert exc_info.value.details == {"filter": "limit"}

    async def test_global_settings_are_used_by_default(self, db_session, people, monkeypatch):
        monkeypatch.setenv("PAGINATION_DEFAULT_LIMIT", "2")
        paginator = KeysetPaginator(db_session, select(Person).order_by(Person.id))

        result = await paginator.page()

        assert paginator.settings.default_limit == 2
        assert ids(result) == [1, 2]


@pytest.mark.unit
class TestTotal:
    """Tests for the optional total count."""

    async def test_total_ignores_cursor_and_limit(self, by_age, people):
        first = await by_age.page(limit=3, include_total=True)
        second = await by_age.page(first.token, 3, include_total=True)
        back = await by_age.previous_page(second.token, 3, include_total=True)

        assert first.total == second.total == back.total == 10

    async def test_total_respects_caller_filters(self, db_session, people, pagination_settings):
        stmt = select(Person).where(Person.age < 30).order_by(Person.id)
        paginator = KeysetPaginator(db_session, stmt, settings=pagination_settings)

        result = await paginator.page(limit=1, include_total=True)

        assert ids(result) == [2]
        assert result.total == 3

    async def test_count_total_setting(self, db_session, people):
        settings = PaginationSettings(count_total=True)
        paginator = KeysetPaginator(
            db_session, select(Person).order_by(Person.id), settings=settings
        )

        assert (await paginator.page(limit=2)).total == 10
        assert (await paginator.page(limit=2, include_total=False)).total is None


@pytest.mark.unit
class TestCursorErrors:
    """Invalid cursors fail before any query runs."""

    async def test_missing_seek_keys(self, by_age, people):
        with pytest.raises(IncompleteCursorError) as exc_info:
            await by_age.page({"last": {"age": 30}})

        assert exc_info.value.missing_columns == ["id"]

    async def test_malformed_token(self, by_age, people):
        with pytest.raises(InvalidCursorError):
            await by_age.page("%%%")

    async def test_backward_needs_first_boundary_keys(self, by_age, people):
        with pytest.raises(IncompleteCursorError) as exc_info:
            await by_age.previous_page({"first": {}, "last": {"age": 30, "id": 1}})

        assert exc_info.value.missing_columns == ["age", "id"]


@pytest.mark.unit
class TestSortKeyShapes:
    """Pagination over different kinds of sort keys and rows."""

    async def test_identity_fallback(self, db_session, people, pagination_settings):
        """Without ORDER BY rows are paged by primary key."""
        paginator = KeysetPaginator(db_session, select(Person), settings=pagination_settings)

        pages = await walk_forward(paginator, 4)

        assert [ids(p) for p in pages] == [[1, 2, 3, 4], [5, 6, 7, 8], [9, 10]]
        assert pages[0].cursor == Cursor(first=1, last=4)

    async def test_composite_identity(self, db_session, memberships, pagination_settings):
        paginator = KeysetPaginator(
            db_session, select(Membership), settings=pagination_settings
        )

        pages = await walk_forward(paginator, 2)

        keys = [(m.org_id, m.user_id) for p in pages for m in p.items]
        assert keys == [(1, 1), (1, 2), (1, 3), (2, 1), (2, 2), (3, 1), (3, 2)]

    async def test_no_ordering_without_entity(self, db_session, people, pagination_settings):
        paginator = KeysetPaginator(
            db_session, select(Person.__table__), settings=pagination_settings
        )

        with pytest.raises(InvalidFilterError):
            await paginator.page()

    async def test_explicit_identity(self, db_session, people, pagination_settings):
        paginator = KeysetPaginator(
            db_session,
            select(Person.id, Person.name),
            identity=[("id", Person.id)],
            settings=pagination_settings,
        )

        result = await paginator.page(limit=2)

        assert [tuple(row) for row in result.items] == [(1, "person-01"), (2, "person-02")]

    async def test_core_rows(self, db_session, people, pagination_settings):
        """Column selects page over Row objects."""
        stmt = select(Person.id, Person.name).order_by(Person.name.desc())
        paginator = KeysetPaginator(db_session, stmt, settings=pagination_settings)

        pages = await walk_forward(paginator, 4)

        names = [row.name for p in pages for row in p.items]
        assert names == [f"person-{i:02d}" for i in range(10, 0, -1)]
        assert pages[0].cursor.first == "person-10"

    async def test_datetime_sort_key(self, db_session, people, pagination_settings):
        """Datetime boundaries survive the token round trip."""
        stmt = select(Person).order_by(Person.joined_at.desc(), Person.id)
        paginator = KeysetPaginator(db_session, stmt, settings=pagination_settings)

        pages = await walk_forward(paginator, 3)

        expected = sorted(people, key=lambda p: (-p.joined_at.toordinal(), p.id))
        assert [row for p in pages for row in ids(p)] == [p.id for p in expected]

    async def test_unknown_row_attribute(self, db_session, people, pagination_settings):
        """Sorting on a column that is not selected cannot produce a cursor."""
        stmt = select(Person.id).order_by(Person.age, Person.id)
        paginator = KeysetPaginator(db_session, stmt, settings=pagination_settings)

        with pytest.raises(InvalidFilterError, match="not part of the result row"):
            await paginator.page()

    async def test_unselected_sort_column_fails_before_querying(
        self, db_engine, db_session, people, pagination_settings
    ):
        stmt = select(Person.id, Person.name).order_by(Person.age, Person.id)
        paginator = KeysetPaginator(db_session, stmt, settings=pagination_settings)
        statements = []

        @event.listens_for(db_engine.sync_engine, "before_cursor_execute")
        def record(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        try:
            with pytest.raises(InvalidFilterError, match="'age' is not part of the result row"):
                await paginator.page(include_total=True)
        finally:
            event.remove(db_engine.sync_engine, "before_cursor_execute", record)

        assert statements == []

    async def test_entity_attribute_sort_columns_are_accepted(
        self, db_session, pagination_settings
    ):
        stmt = select(Person).order_by(Person.joined_at.desc(), Person.id)
        paginator = KeysetPaginator(db_session, stmt, settings=pagination_settings)

        assert paginator.resolve().sort_key.names == ("joined_at", "id")
