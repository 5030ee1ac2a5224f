"""Pytest configuration and shared fixtures.

Database fixtures run against in-memory SQLite through aiosqlite, so the
suite needs no external services.

Seed data (``people`` fixture), ordered by age DESC, id ASC:

    id:   7   4   1   3   5   8   9   2   6   10
    age:  40  35  30  30  30  30  30  25  25  20
"""
from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from seekpage.core.settings import PaginationSettings, clear_all_caches
from tests.models import Membership, Person

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

# Keep the suite independent of a developer's shell or .env
os.environ.setdefault("PAGINATION_DEFAULT_LIMIT", "10")
os.environ.setdefault("PAGINATION_COUNT_TOTAL", "false")
os.environ.setdefault("LOG_LEVEL", "INFO")

AGES = [30, 25, 30, 35, 30, 25, 40, 30, 30, 20]
BY_AGE_DESC = [7, 4, 1, 3, 5, 8, 9, 2, 6, 10]
JOINED_BASE = datetime(2024, 1, 1, 9, 30)


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _clear_settings_caches():
    """Reload settings from the environment in every test."""
    clear_all_caches()
    yield
    clear_all_caches()


@pytest.fixture
def pagination_settings() -> PaginationSettings:
    """Small page sizes so a handful of rows spans several pages."""
    return PaginationSettings(default_limit=3, max_limit=5)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Create async SQLAlchemy engine with in-memory SQLite.

    Yields:
        Async SQLAlchemy engine connected to in-memory SQLite.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create async database session with automatic table creation and cleanup.

    Args:
        db_engine: Async SQLAlchemy engine fixture.

    Yields:
        Async database session for testing.
    """
    from seekpage.core.database.base import Base

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def people(db_session: AsyncSession) -> list[Person]:
    """Ten people; ages repeat, join dates repeat every fourth id."""
    rows = [
        Person(
            id=i,
            name=f"person-{i:02d}",
            age=age,
            joined_at=JOINED_BASE + timedelta(days=i % 4),
        )
        for i, age in enumerate(AGES, start=1)
    ]
    db_session.add_all(rows)
    await db_session.commit()
    return rows


@pytest.fixture
async def memberships(db_session: AsyncSession) -> list[Membership]:
    """Memberships inserted out of key order."""
    keys = [(2, 1), (1, 3), (1, 1), (3, 2), (2, 2), (1, 2), (3, 1)]
    rows = [Membership(org_id=org, user_id=user) for org, user in keys]
    db_session.add_all(rows)
    await db_session.commit()
    return rows
