"""Declarative base for models served through keyset pagination.

A model's primary key doubles as its identity key: statements over the model
that declare no ORDER BY are paged by it.

    class Article(Base, IntegerPKMixin):
        __tablename__ = "articles"
        title: Mapped[str] = mapped_column(String(255))

    # identity order (id), or an explicit order with id as tie-breaker
    select(Article)
    select(Article).order_by(Article.title, Article.id)
"""

from __future__ import annotations

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

# Constraint names derived from table and column names
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base; the table name defaults to the lowercased class name."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return cls.__name__.lower()


class IntegerPKMixin:
    """Auto-incrementing integer ``id``; unique, so a complete sort key on its own."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)


__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "IntegerPKMixin",
]
