"""Deferred log messages.

Rendering a compiled seek predicate or summarising a fetched page is not
free, so debug output is passed as a callable and only built when the record
is actually going to be emitted:

    log = get_lazy_logger("seekpage.pagination")
    log.debug(lambda: f"pagination.keyset: {statement}")
"""

from __future__ import annotations

import logging
from collections.abc import Callable, MutableMapping
from typing import Any


def _resolve(value: Any) -> Any:
    return value() if callable(value) else value


class LazyString:
    """String whose value is computed when it is first formatted.

    Handy as a %-style argument of an ordinary logger:

        logger.debug("boundary=%s", LazyString(lambda: describe(boundary)))
    """

    __slots__ = ("_factory",)

    def __init__(self, factory: Callable[[], Any]) -> None:
        self._factory = factory

    def __str__(self) -> str:
        return str(self._factory())

    def __repr__(self) -> str:
        return f"<LazyString {self._factory!r}>"


class LazyLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter accepting callables for the message and its arguments.

    Nothing is evaluated unless the level is enabled. Context bound to the
    adapter is merged into the ``extra`` of every record; a per-call
    ``extra`` wins on key clashes.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        if self.extra:
            kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs

    def log(self, level: int, msg: Any, *args: Any, **kwargs: Any) -> None:
        if not self.isEnabledFor(level):
            return
        super().log(level, _resolve(msg), *(_resolve(arg) for arg in args), **kwargs)

    def bind(self, **context: Any) -> LazyLoggerAdapter:
        """New adapter on the same logger with additional context."""
        return LazyLoggerAdapter(self.logger, {**(self.extra or {}), **context})


def get_lazy_logger(name: str, **context: Any) -> LazyLoggerAdapter:
    """Lazy logger for ``name``, optionally with context bound to every record."""
    return LazyLoggerAdapter(logging.getLogger(name), context)


def lazy(factory: Callable[[], Any]) -> LazyString:
    """Shorthand for LazyString(factory)."""
    return LazyString(factory)
