"""JSON Lines formatter."""
from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

# Attributes every LogRecord carries; anything else on a record came in via extra=
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}

DEFAULT_KEYS = {"level": "levelname", "logger": "name", "message": "message"}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, timestamps in UTC.

    Fields passed with ``extra=`` (sort key, limit, row count...) are merged
    in at the top level:

        {"level": "DEBUG", "logger": "seekpage.pagination", "message": "Keyset page fetched",
         "timestamp": "2025-01-01T00:00:00.123Z", "sort_key": ["age", "id"], "rows": 10}
    """

    def __init__(
        self,
        fmt_keys: dict[str, str] | None = None,
        static: dict[str, Any] | None = None,
    ) -> None:
        """Initialize JSON formatter.

        Args:
            fmt_keys: Output key -> LogRecord attribute (default: DEFAULT_KEYS)
            static: Fields added to every line, e.g. {"service": "catalog"}
        """
        super().__init__()
        self.fmt_keys = fmt_keys or DEFAULT_KEYS
        self.static = static or {}

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        created = datetime.fromtimestamp(record.created, tz=UTC)

        data: dict[str, Any] = {
            key: getattr(record, attr, None) for key, attr in self.fmt_keys.items()
        }
        data["timestamp"] = created.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        data.update(self.static)

        # newlines would break the one-record-per-line contract
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info).replace("\n", "\\n")
        if record.stack_info:
            data["stack_trace"] = self.formatStack(record.stack_info).replace("\n", "\\n")

        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                data.setdefault(key, value)

        return json.dumps(data, ensure_ascii=False, default=str)
