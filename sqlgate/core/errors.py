"""
Exception taxonomy for the SQL gateway.

- ConnectionError: the backing store could not be opened (or the executor is closed).
- QueryError: one statement failed; the transaction was rolled back and the
  executor is still usable. QueryTimeoutError and ResultTooLargeError refine it.
"""

from collections.abc import Sequence
from typing import Any

_SQL_PREVIEW_LEN = 200


def sql_preview(sql: str | None, limit: int = _SQL_PREVIEW_LEN) -> str:
    """Single-line, truncated SQL for messages and log lines."""
    if not sql:
        return ""
    flat = " ".join(sql.split())
    if len(flat) <= limit:
        return flat
    return flat[: limit - 3] + "..."


class SQLGateError(Exception):
    """Base class for all gateway errors."""


class ConnectionError(SQLGateError):  # noqa: A001 - shadows builtin on purpose, like requests
    """Raised when the backing store cannot be reached, opened, or is already closed."""

    def __init__(self, message: str, *, location: str | None = None) -> None:
        super().__init__(message)
        self.location = location


class QueryError(SQLGateError):
    """Raised when a single statement fails to classify, prepare, bind, execute or materialize."""

    def __init__(
        self,
        message: str,
        *,
        sql: str | None = None,
        bindings: Sequence[Any] | None = None,
    ) -> None:
        self.sql = sql
        self.bindings = tuple(bindings) if bindings is not None else None
        if sql:
            message = f"{message} [sql: {sql_preview(sql)}]"
        super().__init__(message)


class StatementShapeError(QueryError):
    """Statement kind and driver result metadata disagree (rows vs no rows)."""


class QueryTimeoutError(QueryError):
    """Statement was interrupted because it ran past its deadline."""


class ResultTooLargeError(QueryError):
    """Statement produced more rows than the caller allowed; nothing was committed."""

    def __init__(self, row_count: int, limit: int, *, sql: str | None = None) -> None:
        self.row_count = row_count
        self.limit = limit
        super().__init__(
            f"Result has {row_count} rows, more than the limit of {limit}", sql=sql
        )
