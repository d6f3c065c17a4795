"""
Single-connection SQL executor.

QueryExecutor owns one connection to the backing store, with auto-commit off,
and runs one statement per call as one all-or-nothing unit:

- query (SELECT, VALUES, read-only PRAGMA, CTE ending in SELECT, ...): every
  row is read before the call returns; the transaction is not committed.
- command (DDL/DML): committed on success; returns None.
- command with RETURNING: every row is read, then the transaction is committed.

Any failure rolls the transaction back and raises QueryError; the executor
stays usable. Calls are serialized: one statement in flight per executor.
"""

import logging
import threading
import time
from collections.abc import Mapping, Sequence
from types import TracebackType
from typing import Any

from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import DBAPIError

from sqlgate.core import store
from sqlgate.core.config import settings
from sqlgate.core.errors import (
    ConnectionError,
    QueryError,
    QueryTimeoutError,
    ResultTooLargeError,
    StatementShapeError,
    sql_preview,
)
from sqlgate.engines.sql.result import ResultSet, materialize
from sqlgate.engines.sql.statement import Statement, count_placeholders, prepare

logger = logging.getLogger(__name__)


def _to_params(bindings: Sequence[Any] | None, sql: str) -> tuple[Any, ...]:
    """Positional bindings as a tuple; None means no placeholders."""
    if bindings is None:
        return ()
    if isinstance(bindings, str | bytes | bytearray) or isinstance(bindings, Mapping):
        raise QueryError(
            f"Bindings must be a positional sequence, got {type(bindings).__name__}",
            sql=sql,
        )
    return tuple(bindings)


class QueryExecutor:
    """
    Gateway to one relational store over one exclusively-owned connection.

    - location: SQLAlchemy URL, forwarded unchanged. None opens a fresh
      in-memory SQLite store.
    - statement_timeout: default deadline in seconds for execute(); falls back
      to settings.STATEMENT_TIMEOUT. None or 0 = no deadline.

    Raises ConnectionError when the store cannot be opened.
    """

    def __init__(
        self,
        location: str | None = None,
        *,
        statement_timeout: float | None = None,
    ) -> None:
        self.location = location
        self.statement_timeout = (
            statement_timeout
            if statement_timeout is not None
            else settings.STATEMENT_TIMEOUT
        )
        self._lock = threading.Lock()
        self._closed = False
        self._engine, self._conn = store.connect(location)
        self._raw = store.dbapi_connection(self._conn)
        self._can_interrupt = store.can_interrupt(self._raw)
        self._warned_no_interrupt = False

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<QueryExecutor {store.masked_url(self.location)} ({state})>"

    def __enter__(self) -> "QueryExecutor":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dialect(self) -> str:
        return self._engine.dialect.name

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def execute(
        self,
        sql: str,
        bindings: Sequence[Any] | None = None,
        *,
        timeout: float | None = None,
        max_rows: int | None = None,
    ) -> ResultSet | None:
        """
        Run one statement with positional *bindings* (first binding -> first placeholder).

        Returns the full list of rows for statements that produce a result set,
        None for statements that do not (those are committed).

        - timeout: deadline in seconds for this call; None uses the executor
          default, 0 disables it. On expiry the statement is interrupted and
          QueryTimeoutError is raised.
        - max_rows: upper bound on the rows returned. A larger result raises
          ResultTooLargeError before anything is committed, so a RETURNING
          command that exceeds it is rolled back.

        Raises QueryError (rolled back, executor still usable) or
        ConnectionError (executor closed).
        """
        stmt = prepare(sql)
        params = _to_params(bindings, sql)
        deadline = self.statement_timeout if timeout is None else timeout

        with self._lock:
            self._ensure_open()
            return self._run(stmt, params, deadline, max_rows)

    def ping(self) -> bool:
        """Lightweight SELECT 1 on the executor's connection. Never raises."""
        with self._lock:
            if self._closed:
                return False
            was_in_transaction = self._conn.in_transaction()
            ok = store.health_check(self._conn)
            if not ok or not was_in_transaction:
                self._rollback_quietly()
            return ok

    def close(self) -> None:
        """Roll back anything uncommitted and release the connection. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                self._conn.close()
            finally:
                self._engine.dispose()
            logger.info("Closed store %s", store.masked_url(self.location))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise ConnectionError("Executor is closed", location=self.location)

    def _run(
        self,
        stmt: Statement,
        params: tuple[Any, ...],
        timeout: float | None,
        max_rows: int | None = None,
    ) -> ResultSet | None:
        timer, fired = self._arm_timer(timeout)
        started = time.monotonic()
        try:
            result = self._send(stmt.text, params)
            try:
                rows = self._collect(stmt, result)
            finally:
                result.close()
            if rows is not None and max_rows is not None and len(rows) > max_rows:
                raise ResultTooLargeError(len(rows), max_rows, sql=stmt.text)
            if stmt.kind.commits:
                self._conn.commit()
        except QueryError as e:
            self._rollback_quietly()
            self._log_failure(stmt, params, e)
            raise
        except Exception as e:
            self._rollback_quietly()
            err: QueryError
            if fired.is_set():
                err = QueryTimeoutError(
                    f"Statement exceeded timeout of {timeout}s", sql=stmt.text, bindings=params
                )
            else:
                cause = e.orig if isinstance(e, DBAPIError) and e.orig is not None else e
                err = QueryError(f"Statement failed: {cause}", sql=stmt.text, bindings=params)
            self._log_failure(stmt, params, err)
            raise err from e
        finally:
            if timer is not None:
                # A deadline callback in flight must finish while the lock is held.
                timer.cancel()
                timer.join()

        logger.debug(
            "Executed %s in %.1f ms (%s rows): %s",
            stmt.kind.value,
            (time.monotonic() - started) * 1000,
            "no" if rows is None else len(rows),
            sql_preview(stmt.text),
        )
        return rows

    def _send(self, text: str, params: tuple[Any, ...]) -> CursorResult:
        if params:
            return self._conn.exec_driver_sql(text, params)
        return self._conn.exec_driver_sql(text)

    @staticmethod
    def _collect(stmt: Statement, result: CursorResult) -> ResultSet | None:
        if result.returns_rows != stmt.kind.returns_rows:
            expected = "a result set" if stmt.kind.returns_rows else "no result set"
            raise StatementShapeError(
                f"Statement classified as {stmt.kind.value} (expects {expected}) "
                f"but the store reported the opposite",
                sql=stmt.text,
            )
        if not stmt.kind.returns_rows:
            return None
        return materialize(result)

    def _arm_timer(
        self, timeout: float | None
    ) -> tuple[threading.Timer | None, threading.Event]:
        fired = threading.Event()
        if timeout is None or timeout <= 0:
            return None, fired
        if not self._can_interrupt:
            if not self._warned_no_interrupt:
                logger.warning(
                    "Driver %s cannot interrupt statements; timeouts are not enforced",
                    self._engine.dialect.driver,
                )
                self._warned_no_interrupt = True
            return None, fired

        def _on_deadline() -> None:
            fired.set()
            store.interrupt(self._raw)

        timer = threading.Timer(timeout, _on_deadline)
        timer.daemon = True
        timer.start()
        return timer, fired

    def _rollback_quietly(self) -> None:
        try:
            self._conn.rollback()
        except Exception:
            logger.warning("Rollback failed on store %s", store.masked_url(self.location), exc_info=True)

    @staticmethod
    def _log_failure(stmt: Statement, params: tuple[Any, ...], err: QueryError) -> None:
        # Binding values are never logged, only their count.
        logger.warning(
            "Rolled back %s (placeholders=%d, bindings=%d): %s",
            stmt.kind.value,
            count_placeholders(stmt.text),
            len(params),
            err,
        )
