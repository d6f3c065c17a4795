"""
Backing-store connection helpers: open, interrupt, health check.

One engine and one checked-out connection per executor. No pooling: the engine
uses NullPool and the executor keeps its connection for its whole lifetime.
The store location is a SQLAlchemy URL and is forwarded unchanged; the only
thing read from it is the backend name, to apply the SQLite settings below.
"""

import logging
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import ArgumentError, NoSuchModuleError, SQLAlchemyError
from sqlalchemy.pool import NullPool

from sqlgate.core.config import settings
from sqlgate.core.errors import ConnectionError

logger = logging.getLogger(__name__)

IN_MEMORY_URL = "sqlite://"

_DRIVER_LOGGER = "sqlalchemy.engine"


def masked_url(location: str | None) -> str:
    """Render a store location for logs with its password hidden."""
    target = location or IN_MEMORY_URL
    try:
        return make_url(target).render_as_string(hide_password=True)
    except ArgumentError:
        return "<unparseable url>"


def _is_sqlite(location: str) -> bool:
    return make_url(location).get_backend_name() == "sqlite"


def _enable_sqlite_transactions(engine: Engine) -> None:
    """
    Hand BEGIN over to SQLAlchemy.

    pysqlite only opens a transaction in front of INSERT/UPDATE/DELETE, so DDL
    would run outside of it and could not be rolled back.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:  # noqa: ARG001
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Connection) -> None:
        conn.exec_driver_sql("BEGIN")


def open_engine(location: str | None) -> Engine:
    """
    Create the engine for *location* (None = fresh in-memory SQLite).

    Raises sqlalchemy ArgumentError / NoSuchModuleError (or ImportError) when the
    URL cannot be parsed or its driver cannot be loaded.
    """
    target = location or IN_MEMORY_URL
    kwargs: dict[str, Any] = {"poolclass": NullPool}
    sqlite = _is_sqlite(target)
    if sqlite:
        # Access is serialized by the executor lock; the connection may be used
        # from worker threads (FastAPI runs blocking calls off the event loop).
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.CONNECT_TIMEOUT,
        }
    engine = create_engine(target, **kwargs)
    if sqlite:
        _enable_sqlite_transactions(engine)
    return engine


def connect(location: str | None) -> tuple[Engine, Connection]:
    """
    Open the store at *location* and check out its single connection.

    Auto-commit is never enabled: SQLAlchemy 2.x connections begin a transaction
    on first use and keep it until commit() or rollback().

    Raises ConnectionError when the driver is missing, the URL is invalid, or
    the store cannot be opened.
    """
    shown = masked_url(location)
    try:
        engine = open_engine(location)
    except (ArgumentError, NoSuchModuleError, ImportError) as e:
        logger.error("Cannot load driver for store %s: %s", shown, e)
        raise ConnectionError(
            f"Cannot load driver for store {shown}: {e}", location=location
        ) from e

    try:
        conn = engine.connect()
    except SQLAlchemyError as e:
        engine.dispose()
        logger.error("Cannot open store %s: %s", shown, e)
        raise ConnectionError(
            f"Cannot open store {shown}: {e}", location=location
        ) from e

    logger.info("Opened store %s (dialect=%s)", shown, engine.dialect.name)
    return engine, conn


def dbapi_connection(conn: Connection) -> Any:
    """Raw DB-API connection behind a SQLAlchemy connection."""
    return conn.connection.dbapi_connection


def can_interrupt(raw: Any) -> bool:
    """True if the DB-API connection exposes a way to abort a running statement."""
    return any(callable(getattr(raw, name, None)) for name in ("interrupt", "cancel"))


def interrupt(raw: Any) -> bool:
    """
    Abort the statement running on *raw*. Called from a timer thread.

    sqlite3 exposes interrupt(); psycopg/psycopg2 expose cancel().
    Returns False when the driver supports neither or the call failed.
    """
    for name in ("interrupt", "cancel"):
        fn = getattr(raw, name, None)
        if callable(fn):
            try:
                fn()
            except Exception:
                logger.warning("Interrupting statement via %s() failed", name, exc_info=True)
                return False
            return True
    return False


def health_check(conn: Connection) -> bool:
    """Run SELECT 1 and return True if no exception."""
    try:
        result = conn.exec_driver_sql("SELECT 1")
        try:
            result.fetchone()
        finally:
            result.close()
        return True
    except Exception:
        return False


def set_driver_log_level(level: int | str) -> None:
    """Set the level of the SQLAlchemy engine logger (INFO echoes every statement)."""
    logging.getLogger(_DRIVER_LOGGER).setLevel(level)
