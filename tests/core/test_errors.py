"""Tests for core.errors."""

import pytest

from sqlgate.core.errors import (
    ConnectionError,
    QueryError,
    QueryTimeoutError,
    ResultTooLargeError,
    SQLGateError,
    StatementShapeError,
    sql_preview,
)


def test_hierarchy() -> None:
    assert issubclass(ConnectionError, SQLGateError)
    assert issubclass(QueryError, SQLGateError)
    assert issubclass(StatementShapeError, QueryError)
    assert issubclass(QueryTimeoutError, QueryError)
    assert issubclass(ResultTooLargeError, QueryError)
    assert not issubclass(QueryError, ConnectionError)


def test_query_error_carries_statement() -> None:
    err = QueryError("Statement failed: boom", sql="SELECT *\n  FROM t", bindings=[1, "a"])
    assert err.sql == "SELECT *\n  FROM t"
    assert err.bindings == (1, "a")
    assert str(err) == "Statement failed: boom [sql: SELECT * FROM t]"


def test_query_error_without_sql() -> None:
    err = QueryError("bad input")
    assert err.sql is None
    assert err.bindings is None
    assert str(err) == "bad input"


def test_connection_error_location() -> None:
    err = ConnectionError("down", location="sqlite:///x.db")
    assert err.location == "sqlite:///x.db"
    with pytest.raises(SQLGateError):
        raise err


def test_sql_preview_truncates() -> None:
    assert sql_preview(None) == ""
    assert sql_preview("SELECT   1\n") == "SELECT 1"
    long_sql = "SELECT " + ", ".join(f"c{i}" for i in range(200))
    preview = sql_preview(long_sql, limit=50)
    assert len(preview) == 50
    assert preview.endswith("...")


def test_result_too_large_error() -> None:
    err = ResultTooLargeError(5, 2, sql="SELECT * FROM t")
    assert (err.row_count, err.limit) == (5, 2)
    assert str(err) == "Result has 5 rows, more than the limit of 2 [sql: SELECT * FROM t]"
