"""
sqlgate: a minimal SQL execution gateway.

Runs one parameterized statement at a time against a relational store over a
single non-auto-committing connection and returns rows as lists of
Cell(column_name, value).

    from sqlgate import QueryExecutor

    with QueryExecutor() as qe:  # fresh in-memory SQLite
        qe.execute("CREATE TABLE t (id INTEGER, name TEXT)")
        qe.execute("INSERT INTO t VALUES (?, ?)", [1, "a"])
        rows = qe.execute("SELECT * FROM t")
"""

from sqlgate.core.errors import (
    ConnectionError,
    QueryError,
    QueryTimeoutError,
    ResultTooLargeError,
    SQLGateError,
    StatementShapeError,
)
from sqlgate.engines.sql import Cell, QueryExecutor, ResultSet, Row, StatementKind

__all__ = [
    "QueryExecutor",
    "Cell",
    "Row",
    "ResultSet",
    "StatementKind",
    "SQLGateError",
    "ConnectionError",
    "QueryError",
    "QueryTimeoutError",
    "ResultTooLargeError",
    "StatementShapeError",
]
