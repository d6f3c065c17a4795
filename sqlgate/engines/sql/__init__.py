"""
SQL engine: statement classification, execution, result normalization.

Exports: QueryExecutor, Cell, ResultSet, StatementKind, prepare, classify.
"""

from sqlgate.engines.sql.executor import QueryExecutor
from sqlgate.engines.sql.result import (
    Cell,
    ResultSet,
    Row,
    ScalarKind,
    describe_columns,
    scalar_kind,
    sql_type_name,
)
from sqlgate.engines.sql.statement import (
    Statement,
    StatementKind,
    classify,
    prepare,
    split_statements,
)

__all__ = [
    "QueryExecutor",
    "Cell",
    "Row",
    "ResultSet",
    "ScalarKind",
    "scalar_kind",
    "sql_type_name",
    "describe_columns",
    "Statement",
    "StatementKind",
    "classify",
    "prepare",
    "split_statements",
]
