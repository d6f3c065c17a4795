"""
Normalized result representation.

A result set is a list of rows; a row is a list of Cell(column_name, value) in
the store's left-to-right column order. Values are whatever the driver maps
the column type to (None, int, float, str, bool, bytes, datetime, Decimal, ...).
"""

import base64
import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, NamedTuple

from sqlalchemy.engine import CursorResult


class Cell(NamedTuple):
    column_name: str
    value: Any


Row = list[Cell]
ResultSet = list[Row]


def materialize(result: CursorResult) -> ResultSet:
    """
    Read every remaining row of *result* into a ResultSet.

    Column names are taken once from the result metadata; they cannot change
    between rows of one result.
    """
    names = [str(k) for k in result.keys()]
    return [
        [Cell(name, value) for name, value in zip(names, row, strict=True)]
        for row in result.fetchall()
    ]


def column_names(result_set: ResultSet) -> list[str]:
    """Column names of a non-empty result set; [] when there are no rows."""
    if not result_set:
        return []
    return [cell.column_name for cell in result_set[0]]


class ScalarKind(str, Enum):
    NULL = "null"
    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"
    BOOLEAN = "boolean"
    BLOB = "blob"
    OTHER = "other"


def scalar_kind(value: Any) -> ScalarKind:
    """Tag a cell value with its scalar kind."""
    if value is None:
        return ScalarKind.NULL
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ScalarKind.BOOLEAN
    if isinstance(value, int):
        return ScalarKind.INTEGER
    if isinstance(value, float | Decimal):
        return ScalarKind.FLOAT
    if isinstance(value, str):
        return ScalarKind.TEXT
    if isinstance(value, bytes | bytearray | memoryview):
        return ScalarKind.BLOB
    return ScalarKind.OTHER


_SQL_TYPE_NAMES = {
    ScalarKind.INTEGER: "INT",
    ScalarKind.FLOAT: "REAL",
    ScalarKind.TEXT: "TEXT",
    ScalarKind.BLOB: "BLOB",
}


def sql_type_name(kind: ScalarKind) -> str:
    """SQL type name for declaring a column that holds *kind* values (NULL for the rest)."""
    return _SQL_TYPE_NAMES.get(kind, "NULL")


def describe_columns(result_set: ResultSet) -> list[tuple[str, str]]:
    """
    (name, SQL type name) per column, typed by the first non-null value in it.

    All-null columns are NULL; an empty result set has no columns.
    """
    described = []
    for i, name in enumerate(column_names(result_set)):
        value = next((row[i].value for row in result_set if row[i].value is not None), None)
        described.append((name, sql_type_name(scalar_kind(value))))
    return described


def to_json_safe(obj: Any) -> Any:
    """Recursively convert non-JSON-serializable values to safe primitives.

    Handles: Cell, datetime, date, time, timedelta, Decimal, UUID, bytes, sets.
    Binary values are base64-encoded so no byte is lost.
    """
    if obj is None or isinstance(obj, bool | int | float | str):
        return obj
    if isinstance(obj, Cell):
        return {"column_name": obj.column_name, "value": to_json_safe(obj.value)}
    if isinstance(obj, datetime | date | time):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return obj.total_seconds()
    if isinstance(obj, Decimal):
        # Preserve integer-valued decimals as int, otherwise float
        if obj.is_finite() and obj == obj.to_integral_value():
            return int(obj)
        return float(obj)
    if isinstance(obj, uuid.UUID):
        return str(obj)
    if isinstance(obj, bytes | bytearray | memoryview):
        return base64.b64encode(bytes(obj)).decode("ascii")
    if isinstance(obj, dict):
        return {str(k): to_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, list | tuple):
        return [to_json_safe(item) for item in obj]
    if isinstance(obj, set | frozenset):
        return [to_json_safe(item) for item in sorted(obj, key=str)]
    # Fallback: use str() for unknown types
    return str(obj)
