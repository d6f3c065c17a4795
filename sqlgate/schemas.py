"""
Pydantic schemas for the HTTP surface.

ExecuteRequest is the body of POST /sql/execute; ExecuteResult is the `data`
part of its response envelope.
"""

from typing import Any

from pydantic import Field
from sqlmodel import SQLModel

# JSON scalars only; positional, bound in order to placeholders 1..n.
Binding = bool | int | float | str | None


class ExecuteRequest(SQLModel):
    """Body for POST /sql/execute."""

    sql: str = Field(..., min_length=1, description="One SQL statement.")
    bindings: list[Binding] | None = Field(
        default=None,
        description="Positional values for the statement's placeholders, in order.",
    )
    timeout: float | None = Field(
        default=None,
        ge=0,
        description="Deadline in seconds; omitted = server default, 0 = none.",
    )


class CellOut(SQLModel):
    column_name: str
    value: Any = None


class ColumnOut(SQLModel):
    """Column name and storage class (INT, REAL, TEXT, BLOB or NULL) of its first non-null value."""

    name: str
    type: str


class ExecuteResult(SQLModel):
    """rows, row_count and columns are null for statements that produce no result set (they were committed)."""

    rows: list[list[CellOut]] | None = None
    row_count: int | None = None
    columns: list[ColumnOut] | None = None
