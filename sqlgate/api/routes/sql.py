"""
POST /sql/execute: run one statement through the application's QueryExecutor.

QueryExecutor.execute is blocking; it runs in a worker thread so the event loop
keeps serving other requests. The executor's own lock serializes statements.
"""

import asyncio
from typing import Any

from fastapi import APIRouter

from sqlgate.api.deps import ExecutorDep
from sqlgate.api.responses import envelope
from sqlgate.core.config import settings
from sqlgate.engines.sql.result import ResultSet, describe_columns
from sqlgate.schemas import CellOut, ColumnOut, ExecuteRequest, ExecuteResult

router = APIRouter(prefix="/sql", tags=["sql"])


def _to_result(rows: ResultSet | None) -> ExecuteResult:
    if rows is None:
        return ExecuteResult(rows=None, row_count=None, columns=None)
    return ExecuteResult(
        rows=[
            [CellOut(column_name=c.column_name, value=c.value) for c in row]
            for row in rows
        ],
        row_count=len(rows),
        columns=[ColumnOut(name=name, type=type_) for name, type_ in describe_columns(rows)],
    )


@router.post("/execute", response_model=None)
async def execute_sql(body: ExecuteRequest, executor: ExecutorDep) -> Any:
    """
    Execute one SQL statement with positional bindings.

    data.rows is null for statements without a result set (committed), otherwise
    the full list of rows, each a list of {column_name, value}.
    QueryError → 400, result over MAX_RESULT_ROWS → 413 (rolled back),
    timeout → 504, store unavailable → 503.
    """
    rows = await asyncio.to_thread(
        executor.execute,
        body.sql,
        body.bindings,
        timeout=body.timeout,
        max_rows=settings.MAX_RESULT_ROWS,
    )
    return envelope(_to_result(rows).model_dump())
