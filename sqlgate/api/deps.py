from typing import Annotated

from fastapi import Depends, Request

from sqlgate.core.errors import ConnectionError
from sqlgate.engines.sql import QueryExecutor


def get_executor(request: Request) -> QueryExecutor:
    """The application's single executor (opened in the lifespan handler)."""
    executor: QueryExecutor | None = getattr(request.app.state, "executor", None)
    if executor is None or executor.closed:
        raise ConnectionError("Store is not open")
    return executor


ExecutorDep = Annotated[QueryExecutor, Depends(get_executor)]
