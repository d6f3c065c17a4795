from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from sqlgate.engines.sql import QueryExecutor
from sqlgate.main import app


@pytest.fixture()
def executor() -> Generator[QueryExecutor, None, None]:
    """Fresh in-memory store, no statement deadline."""
    qe = QueryExecutor(statement_timeout=0)
    yield qe
    qe.close()


@pytest.fixture()
def people(executor: QueryExecutor) -> QueryExecutor:
    """Executor with a committed two-row `people` table."""
    executor.execute(
        "CREATE TABLE people (id INTEGER PRIMARY KEY, name TEXT NOT NULL, score REAL)"
    )
    executor.execute("INSERT INTO people VALUES (?, ?, ?)", [1, "ada", 9.5])
    executor.execute("INSERT INTO people VALUES (?, ?, ?)", [2, "bob", None])
    return executor


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    """App client; entering the context runs the lifespan (fresh in-memory executor)."""
    with TestClient(app) as c:
        yield c
