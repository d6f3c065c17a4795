"""Tests for POST /api/v1/sql/execute."""

import sqlite3
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from sqlgate.core.config import settings

URL = f"{settings.API_V1_STR}/sql/execute"


def _run(client: TestClient, sql: str, bindings: list | None = None, **extra: object):
    body: dict = {"sql": sql, **extra}
    if bindings is not None:
        body["bindings"] = bindings
    return client.post(URL, json=body)


def test_execute_round(client: TestClient) -> None:
    r = _run(client, "CREATE TABLE t (id INTEGER, name TEXT)")
    assert r.status_code == 200
    assert r.json() == {
        "success": True,
        "message": None,
        "data": {"rows": None, "row_count": None, "columns": None},
    }

    r = _run(client, "INSERT INTO t VALUES (?, ?)", [1, "a"])
    assert r.status_code == 200
    assert r.json()["data"]["rows"] is None

    r = _run(client, "SELECT * FROM t")
    assert r.status_code == 200
    assert r.json()["data"] == {
        "rows": [[{"column_name": "id", "value": 1}, {"column_name": "name", "value": "a"}]],
        "row_count": 1,
        "columns": [{"name": "id", "type": "INT"}, {"name": "name", "type": "TEXT"}],
    }


def test_execute_empty_result(client: TestClient) -> None:
    _run(client, "CREATE TABLE t (id INTEGER)")
    r = _run(client, "SELECT id FROM t WHERE id = ?", [5])
    assert r.json()["data"] == {"rows": [], "row_count": 0, "columns": []}


def test_binding_types_survive_json(client: TestClient) -> None:
    r = _run(client, "SELECT ? AS i, ? AS f, ? AS s, ? AS z", [3, 2.5, "x", None])
    cells = r.json()["data"]["rows"][0]
    assert [c["value"] for c in cells] == [3, 2.5, "x", None]


def test_blob_values_are_base64(client: TestClient) -> None:
    r = _run(client, "SELECT X'00FF' AS b")
    assert r.json()["data"]["rows"][0][0] == {"column_name": "b", "value": "AP8="}


def test_query_error_is_400_envelope(client: TestClient) -> None:
    r = _run(client, "SELECT * FROM missing")
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert "no such table" in body["message"]
    assert body["data"] is None


def test_binding_mismatch_is_400(client: TestClient) -> None:
    r = _run(client, "SELECT ? AS a, ? AS b", [1])
    assert r.status_code == 400


def test_multiple_statements_is_400(client: TestClient) -> None:
    r = _run(client, "SELECT 1; SELECT 2")
    assert r.status_code == 400
    assert "single statement" in r.json()["message"]


def test_rollback_visible_over_http(client: TestClient) -> None:
    _run(client, "CREATE TABLE t (id INTEGER PRIMARY KEY)")
    _run(client, "INSERT INTO t VALUES (?)", [1])
    r = _run(client, "INSERT INTO t VALUES (?), (?)", [2, 1])
    assert r.status_code == 400
    r = _run(client, "SELECT count(*) AS c FROM t")
    assert r.json()["data"]["rows"] == [[{"column_name": "c", "value": 1}]]


def test_timeout_is_504(client: TestClient) -> None:
    sql = (
        "WITH RECURSIVE c(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM c WHERE x < 1000000000) "
        "SELECT count(*) FROM c"
    )
    r = _run(client, sql, timeout=0.2)
    assert r.status_code == 504
    assert r.json()["success"] is False


def test_validation_errors_are_422(client: TestClient) -> None:
    r = client.post(URL, json={"bindings": [1]})
    assert r.status_code == 422
    body = r.json()
    assert body["success"] is False
    assert "sql" in body["message"]

    r = client.post(URL, json={"sql": "SELECT ?", "bindings": [{"nested": 1}]})
    assert r.status_code == 422

    r = client.post(URL, json={"sql": "SELECT 1", "timeout": -1})
    assert r.status_code == 422


def test_result_row_limit_is_413(client: TestClient) -> None:
    with patch("sqlgate.api.routes.sql.settings") as m:
        m.MAX_RESULT_ROWS = 2
        r = _run(client, "VALUES (1), (2), (3)")
    assert r.status_code == 413
    body = r.json()
    assert body["success"] is False
    assert body["data"] == {"row_count": 3, "limit": 2}

    r = _run(client, "VALUES (1), (2), (3)")
    assert r.status_code == 200
    assert r.json()["data"]["row_count"] == 3


@pytest.mark.skipif(
    sqlite3.sqlite_version_info < (3, 35, 0), reason="RETURNING needs SQLite 3.35+"
)
def test_result_row_limit_rolls_back_returning_command(client: TestClient) -> None:
    _run(client, "CREATE TABLE t (id INTEGER PRIMARY KEY, v TEXT)")
    with patch("sqlgate.api.routes.sql.settings") as m:
        m.MAX_RESULT_ROWS = 1
        r = _run(client, "INSERT INTO t (v) VALUES ('a'), ('b') RETURNING id")
    assert r.status_code == 413

    r = _run(client, "SELECT count(*) AS c FROM t")
    assert r.json()["data"]["rows"] == [[{"column_name": "c", "value": 0}]]


def test_columns_typed_by_first_non_null_value(client: TestClient) -> None:
    r = _run(client, "SELECT NULL AS a, 1.5 AS b, X'01' AS c UNION ALL SELECT 2, 3.0, NULL")
    assert r.json()["data"]["columns"] == [
        {"name": "a", "type": "INT"},
        {"name": "b", "type": "REAL"},
        {"name": "c", "type": "BLOB"},
    ]


def test_unhandled_error_is_500_envelope(client: TestClient) -> None:
    executor = client.app.state.executor
    with patch.object(executor, "execute", side_effect=RuntimeError("boom")):
        other = TestClient(client.app, raise_server_exceptions=False)
        r = _run(other, "SELECT 1")
    assert r.status_code == 500
    body = r.json()
    assert body["success"] is False
    assert body["message"].startswith("Internal server error")


def test_closed_store_is_503(client: TestClient) -> None:
    client.app.state.executor.close()
    r = _run(client, "SELECT 1")
    assert r.status_code == 503
    assert r.json() == {"success": False, "message": "Store unavailable", "data": None}
