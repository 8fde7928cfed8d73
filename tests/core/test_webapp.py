"""Tests for the FastAPI mock backend."""

from __future__ import annotations

from pathlib import Path

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from querydesk.core.webapp import create_app


def _write_config(tmp_path: Path) -> Path:
    config = tmp_path / "config.yaml"
    config.write_text(
        f"""
mode: mock
mock:
  latency_min_s: 0
  latency_max_s: 0
  seed: 1
paths:
  query_logs_dir: {tmp_path / 'logs'}
""",
        encoding="utf-8",
    )
    return config


@pytest.fixture()
def client(tmp_path: Path):
    app = create_app(config_path=str(_write_config(tmp_path)))
    with TestClient(app) as test_client:
        yield test_client


def test_execute_sql_returns_envelope(client: TestClient) -> None:
    response = client.post(
        "/api/execute-sql",
        json={"query": "SELECT * FROM users WHERE age > 30 ORDER BY age DESC;", "database": "mock"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["rowCount"] == 3
    assert [row["age"] for row in payload["data"]] == [33, 32, 31]
    assert payload["metadata"]["columns"][0] == "id"
    assert payload["metadata"]["database"] == "mock"
    assert payload["error"] is None


def test_execute_sql_reports_failures(client: TestClient) -> None:
    response = client.post("/api/execute-sql", json={"query": "SELECT * FROM nonexistent_table;"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is False
    assert payload["error"] == "table 'nonexistent_table' does not exist"
    assert payload["rowCount"] == 0
    assert "metadata" not in payload


def test_execute_sql_honours_max_rows(client: TestClient) -> None:
    response = client.post(
        "/api/execute-sql",
        json={"query": "SELECT * FROM users", "options": {"maxRows": 2, "includeMetadata": False}},
    )

    payload = response.json()
    assert payload["rowCount"] == 2
    assert len(payload["data"]) == 2
    assert "metadata" not in payload


def test_execute_sql_rejects_blank_query(client: TestClient) -> None:
    response = client.post("/api/execute-sql", json={"query": "   "})

    assert response.status_code == 400


def test_mutation_statements_are_simulated(client: TestClient) -> None:
    drop = client.post("/api/execute-sql", json={"query": "DROP TABLE users;"}).json()
    after = client.post("/api/execute-sql", json={"query": "SELECT * FROM users;"}).json()

    assert drop["success"] is True
    assert after["rowCount"] == 10


def test_catalogue_endpoints(client: TestClient) -> None:
    tables = client.get("/api/tables").json()
    schema = client.get("/api/schema").json()
    samples = client.get("/api/sample-queries").json()

    assert tables == ["users", "orders", "products"]
    assert schema["products"]["columns"] == ["id", "name", "category", "price", "stock", "description"]
    assert samples[0] == {"title": "All users", "sql": "SELECT * FROM users;"}


def test_health(client: TestClient) -> None:
    assert client.get("/api/health").json() == {"status": "ok"}


def test_queries_are_logged(client: TestClient, tmp_path: Path) -> None:
    client.post("/api/execute-sql", json={"query": "SELECT * FROM orders"})

    log_files = list((tmp_path / "logs").glob("*.jsonl"))
    assert len(log_files) == 1
    assert "query_completed" in log_files[0].read_text(encoding="utf-8")
