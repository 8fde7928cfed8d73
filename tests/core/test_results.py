"""Tests for the query result envelope."""

from __future__ import annotations

import dataclasses

import pytest

from querydesk.core.results import QueryResult


def test_ok_counts_rows_and_serialises_wire_keys() -> None:
    result = QueryResult.ok([{"id": 1}, {"id": 2}], message="done")

    assert result.row_count == 2
    assert result.to_payload() == {
        "success": True,
        "data": [{"id": 1}, {"id": 2}],
        "rowCount": 2,
        "rowsAffected": 0,
        "message": "done",
        "error": None,
    }


def test_failure_carries_error_and_no_rows() -> None:
    result = QueryResult.failure("table 'x' does not exist")

    assert result.success is False
    assert result.data == []
    assert result.row_count == 0
    assert result.to_payload()["error"] == "table 'x' does not exist"


def test_envelope_invariants_are_enforced() -> None:
    with pytest.raises(ValueError):
        QueryResult(success=True, error="boom")
    with pytest.raises(ValueError):
        QueryResult(success=False)
    with pytest.raises(ValueError):
        QueryResult(success=True, data=[{"id": 1}], row_count=3)


def test_results_are_frozen() -> None:
    result = QueryResult.ok([])

    with pytest.raises(dataclasses.FrozenInstanceError):
        result.message = "changed"  # type: ignore[misc]


def test_from_api_payload_defaults_to_success() -> None:
    result = QueryResult.from_api_payload(
        {"data": [{"id": 1}], "metadata": {"columns": ["id"]}, "executionTime": 4.5}
    )

    assert result.success is True
    assert result.row_count == 1
    assert result.message == "Query succeeded, returned 1 rows"
    assert result.metadata == {"columns": ["id"]}
    payload = result.to_payload()
    assert payload["metadata"] == {"columns": ["id"]}
    assert payload["executionTime"] == 4.5


def test_from_api_payload_failure_falls_back_to_message() -> None:
    result = QueryResult.from_api_payload({"success": False, "message": "permission denied"})

    assert result.success is False
    assert result.error == "permission denied"


def test_from_api_payload_rejects_empty_body() -> None:
    with pytest.raises(ValueError):
        QueryResult.from_api_payload({})
