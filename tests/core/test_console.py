"""Tests for the interactive SQL console."""

from __future__ import annotations

import random
from pathlib import Path
from typing import Callable, Iterator

import pytest

from querydesk.core.console import SQLConsole, is_complete_statement, parse_args
from querydesk.core.service import QueryService
from querydesk.integrations.mock_sql_engine import MockSQLEngine


def _input_from(lines: list[str]) -> Callable[[str], str]:
    iterator: Iterator[str] = iter(lines)

    def _read(prompt: str) -> str:
        try:
            return next(iterator)
        except StopIteration as exc:
            raise EOFError from exc

    return _read


def _console(lines: list[str], outputs: list[str], **kwargs) -> SQLConsole:
    engine = MockSQLEngine(latency=(0.0, 0.0), rng=random.Random(5))
    return SQLConsole(
        service=QueryService(engine=engine),
        input_func=_input_from(lines),
        output_func=outputs.append,
        **kwargs,
    )


def test_is_complete_statement_ignores_semicolons_in_strings() -> None:
    assert is_complete_statement("SELECT * FROM users;")
    assert not is_complete_statement("SELECT * FROM users WHERE name = 'a;b'")
    assert is_complete_statement("SELECT * FROM users WHERE name = 'a;b';")


def test_console_renders_select_results() -> None:
    outputs: list[str] = []
    console = _console(["SELECT * FROM users WHERE department = 'Engineering';", "/exit"], outputs)

    console.start()

    text = "\n".join(outputs)
    assert "Zhang San" in text
    assert "Zhao Liu" in text
    assert "Query succeeded, returned 3 rows" in text
    assert outputs[-1] == "Session ended."


def test_console_accumulates_multiline_statements() -> None:
    outputs: list[str] = []
    console = _console(["SELECT *", "FROM products", "WHERE stock > 90;"], outputs)

    console.start()

    text = "\n".join(outputs)
    assert "Query succeeded, returned 2 rows" in text
    assert "AirPods Pro" in text


def test_blank_line_submits_pending_statement() -> None:
    outputs: list[str] = []
    console = _console(["SELECT * FROM orders LIMIT 1", ""], outputs)

    console.start()

    assert "Query succeeded, returned 1 rows" in "\n".join(outputs)


def test_console_reports_errors_and_affected_rows() -> None:
    outputs: list[str] = []
    console = _console(["SELECT * FROM nowhere;", "INSERT INTO users VALUES (1);"], outputs)

    console.start()

    assert "Error: table 'nowhere' does not exist" in outputs
    assert "Rows affected: 1" in outputs
    assert "Insert succeeded" in outputs


def test_console_pages_through_results() -> None:
    outputs: list[str] = []
    console = _console(["SELECT * FROM users;", "/page 2"], outputs, page_size=4)

    console.start()

    assert "Page 1 of 3 (10 rows). Use '/page <n>' to navigate." in outputs
    assert "Page 2 of 3 (10 rows). Use '/page <n>' to navigate." in outputs
    page_two = next(entry for entry in outputs if "Qian Qi" in entry)
    assert "Zhang San" not in page_two


def test_console_exports_last_result(tmp_path: Path) -> None:
    outputs: list[str] = []
    target = tmp_path / "products.csv"
    console = _console(["SELECT * FROM products;", f"/export {target}"], outputs)

    console.start()

    assert target.exists()
    lines = target.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "id,name,category,price,stock,description"
    assert len(lines) == 6
    assert f"Exported 5 rows to {target}." in outputs


def test_console_meta_commands() -> None:
    outputs: list[str] = []
    console = _console(["/tables", "/samples", "/mode real", "/mode bogus", "/unknown"], outputs)

    console.start()

    text = "\n".join(outputs)
    assert "  - users: id, name, email, age, department, created_at" in outputs
    assert "SELECT * FROM users;" in text
    assert "Execution mode set to real." in outputs
    assert console.service.default_mode == "real"
    assert "Usage: /mode <mock|real>" in outputs
    assert any(entry.startswith("Unknown command '/unknown'") for entry in outputs)


def test_page_and_export_without_result() -> None:
    outputs: list[str] = []
    console = _console(["/page 1", "/export out.csv"], outputs)

    console.start()

    assert "No result rows to page through." in outputs
    assert "No result rows to export." in outputs


def test_page_size_option_accepts_known_sizes() -> None:
    assert parse_args([]).page_size == 20
    assert parse_args(["--page-size", "100"]).page_size == 100


def test_page_size_option_rejects_other_sizes() -> None:
    with pytest.raises(SystemExit):
        parse_args(["--page-size", "7"])
