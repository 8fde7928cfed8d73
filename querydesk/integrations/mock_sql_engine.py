"""In-memory SQL engine backing the editor's mock mode.

The engine evaluates a narrow subset of SQL against the fixed sample tables
without any network or disk I/O. Supported SELECT statements follow the shape:

    SELECT ... FROM <table> [WHERE <condition>] [ORDER BY <column> [ASC|DESC]]
        [LIMIT <n> [OFFSET <m>]]

- `<condition>` is a single comparison: `col = 'text'`, `col <op> <integer>`
  (`>`, `<`, `>=`, `<=`, `=`) or `col LIKE 'pattern'` with `%` wildcards.
  Only the first recognised comparison is applied; anything else leaves the
  rows unfiltered.
- The projection list is not evaluated; every column of the table is returned.
- Table and column names are matched case-insensitively.

INSERT, UPDATE, DELETE, CREATE and DROP are acknowledged but never touch the
dataset. Every outcome, including errors, is reported as a `QueryResult`.
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from querydesk.core.errors import SQLParseError, TableNotFoundError, UnsupportedStatementError
from querydesk.core.results import QueryResult, Row
from querydesk.integrations.sample_dataset import SAMPLE_TABLES, copy_rows

LOGGER = logging.getLogger(__name__)

_FROM_RE = re.compile(r"\bfrom\s+(?P<table>\w+)", flags=re.IGNORECASE)
_WHERE_RE = re.compile(
    r"\bwhere\s+(?P<clause>.+?)(?=\s+order\b|\s+group\b|\s+limit\b|\s*$)",
    flags=re.IGNORECASE | re.DOTALL,
)
_ORDER_RE = re.compile(
    r"\border\s+by\s+(?P<column>\w+)(?:\s+(?P<direction>asc|desc)\b)?",
    flags=re.IGNORECASE,
)
_LIMIT_RE = re.compile(
    r"\blimit\s+(?P<limit>\d+)(?:\s+offset\s+(?P<offset>\d+))?",
    flags=re.IGNORECASE,
)

_EQUALS_RE = re.compile(r"(?P<column>\w+)\s*=\s*'(?P<value>[^']*)'")
_NUMERIC_RE = re.compile(r"(?P<column>\w+)\s*(?P<op>>=|<=|>|<|=)\s*(?P<value>-?\d+)")
_LIKE_RE = re.compile(r"(?P<column>\w+)\s+like\s+'(?P<pattern>[^']*)'", flags=re.IGNORECASE)

_COMPARATORS: dict[str, Callable[[int, int], bool]] = {
    ">": lambda left, right: left > right,
    "<": lambda left, right: left < right,
    ">=": lambda left, right: left >= right,
    "<=": lambda left, right: left <= right,
    "=": lambda left, right: left == right,
}

RowFilter = Callable[[Row], bool]


@dataclass(slots=True)
class MockSQLEngine:
    """Evaluate SQL statements against a fixed, read-only dataset."""

    dataset: Mapping[str, Sequence[Mapping[str, Any]]] = field(default_factory=lambda: SAMPLE_TABLES)
    latency: tuple[float, float] = (0.2, 0.7)
    rng: random.Random = field(default_factory=random.Random)

    async def execute(self, sql: str) -> QueryResult:
        """Evaluate *sql* after the simulated network delay."""

        delay = self._next_delay()
        if delay > 0:
            await asyncio.sleep(delay)
        return self.run(sql)

    def run(self, sql: str) -> QueryResult:
        """Evaluate *sql* immediately and return the result envelope."""

        statement = (sql or "").strip()
        if not statement:
            return QueryResult.failure("SQL query must not be empty")

        keyword = statement.lower()
        try:
            if keyword.startswith("select"):
                rows = self._select(statement)
                return QueryResult.ok(rows, message=f"Query succeeded, returned {len(rows)} rows")
            if keyword.startswith("insert"):
                return QueryResult.ok(rows_affected=1, message="Insert succeeded")
            if keyword.startswith("update"):
                affected = self.rng.randint(1, 5)
                return QueryResult.ok(
                    rows_affected=affected,
                    message=f"Update succeeded, {affected} rows affected",
                )
            if keyword.startswith("delete"):
                affected = self.rng.randint(1, 3)
                return QueryResult.ok(
                    rows_affected=affected,
                    message=f"Delete succeeded, {affected} rows affected",
                )
            if keyword.startswith("create"):
                return QueryResult.ok(message="Create succeeded")
            if keyword.startswith("drop"):
                return QueryResult.ok(message="Drop succeeded")
            raise UnsupportedStatementError(keyword.split(None, 1)[0])
        except Exception as exc:
            LOGGER.debug("Mock query failed: %s", exc)
            return QueryResult.failure(str(exc) or exc.__class__.__name__)

    def _next_delay(self) -> float:
        low, high = self.latency
        if high <= 0:
            return 0.0
        return self.rng.uniform(max(low, 0.0), high)

    def _select(self, statement: str) -> list[Row]:
        text = statement.rstrip(";").rstrip()

        from_match = _FROM_RE.search(text)
        if not from_match:
            raise SQLParseError("unable to parse FROM clause")
        table = from_match.group("table").lower()
        source = self._lookup(table)
        if source is None:
            raise TableNotFoundError(table)

        rows = copy_rows(source)
        field_map = _build_field_map(rows)

        where_match = _WHERE_RE.search(text)
        if where_match:
            row_filter = _compile_condition(where_match.group("clause").strip(), field_map)
            if row_filter is not None:
                rows = [row for row in rows if row_filter(row)]

        order_match = _ORDER_RE.search(text)
        if order_match:
            column = _resolve(field_map, order_match.group("column"))
            descending = (order_match.group("direction") or "asc").lower() == "desc"
            rows = sorted(
                rows,
                key=lambda row: _sort_key(row.get(column), descending),
                reverse=descending,
            )

        limit_match = _LIMIT_RE.search(text)
        if limit_match:
            limit = int(limit_match.group("limit"))
            offset = int(limit_match.group("offset") or 0)
            rows = rows[offset : offset + limit]

        return rows

    def _lookup(self, table: str) -> Sequence[Mapping[str, Any]] | None:
        for name, rows in self.dataset.items():
            if name.lower() == table:
                return rows
        return None


def _build_field_map(rows: list[Row]) -> dict[str, str]:
    field_map: dict[str, str] = {}
    for row in rows:
        for name in row:
            field_map.setdefault(name.lower(), name)
    return field_map


def _resolve(field_map: dict[str, str], name: str) -> str:
    return field_map.get(name.lower(), name)


def _compile_condition(clause: str, field_map: dict[str, str]) -> RowFilter | None:
    """Return a predicate for the first recognised comparison in *clause*."""

    equals = _EQUALS_RE.search(clause)
    if equals:
        column = _resolve(field_map, equals.group("column"))
        expected = equals.group("value")

        def _equals(row: Row) -> bool:
            value = row.get(column)
            return value is not None and _stringify(value) == expected

        return _equals

    numeric = _NUMERIC_RE.search(clause)
    if numeric:
        column = _resolve(field_map, numeric.group("column"))
        compare = _COMPARATORS[numeric.group("op")]
        target = int(numeric.group("value"))

        def _numeric(row: Row) -> bool:
            value = _to_int(row.get(column))
            return value is not None and compare(value, target)

        return _numeric

    like = _LIKE_RE.search(clause)
    if like:
        column = _resolve(field_map, like.group("column"))
        pattern = ".*".join(re.escape(part) for part in like.group("pattern").split("%"))
        regex = re.compile(pattern, flags=re.IGNORECASE | re.DOTALL)

        def _like(row: Row) -> bool:
            value = row.get(column)
            return value is not None and regex.search(_stringify(value)) is not None

        return _like

    LOGGER.debug("WHERE clause not recognised, rows left unfiltered: %s", clause)
    return None


def _stringify(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        if isinstance(value, float):
            return int(value)
        text = str(value).strip()
        try:
            return int(text)
        except ValueError:
            return int(float(text))
    except (ValueError, OverflowError):
        return None


def _sort_key(value: Any, descending: bool) -> tuple[int, Any]:
    # Nulls sort last in both directions.
    if value is None:
        return (-1, 0) if descending else (2, 0)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value)
    return (1, str(value))
