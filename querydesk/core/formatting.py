"""Presentation helpers for query results: paging, cell text and exports."""

from __future__ import annotations

import csv
import io
import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from querydesk.core.results import Row

NULL_TEXT = "NULL"
PAGE_SIZES = (20, 50, 100, 200)


@dataclass(slots=True)
class Page:
    rows: list[Row]
    page: int
    page_size: int
    total_pages: int
    total_rows: int

    @property
    def start_index(self) -> int:
        """Zero-based index of the first row on this page."""

        return (self.page - 1) * self.page_size


def paginate(rows: Sequence[Row], page: int = 1, page_size: int = 50) -> Page:
    """Return the 1-based *page* of *rows*, clamping out-of-range pages."""

    if page_size < 1:
        raise ValueError("page_size must be positive")
    total_rows = len(rows)
    total_pages = math.ceil(total_rows / page_size) if total_rows else 0
    current = min(max(page, 1), max(total_pages, 1))
    start = (current - 1) * page_size
    return Page(
        rows=[dict(row) for row in rows[start : start + page_size]],
        page=current,
        page_size=page_size,
        total_pages=total_pages,
        total_rows=total_rows,
    )


def format_cell(value: Any) -> str:
    if value is None:
        return NULL_TEXT
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def collect_columns(rows: Sequence[Row]) -> list[str]:
    seen: dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


def columns_text(columns: Sequence[str]) -> str:
    """Tab-joined column names, ready for pasting into a spreadsheet."""

    return "\t".join(columns)


def rows_to_json(rows: Sequence[Row], *, indent: int | None = 2) -> str:
    return json.dumps([dict(row) for row in rows], ensure_ascii=False, indent=indent, default=str)


def rows_to_csv(rows: Sequence[Row], columns: Sequence[str] | None = None) -> str:
    header = list(columns) if columns is not None else collect_columns(rows)
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=header, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({name: "" if row.get(name) is None else row.get(name) for name in header})
    return buffer.getvalue()


def export_csv(rows: Sequence[Row], path: str | Path) -> Path:
    """Write *rows* to *path* as CSV and return the resolved path."""

    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8", newline="") as handle:
        handle.write(rows_to_csv(rows))
    return target


def render_table(rows: Sequence[Row], *, start_index: int = 0) -> str:
    """Render *rows* as a fixed-width text table with a leading row-number column."""

    columns = collect_columns(rows)
    if not columns:
        return "(no rows)"

    header = ["#", *columns]
    body = [
        [str(start_index + offset + 1), *(format_cell(row.get(column)) for column in columns)]
        for offset, row in enumerate(rows)
    ]
    widths = [len(name) for name in header]
    for line in body:
        for index, cell in enumerate(line):
            widths[index] = max(widths[index], len(cell))

    def _line(cells: Sequence[str]) -> str:
        return " | ".join(cell.ljust(widths[index]) for index, cell in enumerate(cells)).rstrip()

    separator = "-+-".join("-" * width for width in widths)
    return "\n".join([_line(header), separator, *(_line(line) for line in body)])
