"""JSONL-backed observability helpers for query execution."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from querydesk.core.logging_utils import resolve_log_path, utc_now_iso


class QueryObservationSink(Protocol):
    """Records lifecycle events emitted while executing queries."""

    def log_event(self, session_id: str, event: str, payload: dict[str, Any]) -> None:  # pragma: no cover - interface
        ...


def _write_jsonl(target: Path, payload: dict[str, Any]) -> None:
    with target.open("a", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False, default=str)
        handle.write("\n")


def _build_event(event: str, payload: dict[str, Any]) -> dict[str, Any]:
    enriched = {key: value for key, value in payload.items() if value is not None}
    enriched.setdefault("event", event)
    enriched.setdefault("timestamp", utc_now_iso())
    return enriched


@dataclass(slots=True)
class JSONLQueryLogger(QueryObservationSink):
    """Persists query events under a dedicated logs directory, one file per session."""

    base_dir: Path
    _paths: dict[str, Path] = field(default_factory=dict, init=False, repr=False)

    def log_event(self, session_id: str, event: str, payload: dict[str, Any]) -> None:  # type: ignore[override]
        record = _build_event(event, payload)
        target = self._paths.get(session_id)
        if target is None:
            target = resolve_log_path(self.base_dir, session_id, str(record["timestamp"]))
            self._paths[session_id] = target
        _write_jsonl(target, record)


@dataclass(slots=True)
class NullQueryLogger(QueryObservationSink):
    """Sink used when no query log directory is configured."""

    def log_event(self, session_id: str, event: str, payload: dict[str, Any]) -> None:  # type: ignore[override]
        return None
