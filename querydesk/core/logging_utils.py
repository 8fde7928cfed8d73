"""Shared helpers for timestamped JSONL logging."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from pathlib import Path


def make_timestamp_slug(raw: str | None = None) -> str:
    """Return a sortable timestamp slug (UTC) suitable for filenames."""

    candidate = (raw or "").strip()
    parsed = None
    if candidate:
        sanitized = candidate[:-1] if candidate.endswith("Z") else candidate
        try:
            parsed = datetime.fromisoformat(sanitized)
        except ValueError:
            parsed = None

    if parsed is None:
        parsed = datetime.now(UTC)

    return parsed.strftime("%Y%m%dT%H%M%S%f")[:-3]


def sanitize_session_id(session_id: str) -> str:
    """Sanitize *session_id* so it can be embedded in filenames."""

    cleaned = re.sub(r"[^A-Za-z0-9_-]+", "-", session_id.strip())
    return cleaned or "session"


def resolve_log_path(base_dir: Path, session_id: str, timestamp: str | None = None) -> Path:
    """Return a timestamp-prefixed log path for *session_id* under *base_dir*."""

    normalized_base = base_dir.expanduser().resolve()
    slug = make_timestamp_slug(timestamp)
    safe_session = sanitize_session_id(session_id)
    target = normalized_base / f"{slug}-{safe_session}.jsonl"
    target.parent.mkdir(parents=True, exist_ok=True)
    return target


def utc_now_iso() -> str:
    """Return the current UTC time in ISO-8601 with millisecond precision."""

    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
