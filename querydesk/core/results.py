"""Result envelope returned by every SQL execution attempt."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

Row = dict[str, Any]


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Structured success/failure envelope consumed by the editor.

    Successful results carry ``data`` and ``row_count``; failed results carry a
    non-null ``error``. Use :meth:`ok` and :meth:`failure` rather than the
    constructor so ``row_count`` always matches ``data``.
    """

    success: bool
    data: list[Row] = field(default_factory=list)
    row_count: int = 0
    rows_affected: int = 0
    message: str = ""
    error: str | None = None
    metadata: dict[str, Any] | None = None
    execution_time: float = 0.0

    def __post_init__(self) -> None:
        if self.success and self.error is not None:
            raise ValueError("Successful results must not carry an error")
        if not self.success and not self.error:
            raise ValueError("Failed results must carry an error message")
        if self.row_count != len(self.data):
            raise ValueError("row_count must equal the number of data rows")

    @classmethod
    def ok(
        cls,
        data: list[Row] | None = None,
        *,
        message: str = "",
        rows_affected: int = 0,
        metadata: dict[str, Any] | None = None,
        execution_time: float = 0.0,
    ) -> QueryResult:
        rows = [dict(row) for row in data or []]
        return cls(
            success=True,
            data=rows,
            row_count=len(rows),
            rows_affected=rows_affected,
            message=message,
            metadata=metadata,
            execution_time=execution_time,
        )

    @classmethod
    def failure(cls, error: str, *, message: str = "", **extra: Any) -> QueryResult:
        return cls(success=False, message=message, error=error or "query failed", **extra)

    @classmethod
    def from_api_payload(cls, payload: Mapping[str, Any] | None) -> QueryResult:
        """Normalise a backend JSON body into a :class:`QueryResult`."""

        if not payload:
            raise ValueError("Backend returned an empty payload")

        success = payload.get("success")
        success = True if success is None else bool(success)
        raw_data = payload.get("data") or []
        data = [dict(row) for row in raw_data if isinstance(row, Mapping)]
        metadata = payload.get("metadata")
        execution_time = float(payload.get("executionTime") or 0)
        rows_affected = int(payload.get("rowsAffected") or 0)

        if success:
            message = payload.get("message") or f"Query succeeded, returned {len(data)} rows"
            return cls.ok(
                data,
                message=str(message),
                rows_affected=rows_affected,
                metadata=metadata if isinstance(metadata, dict) else None,
                execution_time=execution_time,
            )

        error = payload.get("error") or payload.get("message") or "query failed"
        return cls.failure(
            str(error),
            message=str(payload.get("message") or "Query failed"),
            rows_affected=rows_affected,
            metadata=metadata if isinstance(metadata, dict) else None,
            execution_time=execution_time,
        )

    def to_payload(self) -> dict[str, Any]:
        """Return the wire representation used by the REST contract."""

        payload: dict[str, Any] = {
            "success": self.success,
            "data": [dict(row) for row in self.data],
            "rowCount": self.row_count,
            "rowsAffected": self.rows_affected,
            "message": self.message,
            "error": self.error,
        }
        if self.metadata is not None:
            payload["metadata"] = dict(self.metadata)
        if self.execution_time:
            payload["executionTime"] = self.execution_time
        return payload
