"""Query execution service that dispatches between mock and real backends."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from uuid import uuid4

from querydesk.core.config import MODES, Settings
from querydesk.core.errors import BackendError
from querydesk.core.observability import JSONLQueryLogger, NullQueryLogger, QueryObservationSink
from querydesk.core.results import QueryResult
from querydesk.integrations.backend_client import BackendSQLClient, ConnectionStatus
from querydesk.integrations.mock_sql_engine import MockSQLEngine
from querydesk.integrations.sample_dataset import sample_queries, table_schema

LOGGER = logging.getLogger(__name__)

_SQL_PREVIEW_LIMIT = 500


@dataclass
class QueryService:
    """Runs SQL in the selected mode and records every execution."""

    engine: MockSQLEngine
    backend: BackendSQLClient | None = None
    query_logger: QueryObservationSink = field(default_factory=NullQueryLogger)
    default_mode: str = "mock"
    database: str = "default"
    session_id: str = field(default_factory=lambda: f"session-{uuid4().hex[:8]}")

    async def execute(
        self,
        sql: str,
        *,
        mode: str | None = None,
        database: str | None = None,
    ) -> QueryResult:
        """Execute *sql* and return its result envelope.

        Raises ``ValueError`` for blank SQL or an unknown mode. Backend
        failures are returned as failed results.
        """

        if not sql or not sql.strip():
            raise ValueError("SQL query must not be empty")
        selected = (mode or self.default_mode).lower()
        if selected not in MODES:
            raise ValueError(f"Unsupported mode '{selected}'. Expected one of: {', '.join(MODES)}")

        statement = sql.strip()
        self._log(
            "query_received",
            {"mode": selected, "database": database or self.database, "sql": _preview(statement)},
        )
        started = time.perf_counter()

        if selected == "mock":
            result = await self.engine.execute(statement)
        else:
            result = await self._execute_remote(statement, database or self.database)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        if result.success:
            LOGGER.info(
                "Query succeeded mode=%s rows=%s affected=%s elapsed_ms=%s",
                selected,
                result.row_count,
                result.rows_affected,
                elapsed_ms,
            )
            self._log(
                "query_completed",
                {
                    "mode": selected,
                    "row_count": result.row_count,
                    "rows_affected": result.rows_affected,
                    "message": result.message,
                    "elapsed_ms": elapsed_ms,
                },
            )
        else:
            LOGGER.warning("Query failed mode=%s error=%s", selected, result.error)
            self._log(
                "query_failed",
                {"mode": selected, "error": result.error, "elapsed_ms": elapsed_ms},
            )
        return result

    async def _execute_remote(self, statement: str, database: str) -> QueryResult:
        if self.backend is None:
            return QueryResult.failure("Backend client is not configured")
        try:
            return await self.backend.execute(statement, database=database)
        except BackendError as exc:
            return QueryResult.failure(str(exc))

    async def check_connection(self) -> ConnectionStatus | None:
        if self.backend is None:
            return None
        return await self.backend.check_connection()

    def schema(self) -> dict[str, dict[str, Any]]:
        return table_schema()

    def sample_queries(self) -> list[dict[str, str]]:
        return sample_queries()

    async def close(self) -> None:
        if self.backend is not None:
            await self.backend.close()

    def _log(self, event: str, payload: dict[str, Any]) -> None:
        payload = {"session_id": self.session_id, **payload}
        self.query_logger.log_event(self.session_id, event, payload)


def build_service(settings: Settings, *, include_backend: bool = True) -> QueryService:
    """Create a :class:`QueryService` wired according to *settings*.

    Without a backend the service always runs in mock mode.
    """

    engine = MockSQLEngine(
        latency=(settings.mock.latency_min_s, settings.mock.latency_max_s),
        rng=random.Random(settings.mock.seed),
    )
    backend = BackendSQLClient.from_settings(settings.api) if include_backend else None
    return QueryService(
        engine=engine,
        backend=backend,
        query_logger=_build_query_logger(settings),
        default_mode=settings.mode if include_backend else "mock",
        database=settings.database,
    )


def _build_query_logger(settings: Settings) -> QueryObservationSink:
    if settings.paths is None or not settings.paths.query_logs_dir:
        return NullQueryLogger()
    path = Path(settings.paths.query_logs_dir).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return JSONLQueryLogger(base_dir=path)


def _preview(statement: str) -> str:
    if len(statement) <= _SQL_PREVIEW_LIMIT:
        return statement
    return statement[: _SQL_PREVIEW_LIMIT - 3] + "..."
