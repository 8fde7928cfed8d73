"""FastAPI backend serving the mock SQL engine to the browser editor."""

from __future__ import annotations

import argparse
import logging
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from querydesk.core.config import load_settings
from querydesk.core.formatting import collect_columns
from querydesk.core.service import build_service
from querydesk.integrations.sample_dataset import sample_queries, table_names, table_schema


LOGGER = logging.getLogger(__name__)


class ExecuteOptions(BaseModel):
    timeout: int | None = Field(None, description="Client-side timeout in milliseconds")
    format: str = "json"
    include_metadata: bool = Field(True, alias="includeMetadata")
    max_rows: int = Field(10000, alias="maxRows", ge=1)

    model_config = {"populate_by_name": True}


class ExecuteSQLRequest(BaseModel):
    query: str
    database: str = "default"
    options: ExecuteOptions = Field(default_factory=ExecuteOptions)


class ExecuteSQLResponse(BaseModel):
    success: bool
    data: list[dict[str, Any]]
    rowCount: int
    rowsAffected: int
    message: str
    error: str | None = None
    metadata: dict[str, Any] | None = None
    executionTime: float | None = None


class TableSchema(BaseModel):
    columns: list[str]
    description: str


class SampleQuery(BaseModel):
    title: str
    sql: str


def create_app(config_path: str = "configs/dev.yaml") -> FastAPI:
    LOGGER.info("Initialising web application with config '%s'", config_path)
    settings = load_settings(config_path)
    service = build_service(settings, include_backend=False)

    app = FastAPI(title="QueryDesk Mock SQL Backend", version="0.1.0")
    app.state.settings = settings
    app.state.query_service = service

    @app.get("/api/health")
    def healthcheck() -> dict[str, str]:  # pragma: no cover - trivial
        return {"status": "ok"}

    @app.get("/api/tables", response_model=list[str])
    def list_tables() -> list[str]:
        return table_names()

    @app.get("/api/schema", response_model=dict[str, TableSchema])
    def get_schema() -> dict[str, TableSchema]:
        return {name: TableSchema(**details) for name, details in table_schema().items()}

    @app.get("/api/sample-queries", response_model=list[SampleQuery])
    def get_sample_queries() -> list[SampleQuery]:
        return [SampleQuery(**sample) for sample in sample_queries()]

    @app.post("/api/execute-sql", response_model=ExecuteSQLResponse, response_model_exclude_unset=True)
    async def execute_sql(payload: ExecuteSQLRequest) -> ExecuteSQLResponse:
        if not payload.query.strip():
            LOGGER.warning("Execute rejected: empty query")
            raise HTTPException(status_code=400, detail="SQL query must not be empty")

        LOGGER.info(
            "Execute requested database=%s query=%s",
            payload.database,
            _truncate_for_log(payload.query),
        )
        result = await service.execute(payload.query, mode="mock", database=payload.database)
        body = result.to_payload()
        rows = body["data"]
        if len(rows) > payload.options.max_rows:
            body["data"] = rows[: payload.options.max_rows]
            body["rowCount"] = len(body["data"])
        if payload.options.include_metadata and result.success:
            body["metadata"] = {"columns": collect_columns(body["data"]), "database": payload.database}
        return ExecuteSQLResponse(**body)

    return app


def _configure_logging(debug: bool) -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        if debug:
            root_logger.setLevel(logging.DEBUG)
        return
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )


def _truncate_for_log(value: str, limit: int = 200) -> str:
    text = value.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def main() -> None:
    parser = argparse.ArgumentParser(description="Launch the mock SQL backend")
    parser.add_argument("--config", default="configs/dev.yaml", help="Path to configuration file")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind the server")
    parser.add_argument("--port", type=int, default=8080, help="Port to bind the server")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    _configure_logging(debug=args.debug)
    app = create_app(config_path=args.config)

    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - optional server extra
        raise SystemExit("uvicorn must be installed to run the web backend") from exc

    LOGGER.info("Starting uvicorn on %s:%s", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
