"""HTTP client for the editor's real SQL backend.

The client speaks the same REST contract the mock web app serves, so the
editor can switch between the two without changing payload handling.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Awaitable, Callable
from urllib.parse import unquote

import httpx

from querydesk.core.config import APISettings
from querydesk.core.errors import BackendError
from querydesk.core.results import QueryResult

LOGGER = logging.getLogger(__name__)

ENDPOINTS = {
    "execute_sql": "/api/execute-sql",
    "health": "/api/health",
    "export_excel": "/api/export-excel",
    "datasource_tree": "/api/datasource/tree",
    "multi_query": "/api/datasource/multi-query",
}

HTTP_ERROR_MESSAGES = {
    400: "SQL syntax error or invalid request parameters",
    401: "Authentication failed, check your login state",
    403: "Permission denied for this query",
    404: "API endpoint not found, check the server configuration",
    408: "Request timed out, try again later",
    429: "Too many requests, try again later",
    500: "Internal server error, try again later",
    502: "Bad gateway, check the server status",
    503: "Service temporarily unavailable, try again later",
    504: "Gateway timed out, try again later",
}

# Failures that a retry cannot fix.
NON_RETRYABLE_STATUSES = frozenset({400, 401, 403})

HEALTH_TIMEOUT_S = 5.0

_DISPOSITION_RE = re.compile(
    r"filename\*?\s*=\s*(?:UTF-8'')?\"?(?P<name>[^\";\n]+)\"?",
    flags=re.IGNORECASE,
)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(slots=True)
class ConnectionStatus:
    connected: bool
    status: int
    message: str
    url: str
    error: str | None = None


@dataclass(slots=True)
class ExportOutcome:
    success: bool
    message: str
    filename: str
    path: Path


def status_message(status_code: int) -> str:
    return HTTP_ERROR_MESSAGES.get(status_code, f"HTTP error: {status_code}")


def filename_from_disposition(header: str | None) -> str | None:
    """Extract a safe download filename from a Content-Disposition header."""

    if not header:
        return None
    match = _DISPOSITION_RE.search(header)
    if not match:
        return None
    name = Path(unquote(match.group("name").strip())).name
    return name or None


def _result_from_payload(payload: dict[str, Any], status_code: int) -> QueryResult:
    try:
        return QueryResult.from_api_payload(payload)
    except (TypeError, ValueError) as exc:
        LOGGER.warning("Backend payload could not be parsed: %s", exc)
        raise BackendError(
            "Backend returned an invalid payload",
            status_code=status_code,
            retryable=False,
        ) from exc


@dataclass
class BackendSQLClient:
    """Async REST client with retry, timeout and bearer-token support."""

    base_url: str
    timeout: float = 30.0
    retry_attempts: int = 3
    retry_delay: float = 1.0
    max_rows: int = 10000
    token_provider: Callable[[], str | None] | None = None
    transport: httpx.AsyncBaseTransport | None = None
    sleep: Sleep = field(default=asyncio.sleep)
    _client: httpx.AsyncClient | None = field(default=None, init=False, repr=False)

    @classmethod
    def from_settings(cls, settings: APISettings, **overrides: Any) -> BackendSQLClient:
        params: dict[str, Any] = {
            "base_url": settings.resolve_base_url(),
            "timeout": settings.timeout_s,
            "retry_attempts": settings.retry_attempts,
            "retry_delay": settings.retry_delay_s,
            "max_rows": settings.max_rows,
            "token_provider": settings.resolve_token,
        }
        params.update(overrides)
        return cls(**params)

    async def __aenter__(self) -> BackendSQLClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self.transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def url(self, endpoint: str) -> str:
        return f"{self.base_url.rstrip('/')}{ENDPOINTS.get(endpoint, endpoint)}"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.token_provider() if self.token_provider is not None else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def execute(
        self,
        sql: str,
        *,
        database: str = "default",
        timeout: float | None = None,
        retry_attempts: int | None = None,
    ) -> QueryResult:
        """Run *sql* on the backend, retrying transient failures with linear backoff."""

        if not sql or not sql.strip():
            raise ValueError("SQL query must not be empty")

        effective_timeout = timeout or self.timeout
        attempts = max(retry_attempts or self.retry_attempts, 1)
        body = {
            "query": sql,
            "database": database,
            "options": {
                "timeout": int(effective_timeout * 1000),
                "format": "json",
                "includeMetadata": True,
                "maxRows": self.max_rows,
            },
        }

        client = await self._get_client()
        url = self.url("execute_sql")
        for attempt in range(1, attempts + 1):
            try:
                response = await client.post(
                    url,
                    json=body,
                    headers=self._headers(),
                    timeout=effective_timeout,
                )
                return self._parse_query_response(response)
            except BackendError as exc:
                if attempt == attempts or not exc.retryable:
                    raise
                LOGGER.warning("Backend query attempt %s/%s failed: %s", attempt, attempts, exc)
            except httpx.TimeoutException as exc:
                if attempt == attempts:
                    raise BackendError(
                        "Request timed out, check the network connection or try again later"
                    ) from exc
                LOGGER.warning("Backend query attempt %s/%s timed out", attempt, attempts)
            except httpx.TransportError as exc:
                if attempt == attempts:
                    raise BackendError(
                        "Network connection failed, check that the backend service is running"
                    ) from exc
                LOGGER.warning("Backend query attempt %s/%s failed to connect: %s", attempt, attempts, exc)
            await self.sleep(self.retry_delay * attempt)

        raise BackendError("Backend query failed")  # pragma: no cover - loop always returns or raises

    @staticmethod
    def _parse_query_response(response: httpx.Response) -> QueryResult:
        status_code = response.status_code
        if response.is_error:
            message = status_message(status_code)
            retryable = status_code not in NON_RETRYABLE_STATUSES
            try:
                error_data = response.json()
            except ValueError:
                raise BackendError(message, status_code=status_code, retryable=retryable) from None
            if not isinstance(error_data, dict):
                raise BackendError(message, status_code=status_code, retryable=retryable)
            error_data["success"] = False
            if not error_data.get("error"):
                error_data["error"] = error_data.get("message") or message
            return _result_from_payload(error_data, status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise BackendError("Backend returned an invalid JSON payload", status_code=status_code) from exc
        if not isinstance(payload, dict) or not payload:
            raise BackendError("Backend returned an empty payload", status_code=status_code)
        return _result_from_payload(payload, status_code)

    async def check_connection(self) -> ConnectionStatus:
        """Probe the health endpoint; failures are reported, never raised."""

        url = self.url("health")
        client = await self._get_client()
        try:
            response = await client.get(url, headers=self._headers(), timeout=HEALTH_TIMEOUT_S)
        except httpx.TimeoutException as exc:
            message = f"Request timed out ({HEALTH_TIMEOUT_S:g} seconds), check the network connection"
            return ConnectionStatus(False, 0, message, url, exc.__class__.__name__)
        except httpx.ConnectError as exc:
            message = f"Unable to connect to {url}, check that the backend service is running"
            return ConnectionStatus(False, 0, message, url, exc.__class__.__name__)
        except httpx.HTTPError as exc:
            return ConnectionStatus(False, 0, f"Connection error: {exc}", url, exc.__class__.__name__)

        if response.is_success:
            return ConnectionStatus(True, response.status_code, "Connection OK", url)
        return ConnectionStatus(
            False,
            response.status_code,
            f"HTTP {response.status_code}: {HTTP_ERROR_MESSAGES.get(response.status_code, 'Unknown error')}",
            url,
        )

    async def export_excel(
        self,
        query: str,
        *,
        target_dir: str | Path,
        database: str = "mine",
        filename: str = "query_result",
        options: dict[str, Any] | None = None,
    ) -> ExportOutcome:
        """Ask the backend to render *query* as a workbook and save it under *target_dir*."""

        if not query or not query.strip():
            raise ValueError("SQL query must not be empty")

        timestamp = datetime.now(UTC).replace(tzinfo=None).isoformat(sep=" ", timespec="milliseconds")
        body = {
            "timestamp": timestamp,
            "query": query,
            "database": database,
            "filename": filename,
            "options": dict(options or {}),
        }
        client = await self._get_client()
        try:
            response = await client.post(self.url("export_excel"), json=body, headers=self._headers())
        except httpx.TimeoutException as exc:
            raise BackendError("Excel export request timed out, try again later") from exc
        except httpx.TransportError as exc:
            raise BackendError("Unable to reach the export service, check the network connection") from exc

        if response.is_error:
            raise BackendError(status_message(response.status_code), status_code=response.status_code)

        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}
            detail = None
            if isinstance(error_data, dict):
                detail = error_data.get("message") or error_data.get("error")
            raise BackendError(str(detail or "Excel export failed"), status_code=response.status_code)

        download_name = filename_from_disposition(response.headers.get("content-disposition"))
        if download_name is None:
            download_name = f"{filename}_{int(time.time() * 1000)}.xlsx"

        directory = Path(target_dir).expanduser()
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / download_name
        path.write_bytes(response.content)
        LOGGER.info("Excel export written to %s (%s bytes)", path, len(response.content))
        return ExportOutcome(
            success=True,
            message=f"Excel export succeeded: {download_name}",
            filename=download_name,
            path=path,
        )

    async def fetch_datasource_tree(self) -> Any:
        client = await self._get_client()
        try:
            response = await client.get(self.url("datasource_tree"), headers=self._headers())
        except httpx.TimeoutException as exc:
            raise BackendError("Request timed out, check the network connection or try again later") from exc
        except httpx.TransportError as exc:
            raise BackendError("Network connection failed, check that the backend service is running") from exc
        if response.is_error:
            raise BackendError(
                f"Failed to fetch datasource tree: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response.json()

    async def execute_multi_datasource(
        self,
        query: str,
        datasource_codes: list[str],
        options: dict[str, Any] | None = None,
    ) -> Any:
        """Run *query* against several backend datasources in one request."""

        body = {
            "query": query,
            "datasourceCodes": list(datasource_codes),
            "options": {
                "timeout": int(self.timeout * 1000),
                "format": "json",
                "includeMetadata": True,
                "maxRows": self.max_rows,
                **(options or {}),
            },
        }
        client = await self._get_client()
        try:
            response = await client.post(self.url("multi_query"), json=body, headers=self._headers())
        except httpx.TimeoutException as exc:
            raise BackendError("Request timed out, check the network connection or try again later") from exc
        except httpx.TransportError as exc:
            raise BackendError("Network connection failed, check that the backend service is running") from exc

        if response.is_error:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}
            message = error_data.get("message") if isinstance(error_data, dict) else None
            raise BackendError(
                message or f"Multi-datasource query failed: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response.json()
