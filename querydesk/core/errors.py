"""Exception types shared by the query engine, backend client and service layer."""

from __future__ import annotations


class QueryDeskError(Exception):
    """Base class for errors raised while executing SQL statements."""


class SQLParseError(QueryDeskError):
    """Raised when a required clause is missing or cannot be parsed."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"SQL parse error: {message}")


class TableNotFoundError(QueryDeskError):
    """Raised when a statement references a table outside the dataset."""

    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"table '{table}' does not exist")


class UnsupportedStatementError(QueryDeskError):
    """Raised when the leading keyword is not a recognised statement type."""

    def __init__(self, keyword: str | None = None) -> None:
        self.keyword = keyword
        super().__init__("unsupported statement type")


class BackendError(QueryDeskError):
    """Raised when the remote SQL backend cannot satisfy a request.

    ``retryable`` is false for failures that will not change on a second
    attempt (syntax, authentication and permission errors).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool = True,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(message)
