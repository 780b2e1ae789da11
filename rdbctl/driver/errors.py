"""
Driver-level error types.

Raw DB-API exceptions (sqlite3.Error, psycopg2.Error, ...) pass through the
driver untouched. The classes below cover the failures the driver itself
detects, independent of the backend in use.
"""

from __future__ import annotations


class SQLError(Exception):
    """Base class for failures detected by the driver layer."""


class NoRowsError(SQLError, LookupError):
    """Row.scan() was called on a single-row result with no row."""

    def __init__(self, message: str = "sql: no rows in result set"):
        super().__init__(message)


class TxDoneError(SQLError):
    """The transaction has already been committed or rolled back."""

    def __init__(
        self,
        message: str = "sql: transaction has already been committed or rolled back",
    ):
        super().__init__(message)


class DatabaseClosedError(SQLError):
    def __init__(self, message: str = "sql: database is closed"):
        super().__init__(message)


class RowsClosedError(SQLError):
    def __init__(self, message: str = "sql: rows are closed"):
        super().__init__(message)


class StmtClosedError(SQLError):
    def __init__(self, message: str = "sql: statement is closed"):
        super().__init__(message)


class ResultUnavailableError(SQLError):
    """The backend cannot supply the requested execution-result value."""


__all__ = [
    "SQLError",
    "NoRowsError",
    "TxDoneError",
    "DatabaseClosedError",
    "RowsClosedError",
    "StmtClosedError",
    "ResultUnavailableError",
]
