"""
rdbctl.driver

Database driver layer used by the rdbctl controller.

This package provides:

- A thread-safe pooled handle and its primitives:
      * Database
      * Tx
      * Rows / Row
      * Stmt
      * Result

- Concrete database backend implementations:
      * SQLiteBackend   (default: local development + tests)
      * PostgresBackend (psycopg2)

- Backend contracts:
      * DBBackend
      * BackendLike
      * ensure_backend

- Driver-level errors:
      * SQLError and its subclasses

Every primitive raises on failure; the controller layer turns those
exceptions into DriverError.
"""

from .database import Database, DBStats, Tx, Rows, Row, Stmt, Result
from .backend_base import DBBackend, BackendLike, ensure_backend
from .sqlite_backend import SQLiteBackend
from .postgres_backend import PostgresBackend
from .factory import create_backend, open_database
from .errors import (
    SQLError,
    NoRowsError,
    TxDoneError,
    DatabaseClosedError,
    RowsClosedError,
    StmtClosedError,
    ResultUnavailableError,
)

__all__ = [
    # Handle / primitives
    "Database",
    "DBStats",
    "Tx",
    "Rows",
    "Row",
    "Stmt",
    "Result",

    # Backends
    "SQLiteBackend",
    "PostgresBackend",
    "DBBackend",
    "BackendLike",
    "ensure_backend",
    "create_backend",
    "open_database",

    # Errors
    "SQLError",
    "NoRowsError",
    "TxDoneError",
    "DatabaseClosedError",
    "RowsClosedError",
    "StmtClosedError",
    "ResultUnavailableError",
]
