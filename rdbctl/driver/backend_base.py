"""
Backend base interfaces for the rdbctl driver.

This module defines the minimal contracts that all database backends
(SQLite, Postgres, etc.) must satisfy.

It is intentionally light-weight:

- It does NOT depend on any specific DB driver.
- It only encodes the structural requirements assumed by:
      * rdbctl.driver.database.Database
      * rdbctl.driver.database.Tx

Backends must expose:

    backend.connect()              -> raw DB-API connection (autocommit)
    backend.begin(conn)            -> start an explicit transaction
    backend.end(conn)              -> restore autocommit after commit/rollback
    backend.supports_last_insert_id

This file provides:
- DBBackend: abstract base class
- BackendLike: structural protocol
- ensure_backend: runtime validator
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from typing import Any, Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# Abstract Base Backend
# ---------------------------------------------------------------------------

class DBBackend(ABC):
    """
    Abstract base class for an rdbctl backend.

    Concrete subclasses may define any constructor signature they want
    (e.g. SQLiteBackend(db_path), PostgresBackend(dsn)).

    Connections returned by connect() must be in autocommit mode, so
    statements issued outside of a transaction take effect immediately.
    """

    name: str = "abstract"

    # Whether cursor.lastrowid carries a meaningful value.
    supports_last_insert_id: bool = False

    @abstractmethod
    def connect(self) -> Any:
        """
        Acquire and return a new raw DB-API 2.0 connection.
        """
        raise NotImplementedError

    @abstractmethod
    def begin(self, conn: Any) -> None:
        """
        Start an explicit transaction on a connection obtained from connect().
        """
        raise NotImplementedError

    def end(self, conn: Any) -> None:
        """
        Bring a connection back to autocommit after commit or rollback.

        Default: no-op.
        """
        return None


# ---------------------------------------------------------------------------
# Structural Protocol
# ---------------------------------------------------------------------------

@runtime_checkable
class BackendLike(Protocol):
    """
    Structural protocol for objects usable as an rdbctl backend.

    This enables Database to operate on test doubles without them
    subclassing DBBackend.
    """

    supports_last_insert_id: bool

    def connect(self) -> Any:
        ...

    def begin(self, conn: Any) -> None:
        ...

    def end(self, conn: Any) -> None:
        ...


# ---------------------------------------------------------------------------
# Runtime Guard
# ---------------------------------------------------------------------------

def ensure_backend(backend: Any) -> BackendLike:
    """
    Validate that an object behaves like an rdbctl backend.

    Raises:
        TypeError if required attributes are missing.
    """
    if not isinstance(backend, BackendLike):
        missing = [
            attr
            for attr in ("connect", "begin", "end", "supports_last_insert_id")
            if not hasattr(backend, attr)
        ]
        raise TypeError(
            f"Invalid rdbctl backend {backend!r}: missing attributes {missing}"
        )

    return backend


__all__ = [
    "DBBackend",
    "BackendLike",
    "ensure_backend",
]
