"""
SQLite backend for the rdbctl driver.

Used for:
    - local development
    - tests
    - single-host deployments

Connections are opened in autocommit mode (isolation_level=None) and
transactions are started explicitly with BEGIN IMMEDIATE, so the driver decides
transaction boundaries rather than the sqlite3 module.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from .backend_base import DBBackend


class SQLiteBackend(DBBackend):
    """
    Minimal SQLite backend.

    Parameters
    ----------
    db_path : str
        Path to the SQLite database file. A leading "sqlite://" scheme is
        accepted and stripped.
    timeout : float
        Seconds to wait on a locked database before failing.
    """

    name = "sqlite"
    supports_last_insert_id = True

    def __init__(self, db_path: str, timeout: float = 5.0):
        if db_path.startswith("sqlite://"):
            db_path = db_path[len("sqlite://"):]
        self.path = Path(db_path)
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    def connect(self) -> sqlite3.Connection:
        """
        Open a SQLite3 connection with row_factory=dict-like access.

        Also ensures foreign keys are enforced.
        """
        conn = sqlite3.connect(
            str(self.path),
            timeout=self.timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def begin(self, conn: sqlite3.Connection) -> None:
        # Write lock is taken at BEGIN, not at the first write.
        conn.execute("BEGIN IMMEDIATE")

    def end(self, conn: sqlite3.Connection) -> None:
        # A failed COMMIT can leave the transaction open.
        if conn.in_transaction:
            conn.rollback()

    def __repr__(self) -> str:
        return f"SQLiteBackend({str(self.path)!r})"
