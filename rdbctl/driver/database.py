"""
Pooled database handle for the rdbctl driver.

This file defines:
- Database: a thread-safe handle that lends out backend connections
- Tx:       a transaction bound to one connection until commit/rollback
- Rows:     a forward-only row-set holding its connection until closed
- Row:      a single-row result whose failure is deferred to scan()
- Stmt:     a prepared statement bound to a Database or a Tx
- Result:   the outcome of a statement without a result set

Every primitive raises on failure. Raw DB-API exceptions are propagated
as-is; conditions the driver detects itself raise the classes in
rdbctl.driver.errors.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple

from .backend_base import ensure_backend
from .errors import (
    DatabaseClosedError,
    NoRowsError,
    ResultUnavailableError,
    RowsClosedError,
    SQLError,
    StmtClosedError,
    TxDoneError,
)
from .helpers import column_names, open_cursor

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Results
# ----------------------------------------------------------------------

class Result:
    """
    Outcome of a statement executed without a result set.
    """

    def __init__(self, last_insert_id: Optional[int], rows_affected: Optional[int]):
        self._last_insert_id = last_insert_id
        self._rows_affected = rows_affected

    def last_insert_id(self) -> int:
        if self._last_insert_id is None:
            raise ResultUnavailableError("LastInsertId is not supported by this driver")
        return self._last_insert_id

    def rows_affected(self) -> int:
        if self._rows_affected is None or self._rows_affected < 0:
            raise ResultUnavailableError("RowsAffected is not available for this statement")
        return self._rows_affected


class Rows:
    """
    Forward-only cursor over a result set.

    Usage:

        rows = db.query("SELECT id, name FROM t")
        try:
            while rows.next():
                id_, name = rows.scan()
        finally:
            rows.close()

    The connection backing the row-set is handed back when close() is
    called or when next() reaches the end of the result set.
    """

    def __init__(self, cursor: Any, on_close: Callable[[], None]):
        self._cursor = cursor
        self._on_close = on_close
        self._current: Optional[Sequence[Any]] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def columns(self) -> List[str]:
        if self._closed:
            raise RowsClosedError()
        return column_names(self._cursor)

    def next(self) -> bool:
        """
        Advance to the next row. Returns False once exhausted or closed.
        """
        if self._closed:
            return False
        row = self._cursor.fetchone()
        if row is None:
            self.close()
            return False
        self._current = row
        return True

    def scan(self) -> Tuple[Any, ...]:
        """
        Return the values of the current row, in column order.
        """
        if self._closed:
            raise RowsClosedError()
        if self._current is None:
            raise SQLError("sql: Scan called without calling Next")
        return tuple(self._current)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._current = None
        try:
            self._cursor.close()
        finally:
            self._on_close()

    def __iter__(self) -> Iterator[Tuple[Any, ...]]:
        while self.next():
            yield self.scan()

    def __enter__(self) -> "Rows":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class Row:
    """
    Result of query_row(). A failed query or an empty result set is
    reported by scan(), never by query_row() itself.
    """

    def __init__(
        self,
        values: Optional[Tuple[Any, ...]] = None,
        columns: Sequence[str] = (),
        err: Optional[BaseException] = None,
    ):
        self._values = values
        self._columns = list(columns)
        self._err = err

    @classmethod
    def from_rows(cls, rows: Rows) -> "Row":
        try:
            columns = rows.columns()
            values = rows.scan() if rows.next() else None
        except Exception as e:
            return cls(err=e)
        finally:
            rows.close()
        return cls(values=values, columns=columns)

    @property
    def err(self) -> Optional[BaseException]:
        return self._err

    def columns(self) -> List[str]:
        return list(self._columns)

    def scan(self) -> Tuple[Any, ...]:
        if self._err is not None:
            raise self._err
        if self._values is None:
            raise NoRowsError()
        return self._values


def _execute_on(conn: Any, query: str, args: Sequence[Any], with_last_id: bool) -> Result:
    cur = open_cursor(conn, query, args)
    try:
        return Result(
            cur.lastrowid if with_last_id else None,
            cur.rowcount,
        )
    finally:
        cur.close()


# ----------------------------------------------------------------------
# Prepared statements
# ----------------------------------------------------------------------

class Stmt:
    """
    A statement bound to the Database or Tx that prepared it.

    DB-API drivers cache parsed statements internally, so preparing only
    binds the query text; syntax errors surface on first execution.
    """

    def __init__(self, owner: Any, query: str):
        self._owner = owner
        self.query_text = query
        self._closed = False

    def _target(self) -> Any:
        if self._closed:
            raise StmtClosedError()
        return self._owner

    def exec(self, *args: Any) -> Result:
        return self._target().execute(self.query_text, *args)

    def query(self, *args: Any) -> Rows:
        return self._target().query(self.query_text, *args)

    def query_row(self, *args: Any) -> Row:
        try:
            target = self._target()
        except StmtClosedError as e:
            return Row(err=e)
        return target.query_row(self.query_text, *args)

    def close(self) -> None:
        self._closed = True


# ----------------------------------------------------------------------
# Transactions
# ----------------------------------------------------------------------

class Tx:
    """
    An in-progress transaction holding one pooled connection.

    After commit() or rollback(), successful or not, the transaction is
    done: every further call raises TxDoneError and the connection has
    been handed back to the Database.
    """

    def __init__(self, db: "Database", conn: Any):
        self._db = db
        self._conn = conn
        self._done = False
        self._lock = threading.Lock()

    @property
    def done(self) -> bool:
        return self._done

    def _grab_conn(self) -> Any:
        if self._done:
            raise TxDoneError()
        return self._conn

    def execute(self, query: str, *args: Any) -> Result:
        conn = self._grab_conn()
        return _execute_on(conn, query, args, self._db.backend.supports_last_insert_id)

    def query(self, query: str, *args: Any) -> Rows:
        cur = open_cursor(self._grab_conn(), query, args)
        return Rows(cur, lambda: None)

    def query_row(self, query: str, *args: Any) -> Row:
        try:
            rows = self.query(query, *args)
        except Exception as e:
            return Row(err=e)
        return Row.from_rows(rows)

    def prepare(self, query: str) -> Stmt:
        self._grab_conn()
        return Stmt(self, query)

    def commit(self) -> None:
        self._finish(lambda conn: conn.commit())

    def rollback(self) -> None:
        self._finish(lambda conn: conn.rollback())

    def _finish(self, action: Callable[[Any], None]) -> None:
        with self._lock:
            if self._done:
                raise TxDoneError()
            self._done = True

        try:
            action(self._conn)
        finally:
            self._db._return_from_tx(self._conn)


# ----------------------------------------------------------------------
# Database
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class DBStats:
    open_connections: int
    in_use: int
    idle: int


class Database:
    """
    Thread-safe database handle backed by a small idle-connection pool.

    Parameters
    ----------
    backend:
        Object satisfying rdbctl.driver.backend_base.BackendLike.
    max_idle:
        Maximum number of idle connections kept for reuse. Connections
        returned beyond this limit are closed. 0 disables reuse.

    Connections are opened lazily; there is no cap on connections in use.
    """

    def __init__(self, backend: Any, max_idle: int = 2):
        if max_idle < 0:
            raise ValueError(f"max_idle must be >= 0, got {max_idle}")

        self.backend = ensure_backend(backend)
        self.max_idle = max_idle

        self._idle: List[Any] = []
        self._num_open = 0
        self._closed = False
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Pool internals
    # ------------------------------------------------------------------

    def _acquire(self) -> Any:
        with self._lock:
            if self._closed:
                raise DatabaseClosedError()
            if self._idle:
                return self._idle.pop()
            self._num_open += 1

        try:
            return self.backend.connect()
        except Exception:
            with self._lock:
                self._num_open -= 1
            raise

    def _release(self, conn: Any) -> None:
        with self._lock:
            if not self._closed and len(self._idle) < self.max_idle:
                self._idle.append(conn)
                return
        self._discard(conn)

    def _discard(self, conn: Any) -> None:
        with self._lock:
            self._num_open -= 1
        try:
            conn.close()
        except Exception:
            logger.exception("Error closing discarded DB connection")

    def _return_from_tx(self, conn: Any) -> None:
        try:
            self.backend.end(conn)
        except Exception:
            logger.exception("Error resetting DB connection after transaction")
            self._discard(conn)
            return
        self._release(conn)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def execute(self, query: str, *args: Any) -> Result:
        conn = self._acquire()
        try:
            return _execute_on(conn, query, args, self.backend.supports_last_insert_id)
        finally:
            self._release(conn)

    def query(self, query: str, *args: Any) -> Rows:
        conn = self._acquire()
        try:
            cur = open_cursor(conn, query, args)
        except Exception:
            self._release(conn)
            raise
        return Rows(cur, lambda: self._release(conn))

    def query_row(self, query: str, *args: Any) -> Row:
        try:
            rows = self.query(query, *args)
        except Exception as e:
            return Row(err=e)
        return Row.from_rows(rows)

    def prepare(self, query: str) -> Stmt:
        if self._closed:
            raise DatabaseClosedError()
        return Stmt(self, query)

    def begin(self) -> Tx:
        conn = self._acquire()
        try:
            self.backend.begin(conn)
        except Exception:
            self._discard(conn)
            raise
        return Tx(self, conn)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def stats(self) -> DBStats:
        with self._lock:
            idle = len(self._idle)
            return DBStats(
                open_connections=self._num_open,
                in_use=self._num_open - idle,
                idle=idle,
            )

    def close(self) -> None:
        """
        Close every idle connection and refuse further use.

        Connections still lent out are closed when they come back.
        Raises the first error encountered while closing; closing an
        already closed Database is a no-op.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            idle, self._idle = self._idle, []
            self._num_open -= len(idle)

        first_error: Optional[BaseException] = None
        for conn in idle:
            try:
                conn.close()
            except Exception as e:
                if first_error is None:
                    first_error = e

        if first_error is not None:
            raise first_error

    def __repr__(self) -> str:
        return f"Database({self.backend!r}, max_idle={self.max_idle})"


__all__ = [
    "Database",
    "DBStats",
    "Tx",
    "Rows",
    "Row",
    "Stmt",
    "Result",
]
