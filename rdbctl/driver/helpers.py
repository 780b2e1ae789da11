"""
Shared cursor helpers for the driver.

These wrappers ensure:
    - cursors are not leaked when a statement fails
    - consistent column-name extraction across backends

Failures are NOT wrapped here: the raw DB-API exception is raised so the
controller layer can translate it into a DriverError with full context.
"""

from __future__ import annotations

from typing import Any, List, Sequence


def open_cursor(conn: Any, query: str, args: Sequence[Any] = ()) -> Any:
    """
    Execute a single SQL statement and return the live cursor.

    Parameters
    ----------
    conn:
        DB-API compatible connection object (sqlite3, psycopg2, etc.).
    query:
        SQL string with placeholders.
    args:
        Positional parameters for the placeholders.

    Raises
    ------
    Exception
        Whatever the DB-API driver raises; the cursor is closed first.
    """
    cur = conn.cursor()
    try:
        cur.execute(query, tuple(args))
    except Exception:
        cur.close()
        raise
    return cur


def column_names(cursor: Any) -> List[str]:
    """
    Return the column names of the cursor's current result set.

    Statements without a result set (INSERT, UPDATE, ...) yield [].
    """
    if cursor.description is None:
        return []
    return [d[0] for d in cursor.description]


__all__ = [
    "open_cursor",
    "column_names",
]
