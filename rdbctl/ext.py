"""
Extension wrappers over driver primitives.

Each wrapper keeps the method surface of the driver object it holds in
`raw`, except that a failing call raises DriverError instead of the
driver's own exception. This lets callback bodies be written as straight
line code:

    def in_tx(tx):
        tx = to_tx_ext(tx)
        user_id = tx.exec("INSERT INTO users(name) VALUES (?)", name).last_insert_id()
        tx.exec("INSERT INTO audit(user_id) VALUES (?)", user_id)
        return TxFinale.COMMIT

Attributes that are not overridden are delegated to the raw object.
"""

from __future__ import annotations

from typing import Any, Iterator, List, Tuple

from .errors import driver_errors


class _Ext:
    def __init__(self, raw: Any):
        self.raw = raw

    def __getattr__(self, name: str) -> Any:
        return getattr(self.raw, name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.raw!r})"


class ResultExt(_Ext):
    """Extension for driver Result."""

    def last_insert_id(self) -> int:
        with driver_errors():
            return self.raw.last_insert_id()

    def rows_affected(self) -> int:
        with driver_errors():
            return self.raw.rows_affected()


class RowsExt(_Ext):
    """Extension for driver Rows."""

    def columns(self) -> List[str]:
        with driver_errors():
            return self.raw.columns()

    def next(self) -> bool:
        with driver_errors():
            return self.raw.next()

    def scan(self) -> Tuple[Any, ...]:
        with driver_errors():
            return self.raw.scan()

    def close(self) -> None:
        with driver_errors():
            self.raw.close()

    def __iter__(self) -> Iterator[Tuple[Any, ...]]:
        while self.next():
            yield self.scan()

    def __enter__(self) -> "RowsExt":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class RowExt(_Ext):
    """Extension for driver Row."""

    def scan(self) -> Tuple[Any, ...]:
        with driver_errors():
            return self.raw.scan()


class StmtExt(_Ext):
    """Extension for driver Stmt."""

    def _query_text(self) -> Any:
        return getattr(self.raw, "query_text", None)

    def exec(self, *args: Any) -> ResultExt:
        with driver_errors(self._query_text(), args):
            return ResultExt(self.raw.exec(*args))

    def query(self, *args: Any) -> Any:
        with driver_errors(self._query_text(), args):
            return self.raw.query(*args)

    def query_row(self, *args: Any) -> RowExt:
        with driver_errors(self._query_text(), args):
            return to_row_ext(self.raw.query_row(*args))

    def close(self) -> None:
        with driver_errors(self._query_text()):
            self.raw.close()


class TxExt(_Ext):
    """Extension for driver Tx."""

    def commit(self) -> None:
        with driver_errors():
            self.raw.commit()

    def rollback(self) -> None:
        with driver_errors():
            self.raw.rollback()

    def exec(self, query: str, *args: Any) -> ResultExt:
        with driver_errors(query, args):
            return ResultExt(self.raw.execute(query, *args))

    def prepare(self, query: str) -> Any:
        with driver_errors(query):
            return self.raw.prepare(query)

    def query(self, query: str, *args: Any) -> Any:
        with driver_errors(query, args):
            return self.raw.query(query, *args)

    def query_row(self, query: str, *args: Any) -> RowExt:
        with driver_errors(query, args):
            return to_row_ext(self.raw.query_row(query, *args))


# ----------------------------------------------------------------------
# Converters
# ----------------------------------------------------------------------

def _wrap(raw: Any, ext_type: type) -> Any:
    if isinstance(raw, ext_type):
        return raw
    return ext_type(raw)


def to_result_ext(result: Any) -> ResultExt:
    return _wrap(result, ResultExt)


def to_rows_ext(rows: Any) -> RowsExt:
    return _wrap(rows, RowsExt)


def to_row_ext(row: Any) -> RowExt:
    return _wrap(row, RowExt)


def to_stmt_ext(stmt: Any) -> StmtExt:
    return _wrap(stmt, StmtExt)


def to_tx_ext(tx: Any) -> TxExt:
    return _wrap(tx, TxExt)


__all__ = [
    "ResultExt",
    "RowsExt",
    "RowExt",
    "StmtExt",
    "TxExt",
    "to_result_ext",
    "to_rows_ext",
    "to_row_ext",
    "to_stmt_ext",
    "to_tx_ext",
]
