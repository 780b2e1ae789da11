"""
Callback contracts used by the controller.

Each capability is a runtime-checkable Protocol with a function adapter,
so either an object implementing the method or a plain callable can be
handed to the controller:

    DbCallback    on_db(db)                 DbCallbackFunc
    RowsCallback  next_row(rows) -> IterateControl   RowsCallbackFunc
    RowCallback   result_row(row)           RowCallbackFunc
    TxCallback    in_tx(tx) -> TxFinale     TxCallbackFunc
"""

from __future__ import annotations

import enum
from typing import Any, Callable, Protocol, runtime_checkable

from .ext import to_tx_ext


class TxFinale(enum.IntEnum):
    """Decision returned by a transaction callback."""

    COMMIT = 1
    ROLLBACK = 2


class IterateControl(enum.IntEnum):
    """Decision returned by a row-set callback for each row."""

    STOP = 0
    CONTINUE = 1


# ----------------------------------------------------------------------
# Protocols
# ----------------------------------------------------------------------

@runtime_checkable
class DbCallback(Protocol):
    def on_db(self, db: Any) -> None:
        ...


@runtime_checkable
class RowsCallback(Protocol):
    def next_row(self, rows: Any) -> IterateControl:
        ...


@runtime_checkable
class RowCallback(Protocol):
    def result_row(self, row: Any) -> None:
        ...


@runtime_checkable
class TxCallback(Protocol):
    def in_tx(self, tx: Any) -> TxFinale:
        ...


# ----------------------------------------------------------------------
# Function adapters
# ----------------------------------------------------------------------

class DbCallbackFunc:
    def __init__(self, func: Callable[[Any], None]):
        self.func = func

    def on_db(self, db: Any) -> None:
        self.func(db)


class RowsCallbackFunc:
    def __init__(self, func: Callable[[Any], IterateControl]):
        self.func = func

    def next_row(self, rows: Any) -> IterateControl:
        return self.func(rows)


class RowCallbackFunc:
    def __init__(self, func: Callable[[Any], None]):
        self.func = func

    def result_row(self, row: Any) -> None:
        self.func(row)


class TxCallbackFunc:
    def __init__(self, func: Callable[[Any], TxFinale]):
        self.func = func

    def in_tx(self, tx: Any) -> TxFinale:
        return self.func(tx)


def _adapt(callback: Any, protocol: type, adapter: type, what: str) -> Any:
    if isinstance(callback, protocol):
        return callback
    if callable(callback):
        return adapter(callback)
    raise TypeError(f"Expected a {what} or a callable, got {callback!r}")


def as_db_callback(callback: Any) -> DbCallback:
    return _adapt(callback, DbCallback, DbCallbackFunc, "DbCallback")


def as_rows_callback(callback: Any) -> RowsCallback:
    return _adapt(callback, RowsCallback, RowsCallbackFunc, "RowsCallback")


def as_row_callback(callback: Any) -> RowCallback:
    return _adapt(callback, RowCallback, RowCallbackFunc, "RowCallback")


def as_tx_callback(callback: Any) -> TxCallback:
    return _adapt(callback, TxCallback, TxCallbackFunc, "TxCallback")


# ----------------------------------------------------------------------
# Prebuilt transaction callbacks
# ----------------------------------------------------------------------

def build_tx_for_sqls(*queries: str) -> TxCallback:
    """
    Build a transaction callback executing the queries in order.

    Always decides COMMIT; the first failing query raises DriverError
    (with that query attached) and the transaction is rolled back.
    """
    def in_tx(tx: Any) -> TxFinale:
        tx_ext = to_tx_ext(tx)
        for query in queries:
            tx_ext.exec(query)
        return TxFinale.COMMIT

    return TxCallbackFunc(in_tx)


def build_tx_for_if(
    boot_callback: Callable[[Any], bool],
    then_callback: Callable[[Any], None],
) -> TxCallback:
    """
    Build a transaction callback running then_callback(tx) only when
    boot_callback(tx) is truthy. Decides COMMIT either way.
    """
    def in_tx(tx: Any) -> TxFinale:
        if boot_callback(tx):
            then_callback(tx)
        return TxFinale.COMMIT

    return TxCallbackFunc(in_tx)


__all__ = [
    "TxFinale",
    "IterateControl",
    "DbCallback",
    "RowsCallback",
    "RowCallback",
    "TxCallback",
    "DbCallbackFunc",
    "RowsCallbackFunc",
    "RowCallbackFunc",
    "TxCallbackFunc",
    "as_db_callback",
    "as_rows_callback",
    "as_row_callback",
    "as_tx_callback",
    "build_tx_for_sqls",
    "build_tx_for_if",
]
