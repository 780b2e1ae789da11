"""
Transaction manager.

run_in_transaction() drives one transaction through:

    begin -> in_tx(tx) -> COMMIT | ROLLBACK

If the callback raises (KeyboardInterrupt and SystemExit included), or
returns something that is not a TxFinale value, the transaction is rolled
back and the original exception is re-raised. When the rollback fails as
well, CompositeError(original, rollback_error) is raised instead, chained
from the original. A non-Exception original is re-raised as is.
"""

from __future__ import annotations

import logging
from typing import Any

from .callbacks import TxCallback, TxFinale, as_tx_callback
from .errors import CompositeError, DriverError, driver_errors

logger = logging.getLogger(__name__)


def run_in_transaction(db: Any, tx_callback: TxCallback) -> None:
    """
    Run `tx_callback.in_tx(tx)` inside a transaction begun on `db`.

    Parameters
    ----------
    db:
        Driver handle exposing begin().
    tx_callback:
        TxCallback, or a plain callable taking the transaction.

    Raises
    ------
    DriverError
        Begin, commit, or the requested rollback failed.
    CompositeError
        The callback failed and so did the automatic rollback.
    Exception
        Whatever the callback raised, after a successful rollback.
    """
    tx_callback = as_tx_callback(tx_callback)

    with driver_errors():
        tx = db.begin()

    try:
        finale = _finale_of(tx_callback.in_tx(tx))
    except BaseException as failure:
        logger.debug("Rolling back transaction after failure: %r", failure)
        try:
            with driver_errors():
                tx.rollback()
        except DriverError as rollback_error:
            if isinstance(failure, Exception):
                raise CompositeError(failure, rollback_error) from failure
            logger.error("Rollback after %r failed: %s", failure, rollback_error)
        raise

    with driver_errors():
        if finale is TxFinale.COMMIT:
            tx.commit()
        else:
            tx.rollback()


def _finale_of(value: Any) -> TxFinale:
    # bool is an int subclass; True must not read as COMMIT.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Invalid transaction finale: {value!r}")
    return TxFinale(value)


__all__ = [
    "run_in_transaction",
]
