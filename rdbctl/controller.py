"""
Database controller.

DbController gives inversion of control over a database handle: callers
hand in callbacks, the controller runs them against the handle and owns
failure handling.

For failure handling, callbacks raise. Driver failures are raised as
DriverError (use the wrappers in rdbctl.ext for straight-line code), and
any value can be raised with rdbctl.recovery.panic().

Every operation runs inside one recovery boundary:

    - without registered failure handlers, the failure is re-raised
      unchanged to the caller
    - with handlers, they are called in registration order with the
      payload and the failure is absorbed unless a handler raises

Usage:

    controller = DbController(open_database(load_config()))

    err = ErrorSlot()
    controller.register_failure_handler(capture_failure_into(err))

    controller.execute_many_in_transaction(
        "INSERT INTO t VALUES (1)",
        "INSERT INTO t VALUES (2)",
    )
    if err.error is not None:
        ...

    controller.release()
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from .callbacks import (
    IterateControl,
    RowCallback,
    RowsCallback,
    TxCallback,
    as_db_callback,
    as_row_callback,
    as_rows_callback,
    build_tx_for_if,
    build_tx_for_sqls,
)
from .config import DbConfig, load_config
from .driver import open_database
from .errors import DriverError, InitializationError, NotInitializedError, driver_errors
from .ext import ResultExt
from .recovery import FailureHandler, FailureHandlers
from . import transaction

logger = logging.getLogger(__name__)


class DbController:
    """
    Main controller of a database handle.

    Parameters
    ----------
    db:
        Driver handle (rdbctl.driver.Database or compatible). The
        controller owns it from now on and closes it in release().

    Raises
    ------
    InitializationError
        If `db` is None.
    """

    def __init__(self, db: Any):
        if db is None:
            raise InitializationError("Need viable DB object")

        self._db = db
        self._failure_handlers = FailureHandlers()

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_config(cls, config: Optional[DbConfig] = None) -> "DbController":
        """
        Open the configured database and wrap it in a controller.
        """
        cfg = config or load_config()

        if cfg.enable_logging:
            logging.basicConfig(level=logging.INFO)
            logger.info("Initializing DbController with config: %s", cfg)

        return cls(open_database(cfg))

    @property
    def is_initialized(self) -> bool:
        return self._db is not None

    # ------------------------------------------------------------------
    # Failure handling
    # ------------------------------------------------------------------

    def register_failure_handler(self, handler: FailureHandler) -> None:
        """
        Append a handler called with the payload of any failure raised
        inside an operation. Handlers run in registration order.

        Register handlers before the controller is shared between threads.
        """
        self._failure_handlers.register(handler)

    def _need_initialized(self) -> Any:
        db = self._db
        if db is None:
            raise NotInitializedError()
        return db

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def operate(self, db_callback: Any) -> None:
        """
        Run `db_callback.on_db(db)` (or `db_callback(db)`) inside the
        recovery boundary.
        """
        db = self._need_initialized()
        db_callback = as_db_callback(db_callback)

        with self._failure_handlers.boundary():
            db_callback.on_db(db)

    def execute(self, query: str, *args: Any) -> Optional[ResultExt]:
        """
        Execute a statement that returns no rows.

        Returns None only when a failure handler absorbed a failure.
        """
        result: Optional[ResultExt] = None

        def on_db(db: Any) -> None:
            nonlocal result
            with driver_errors(query, args):
                result = ResultExt(db.execute(query, *args))

        self.operate(on_db)
        return result

    def query_for_rows(self, rows_callback: RowsCallback, query: str, *args: Any) -> int:
        """
        Hand each row of the query to `rows_callback.next_row(rows)` until
        the rows are exhausted or the callback returns IterateControl.STOP.

        Returns the number of rows handed to the callback.
        """
        rows_callback = as_rows_callback(rows_callback)
        number_of_rows = 0

        def on_db(db: Any) -> None:
            nonlocal number_of_rows
            try:
                rows = db.query(query, *args)
            except Exception as e:
                raise DriverError(
                    f"Query SQL with exception: {e} SQL: [{query}] Params: [{list(args)}]",
                    cause=e,
                    query=query,
                    params=args,
                ) from e

            try:
                while True:
                    with driver_errors(query, args):
                        has_row = rows.next()
                    if not has_row:
                        break

                    number_of_rows += 1
                    if rows_callback.next_row(rows) == IterateControl.STOP:
                        break
            except BaseException:
                # The in-flight failure wins over a failing close.
                try:
                    rows.close()
                except Exception as close_failure:
                    logger.warning("Close rows after failure error. %s", close_failure)
                raise

            with driver_errors(query, args):
                rows.close()

        self.operate(on_db)
        return number_of_rows

    def query_for_row(self, row_callback: RowCallback, query: str, *args: Any) -> None:
        """
        Hand the single-row result of the query to
        `row_callback.result_row(row)`. An empty result is not a failure;
        it surfaces when the callback scans the row.
        """
        row_callback = as_row_callback(row_callback)

        def on_db(db: Any) -> None:
            row = db.query_row(query, *args)
            row_callback.result_row(row)

        self.operate(on_db)

    def run_in_transaction(self, tx_callback: TxCallback) -> None:
        """
        Run the callback in a transaction, committing or rolling back by
        the TxFinale it returns. A raising callback is rolled back.
        """
        self.operate(lambda db: transaction.run_in_transaction(db, tx_callback))

    def run_conditionally_in_transaction(
        self,
        boot_callback: Callable[[Any], bool],
        then_callback: Callable[[Any], None],
    ) -> None:
        """
        In one transaction, run `then_callback(tx)` only if
        `boot_callback(tx)` is truthy; commit in both cases.
        """
        self.run_in_transaction(build_tx_for_if(boot_callback, then_callback))

    def execute_many_in_transaction(self, *queries: str) -> None:
        """
        Execute the queries in order within one transaction: all of them
        take effect, or none.
        """
        self.run_in_transaction(build_tx_for_sqls(*queries))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def release(self) -> None:
        """
        Close the database handle. The controller is unusable afterwards;
        a second call raises NotInitializedError.
        """
        db = self._need_initialized()

        with self._failure_handlers.boundary():
            try:
                db.close()
            except Exception as e:
                logger.error("Release database connection error. %s", e)
                raise DriverError(
                    f"Release database connection error. {e}", cause=e
                ) from e

            self._db = None

    def __repr__(self) -> str:
        state = "initialized" if self._db is not None else "released"
        return f"DbController({state}, handlers={len(self._failure_handlers)})"


__all__ = [
    "DbController",
]
