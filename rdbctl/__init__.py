"""
rdbctl

Inversion-of-control access to a relational database.

Submodules include:
    - controller/   DbController, the entry point
    - transaction/  commit / rollback decision and rollback-on-failure
    - recovery/     failure handlers and the recovery boundary
    - callbacks/    callback contracts and function adapters
    - ext/          driver wrappers raising DriverError
    - errors/       error taxonomy
    - config/       DbConfig and load_config()
    - driver/       pooled database handle and backends
"""

from .config import DbConfig, load_config
from .callbacks import (
    TxFinale,
    IterateControl,
    DbCallback,
    RowsCallback,
    RowCallback,
    TxCallback,
    DbCallbackFunc,
    RowsCallbackFunc,
    RowCallbackFunc,
    TxCallbackFunc,
    build_tx_for_sqls,
    build_tx_for_if,
)
from .controller import DbController
from .errors import (
    RdbError,
    InitializationError,
    NotInitializedError,
    DriverError,
    CompositeError,
    NonErrorPayloadError,
    Panic,
)
from .ext import (
    ResultExt,
    RowsExt,
    RowExt,
    StmtExt,
    TxExt,
    to_result_ext,
    to_rows_ext,
    to_row_ext,
    to_stmt_ext,
    to_tx_ext,
)
from .recovery import ErrorSlot, capture_failure_into, panic

__all__ = [
    # Config
    "DbConfig",
    "load_config",

    # Controller
    "DbController",

    # Callbacks
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
    "build_tx_for_sqls",
    "build_tx_for_if",

    # Failure handling
    "ErrorSlot",
    "capture_failure_into",
    "panic",

    # Errors
    "RdbError",
    "InitializationError",
    "NotInitializedError",
    "DriverError",
    "CompositeError",
    "NonErrorPayloadError",
    "Panic",

    # Extensions
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
