import sqlite3
import threading
from unittest.mock import patch

import pytest

from rdbctl import (
    CompositeError,
    DriverError,
    ErrorSlot,
    TxCallbackFunc,
    TxFinale,
    build_tx_for_sqls,
    capture_failure_into,
    to_tx_ext,
)
from rdbctl.driver import SQLiteBackend, Tx, TxDoneError
from rdbctl.transaction import run_in_transaction


def insert_then(finale):
    def in_tx(tx):
        to_tx_ext(tx).exec("INSERT INTO t VALUES (?)", 10)
        return finale
    return in_tx


# ----------------------------------------------------------------------
# Commit / rollback decision
# ----------------------------------------------------------------------

def test_commit_makes_changes_visible(controller, table_ids):
    controller.run_in_transaction(TxCallbackFunc(insert_then(TxFinale.COMMIT)))
    assert table_ids() == [10]


def test_rollback_discards_changes(controller, table_ids):
    controller.run_in_transaction(insert_then(TxFinale.ROLLBACK))
    assert table_ids() == []


def test_plain_int_finale_is_accepted(controller, table_ids):
    controller.run_in_transaction(insert_then(1))
    assert table_ids() == [10]


def test_invalid_finale_rolls_back(controller, table_ids):
    with pytest.raises(ValueError):
        controller.run_in_transaction(insert_then("yes"))
    assert table_ids() == []


@pytest.mark.parametrize("value", [True, 1.0])
def test_non_int_finale_rolls_back(controller, table_ids, value):
    with pytest.raises(ValueError, match="Invalid transaction finale"):
        controller.run_in_transaction(insert_then(value))
    assert table_ids() == []


def test_keyboard_interrupt_rolls_back_and_frees_connection(controller, database, table_ids):
    def in_tx(tx):
        tx.execute("INSERT INTO t VALUES (1)")
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        controller.run_in_transaction(in_tx)

    assert database.stats().in_use == 0
    controller.execute_many_in_transaction("INSERT INTO t VALUES (2)")
    assert table_ids() == [2]


def test_keyboard_interrupt_survives_failed_rollback(controller):
    def in_tx(tx):
        raise KeyboardInterrupt

    with patch.object(Tx, "rollback", side_effect=sqlite3.OperationalError("rollback failed")):
        with pytest.raises(KeyboardInterrupt):
            controller.run_in_transaction(in_tx)


def test_connection_returned_after_transaction(controller, database):
    controller.run_in_transaction(insert_then(TxFinale.COMMIT))
    controller.run_in_transaction(insert_then(TxFinale.ROLLBACK))
    assert database.stats().in_use == 0


def test_transaction_handle_is_done_after_commit(controller):
    seen = []

    def in_tx(tx):
        seen.append(tx)
        return TxFinale.COMMIT

    controller.run_in_transaction(in_tx)

    with pytest.raises(TxDoneError):
        seen[0].execute("INSERT INTO t VALUES (1)")


# ----------------------------------------------------------------------
# Rollback on failure
# ----------------------------------------------------------------------

def test_failing_callback_rolls_back_and_keeps_original(controller, table_ids):
    slot = ErrorSlot()
    controller.register_failure_handler(capture_failure_into(slot))
    err = ValueError("callback failed")

    def in_tx(tx):
        to_tx_ext(tx).exec("INSERT INTO t VALUES (1)")
        raise err

    controller.run_in_transaction(in_tx)

    assert slot.error is err
    assert table_ids() == []


def test_failing_callback_without_handlers_reraises_original(controller, table_ids):
    err = KeyError("missing")

    def in_tx(tx):
        to_tx_ext(tx).exec("INSERT INTO t VALUES (1)")
        raise err

    with pytest.raises(KeyError) as excinfo:
        controller.run_in_transaction(in_tx)

    assert excinfo.value is err
    assert table_ids() == []


def test_rollback_failure_composes_both_causes(controller):
    err = ValueError("callback failed")

    def in_tx(tx):
        raise err

    with patch.object(Tx, "rollback", side_effect=sqlite3.OperationalError("rollback failed")):
        with pytest.raises(CompositeError) as excinfo:
            controller.run_in_transaction(in_tx)

    composite = excinfo.value
    assert composite.original is err
    assert isinstance(composite.rollback_error, DriverError)
    assert isinstance(composite.rollback_error.cause, sqlite3.OperationalError)
    assert composite.causes == (err, composite.rollback_error)
    assert composite.__cause__ is err
    assert str(composite) == (
        "Transaction has Error: callback failed. Rollback has error too: rollback failed"
    )


def test_rollback_failure_captured_by_handler(controller):
    slot = ErrorSlot()
    controller.register_failure_handler(capture_failure_into(slot))

    def in_tx(tx):
        raise ValueError("callback failed")

    with patch.object(Tx, "rollback", side_effect=sqlite3.OperationalError("rollback failed")):
        controller.run_in_transaction(in_tx)

    assert isinstance(slot.error, CompositeError)


def test_rollback_of_already_finished_tx_is_composite(controller):
    def in_tx(tx):
        tx.commit()
        raise RuntimeError("after commit")

    with pytest.raises(CompositeError) as excinfo:
        controller.run_in_transaction(in_tx)

    assert isinstance(excinfo.value.rollback_error.cause, TxDoneError)


def test_commit_failure_is_driver_error(controller):
    with patch.object(Tx, "commit", side_effect=sqlite3.OperationalError("disk I/O error")):
        with pytest.raises(DriverError) as excinfo:
            controller.run_in_transaction(lambda tx: TxFinale.COMMIT)

    assert not isinstance(excinfo.value, CompositeError)


def test_begin_failure_skips_callback(controller):
    called = []

    with patch.object(SQLiteBackend, "begin", side_effect=sqlite3.OperationalError("locked")):
        with pytest.raises(DriverError):
            controller.run_in_transaction(lambda tx: called.append(tx) or TxFinale.COMMIT)

    assert called == []


def test_run_in_transaction_directly_on_database(database, table_ids):
    run_in_transaction(database, insert_then(TxFinale.COMMIT))
    assert table_ids() == [10]


# ----------------------------------------------------------------------
# Derived operations
# ----------------------------------------------------------------------

def test_execute_many_inserts_all(controller, table_ids):
    controller.execute_many_in_transaction(
        "INSERT INTO t VALUES (1)",
        "INSERT INTO t VALUES (2)",
    )
    assert table_ids() == [1, 2]


def test_execute_many_is_all_or_nothing(controller, table_ids):
    with pytest.raises(DriverError) as excinfo:
        controller.execute_many_in_transaction(
            "INSERT INTO t VALUES (1)",
            "INSERT INTO t VALUES (2)",
            "INVALID SQL",
        )

    assert excinfo.value.query == "INVALID SQL"
    assert "INVALID SQL" in str(excinfo.value)
    assert table_ids() == []


def test_build_tx_for_sqls_returns_commit(database):
    tx = database.begin()
    try:
        assert build_tx_for_sqls("INSERT INTO t VALUES (5)").in_tx(tx) is TxFinale.COMMIT
    finally:
        tx.rollback()


def test_conditional_runs_then_when_boot_is_true(controller, table_ids):
    controller.run_conditionally_in_transaction(
        lambda tx: to_tx_ext(tx).query_row("SELECT COUNT(*) FROM t").scan()[0] == 0,
        lambda tx: to_tx_ext(tx).exec("INSERT INTO t VALUES (1)"),
    )
    assert table_ids() == [1]


def test_conditional_skips_then_when_boot_is_false(controller, table_ids):
    then_calls = []

    controller.run_conditionally_in_transaction(
        lambda tx: False,
        then_calls.append,
    )

    assert then_calls == []
    assert table_ids() == []


def test_conditional_failure_rolls_back_boot_writes(controller, table_ids):
    def boot(tx):
        to_tx_ext(tx).exec("INSERT INTO t VALUES (7)")
        return True

    def then(tx):
        to_tx_ext(tx).exec("INSERT INTO t VALUES (7)")

    with pytest.raises(DriverError):
        controller.run_conditionally_in_transaction(boot, then)

    assert table_ids() == []


# ----------------------------------------------------------------------
# Concurrency
# ----------------------------------------------------------------------

def test_concurrent_transactions(controller, table_ids):
    errors = []

    def worker(base):
        try:
            for i in range(5):
                value = base * 100 + i
                controller.execute_many_in_transaction(f"INSERT INTO t VALUES ({value})")
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(1, 5)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    assert errors == []
    assert len(table_ids()) == 20
