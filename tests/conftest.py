import sys
from pathlib import Path

import pytest

# Ensure project root on sys.path
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from rdbctl import DbController  # noqa: E402
from rdbctl.driver import Database, SQLiteBackend  # noqa: E402


SCHEMA = [
    "CREATE TABLE t (id INTEGER PRIMARY KEY)",
    "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL)",
]


@pytest.fixture()
def db_path(tmp_path):
    return str(tmp_path / "rdbctl_test.db")


@pytest.fixture()
def database(db_path):
    db = Database(SQLiteBackend(db_path), max_idle=2)
    for ddl in SCHEMA:
        db.execute(ddl)
    yield db
    # No-op when the test already released it
    db.close()


@pytest.fixture()
def controller(database):
    return DbController(database)


@pytest.fixture()
def table_ids(database):
    """Read t.id values straight from the driver, bypassing the controller."""
    def read():
        with database.query("SELECT id FROM t ORDER BY id") as rows:
            return [r[0] for r in rows]
    return read
