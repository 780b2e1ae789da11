"""
Construction of driver handles from a DbConfig.
"""

from __future__ import annotations

import logging

from ..config import DbConfig
from .backend_base import DBBackend
from .database import Database
from .postgres_backend import PostgresBackend
from .sqlite_backend import SQLiteBackend

logger = logging.getLogger(__name__)


def create_backend(config: DbConfig) -> DBBackend:
    """
    Instantiate the appropriate backend for a given configuration.
    """
    name = (config.driver or "").lower()

    if name in ("sqlite", "sqlite3"):
        return SQLiteBackend(config.dsn)

    if name in ("postgres", "postgresql", "psql"):
        return PostgresBackend(config.dsn)

    raise ValueError(f"Unsupported rdbctl driver: {config.driver!r}")


def open_database(config: DbConfig) -> Database:
    """
    Open a pooled Database handle. No connection is made until first use.
    """
    backend = create_backend(config)
    logger.info("Opening %s database. %s", backend.name, config)
    return Database(backend, max_idle=config.max_idle)


__all__ = [
    "create_backend",
    "open_database",
]
