"""Store factory functions for creating local store instances."""

import os
from pathlib import Path
from typing import Optional

from debtbook.database.sqlalchemy_db import SQLAlchemyLocalStore


def create_sqlite_store(database_path: Optional[str] = None) -> SQLAlchemyLocalStore:
    """Create a SQLite-backed local store.

    Args:
        database_path: Path to SQLite database file. If None, checks DEBTBOOK_DB_PATH
            environment variable, then defaults to ~/.debtbook/debtbook.db

    Returns:
        SQLAlchemyLocalStore instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("DEBTBOOK_DB_PATH")

    if database_path is None:
        db_dir = Path.home() / ".debtbook"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "debtbook.db")

    store = SQLAlchemyLocalStore(f"sqlite:///{database_path}")
    store.database_path = database_path
    return store


def create_memory_store() -> SQLAlchemyLocalStore:
    """Create an in-memory local store. Contents vanish when the store is dropped.

    Every session shares one sqlite3 connection, so the store must only be
    used from a single thread. Pair it with a SyncEngine only when the
    scheduler runs callbacks on the calling thread; the default timer
    scheduler needs a file-backed store.
    """
    return SQLAlchemyLocalStore("sqlite://")
