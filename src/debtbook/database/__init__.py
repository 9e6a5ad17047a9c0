"""Local store layer for debtbook."""

from debtbook.database.base import Collection, LocalStore
from debtbook.database.factories import create_sqlite_store, create_memory_store

__all__ = ["Collection", "LocalStore", "create_sqlite_store", "create_memory_store"]
