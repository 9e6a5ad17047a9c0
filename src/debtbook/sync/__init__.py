"""Remote synchronization."""

from debtbook.sync.engine import SyncEngine, timer_scheduler
from debtbook.sync.remote import RemoteStore
from debtbook.sync.sqlalchemy_remote import SQLAlchemyRemoteStore, create_remote_store

__all__ = [
    "RemoteStore",
    "SQLAlchemyRemoteStore",
    "SyncEngine",
    "create_remote_store",
    "timer_scheduler",
]
