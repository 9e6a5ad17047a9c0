"""Generic SQLAlchemy local store implementation."""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, UTC
from enum import Enum
from typing import Any, Callable, Iterator, Optional

from sqlalchemy import Connection, func, inspect, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from debtbook.database.base import Collection, INDEXES, LocalStore
from debtbook.database.models import (
    Base,
    Debtor,
    Setting,
    SchemaMeta,
    SyncQueueItem,
    Transaction,
    create_session_factory,
    create_store_engine,
)
from debtbook.database.mappers import (
    debtor_to_domain,
    debtor_to_orm,
    setting_to_domain,
    setting_to_orm,
    sync_queue_item_to_domain,
    sync_queue_item_to_orm,
    transaction_to_domain,
    transaction_to_orm,
)
from debtbook.domain.errors import StorageFatalError

logger = logging.getLogger(__name__)


def _create_initial_schema(connection: Connection) -> None:
    """Version 1: debtors, transactions, settings and sync_queue with their indexes."""
    Base.metadata.create_all(
        connection,
        tables=[
            Debtor.__table__,
            Transaction.__table__,
            Setting.__table__,
            SyncQueueItem.__table__,
        ],
    )


def _store_amounts_exactly(connection: Connection) -> None:
    """Version 2: transaction amounts move from NUMERIC(16, 2) to exact decimal text."""
    table = Transaction.__table__
    rows = [dict(row) for row in connection.execute(select(table)).mappings()]
    table.drop(connection)
    table.create(connection)
    if rows:
        connection.execute(insert(table), rows)


SCHEMA_VERSION = 2

# Target version -> step that upgrades the schema from the previous version.
# New schema versions are added here; steps must preserve existing data.
MIGRATIONS: dict[int, Callable[[Connection], None]] = {
    1: _create_initial_schema,
    2: _store_amounts_exactly,
}


@dataclass(frozen=True)
class _CollectionMapping:
    model: type
    key: str
    to_domain: Callable[[Any], Any]
    to_orm: Callable[[Any], Any]
    order_by: tuple[str, ...]
    # Columns owned by the store and kept when a record is replaced
    preserved: tuple[str, ...] = ()


_MAPPINGS: dict[Collection, _CollectionMapping] = {
    Collection.DEBTORS: _CollectionMapping(
        Debtor, "id", debtor_to_domain, debtor_to_orm, ("created_at", "id")
    ),
    Collection.TRANSACTIONS: _CollectionMapping(
        Transaction, "id", transaction_to_domain, transaction_to_orm, ("created_at", "id")
    ),
    Collection.SETTINGS: _CollectionMapping(
        Setting, "key", setting_to_domain, setting_to_orm, ("key",)
    ),
    Collection.SYNC_QUEUE: _CollectionMapping(
        SyncQueueItem,
        "id",
        sync_queue_item_to_domain,
        sync_queue_item_to_orm,
        ("sequence",),
        preserved=("sequence",),
    ),
}


class SQLAlchemyLocalStore(LocalStore):
    """SQLAlchemy-based implementation of the LocalStore interface."""

    def __init__(self, database_url: str):
        """Initialize SQLAlchemy store.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db',
                'sqlite://' for an in-memory store)
        """
        self.database_url = database_url
        self.database_path: Optional[str] = None
        try:
            self.engine = create_store_engine(database_url)
        except SQLAlchemyError as e:
            raise StorageFatalError(f"Could not open local store at {database_url}: {e}") from e
        self.session_factory = create_session_factory(self.engine)
        # Each thread gets its own unit-of-work session
        self._local = threading.local()

    def connect(self) -> None:
        """Open the store, failing fast if it is unreachable."""
        try:
            with self.engine.connect():
                pass
        except SQLAlchemyError as e:
            raise StorageFatalError(f"Could not open local store at {self.database_url}: {e}") from e

    def disconnect(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()

    def initialize_schema(self) -> None:
        """Create the schema on first open and run pending migrations afterwards."""
        try:
            with self.engine.begin() as connection:
                if not inspect(connection).has_table(SchemaMeta.__tablename__):
                    Base.metadata.create_all(connection, tables=[SchemaMeta.__table__])
                    connection.execute(
                        insert(SchemaMeta.__table__).values(
                            id=1, version=0, migrated_at=datetime.now(UTC)
                        )
                    )
                    current = 0
                else:
                    current = connection.execute(
                        select(SchemaMeta.version).where(SchemaMeta.id == 1)
                    ).scalar_one()

                if current > SCHEMA_VERSION:
                    raise StorageFatalError(
                        f"Local store schema version {current} is newer than supported version {SCHEMA_VERSION}"
                    )

                for target in range(current + 1, SCHEMA_VERSION + 1):
                    logger.info("Migrating local store schema to version %d", target)
                    MIGRATIONS[target](connection)
                    connection.execute(
                        update(SchemaMeta.__table__)
                        .where(SchemaMeta.id == 1)
                        .values(version=target, migrated_at=datetime.now(UTC))
                    )
        except SQLAlchemyError as e:
            raise StorageFatalError(f"Could not initialize local store at {self.database_url}: {e}") from e

    def schema_version(self) -> Optional[int]:
        """Return the stored schema version, or None before initialization."""
        with self.engine.connect() as connection:
            if not inspect(connection).has_table(SchemaMeta.__tablename__):
                return None
            return connection.execute(
                select(SchemaMeta.version).where(SchemaMeta.id == 1)
            ).scalar_one_or_none()

    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        """Group several operations into a single commit."""
        if getattr(self._local, "session", None) is not None:
            yield
            return

        session = self.session_factory()
        self._local.session = session
        try:
            yield
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            self._local.session = None
            session.close()

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Yield the active unit-of-work session, or a session committed on exit."""
        active = getattr(self._local, "session", None)
        if active is not None:
            yield active
            return

        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def put(self, collection: Collection, record: Any) -> None:
        """Insert or replace a record."""
        mapping = _MAPPINGS[collection]
        with self._session_scope() as session:
            row = mapping.to_orm(record)
            existing = session.get(mapping.model, getattr(row, mapping.key))
            if existing is None:
                if collection is Collection.SYNC_QUEUE:
                    last = session.query(func.max(SyncQueueItem.sequence)).scalar()
                    row.sequence = (last or 0) + 1
                session.add(row)
                return
            for column in mapping.model.__table__.columns:
                if column.key in mapping.preserved:
                    continue
                setattr(existing, column.key, getattr(row, column.key))

    def get(self, collection: Collection, key: str) -> Optional[Any]:
        """Get a record by key. Returns None if it does not exist."""
        mapping = _MAPPINGS[collection]
        with self._session_scope() as session:
            row = session.get(mapping.model, key)
            if row is None:
                return None
            return mapping.to_domain(row)

    def get_all(self, collection: Collection) -> list[Any]:
        """Get all records in a collection."""
        mapping = _MAPPINGS[collection]
        with self._session_scope() as session:
            rows = (
                session.query(mapping.model)
                .order_by(*(getattr(mapping.model, name) for name in mapping.order_by))
                .all()
            )
            return [mapping.to_domain(row) for row in rows]

    def delete(self, collection: Collection, key: str) -> None:
        """Delete a record by key. Deleting a missing key is a no-op."""
        mapping = _MAPPINGS[collection]
        with self._session_scope() as session:
            row = session.get(mapping.model, key)
            if row is not None:
                session.delete(row)

    def get_all_by_index(self, collection: Collection, index_name: str, value: Any) -> list[Any]:
        """Get all records whose indexed field equals value."""
        if index_name not in INDEXES[collection]:
            raise ValueError(f"Collection '{collection.value}' has no index '{index_name}'")

        mapping = _MAPPINGS[collection]
        if isinstance(value, Enum):
            value = value.value
        with self._session_scope() as session:
            rows = (
                session.query(mapping.model)
                .filter(getattr(mapping.model, index_name) == value)
                .order_by(*(getattr(mapping.model, name) for name in mapping.order_by))
                .all()
            )
            return [mapping.to_domain(row) for row in rows]

    def clear(self, collection: Collection) -> None:
        """Delete every record in a collection."""
        mapping = _MAPPINGS[collection]
        with self._session_scope() as session:
            session.query(mapping.model).delete(synchronize_session="fetch")

    def count(self, collection: Collection) -> int:
        """Count records in a collection."""
        mapping = _MAPPINGS[collection]
        with self._session_scope() as session:
            return session.query(mapping.model).count()
