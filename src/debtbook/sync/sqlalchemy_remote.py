"""Remote store backed by any SQLAlchemy database (PostgreSQL, MySQL, SQLite...)."""

import logging
from contextlib import contextmanager
from datetime import datetime, UTC
from typing import Any, Iterator, Optional

from sqlalchemy import JSON, BigInteger, Column, Index, String
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base

from debtbook.database.models import UTCDateTime, create_session_factory, create_store_engine
from debtbook.domain.errors import RemoteStoreError
from debtbook.sync.remote import RemoteStore
from debtbook.utils.identifiers import to_epoch_ms

logger = logging.getLogger(__name__)

RemoteBase = declarative_base()


def _server_now() -> datetime:
    return datetime.now(UTC)


class RemoteDebtor(RemoteBase):
    """Debtor record in a user namespace."""

    __tablename__ = "remote_debtors"

    user_id = Column(String, primary_key=True)
    id = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)
    synced_at = Column(UTCDateTime, nullable=False, default=_server_now)


class RemoteTransaction(RemoteBase):
    """Transaction record in a user namespace."""

    __tablename__ = "remote_transactions"

    user_id = Column(String, primary_key=True)
    id = Column(String, primary_key=True)
    debtor_id = Column(String, nullable=False)
    data = Column(JSON, nullable=False)
    synced_at = Column(UTCDateTime, nullable=False, default=_server_now)

    __table_args__ = (Index("ix_remote_transactions_user_debtor", "user_id", "debtor_id"),)


class RemoteSettings(RemoteBase):
    """Settings object of a user namespace."""

    __tablename__ = "remote_settings"

    user_id = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)
    synced_at = Column(UTCDateTime, nullable=False, default=_server_now)


class RemoteSyncMarker(RemoteBase):
    """Last completed sync of a user namespace."""

    __tablename__ = "remote_sync_markers"

    user_id = Column(String, primary_key=True)
    last_sync_at = Column(BigInteger, nullable=False)


class RemoteBackup(RemoteBase):
    """Full snapshot stored under a timestamp id."""

    __tablename__ = "remote_backups"

    user_id = Column(String, primary_key=True)
    backup_id = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)
    created_at = Column(UTCDateTime, nullable=False, default=_server_now)


class SQLAlchemyRemoteStore(RemoteStore):
    """SQLAlchemy-based implementation of the RemoteStore interface."""

    def __init__(self, database_url: str):
        """Initialize remote store.

        Args:
            database_url: SQLAlchemy database URL of the shared server database
        """
        self.database_url = database_url
        try:
            self.engine = create_store_engine(database_url)
        except SQLAlchemyError as e:
            raise RemoteStoreError(f"Could not open remote store: {e}") from e
        self.session_factory = create_session_factory(self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """Yield a session committed on exit, translating backend errors."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise RemoteStoreError(f"Remote store operation failed: {e}") from e
        finally:
            session.close()

    def initialize_schema(self) -> None:
        """Create the remote tables if they do not exist."""
        try:
            RemoteBase.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise RemoteStoreError(f"Could not initialize remote store: {e}") from e

    def disconnect(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()

    def put_debtor(self, user_id: str, record: dict[str, Any]) -> None:
        """Create or fully overwrite a debtor record."""
        with self._session() as session:
            session.merge(
                RemoteDebtor(user_id=user_id, id=record["id"], data=dict(record), synced_at=_server_now())
            )

    def delete_debtor(self, user_id: str, debtor_id: str) -> None:
        """Delete a debtor and every remote transaction that references it."""
        with self._session() as session:
            session.query(RemoteDebtor).filter(
                RemoteDebtor.user_id == user_id, RemoteDebtor.id == debtor_id
            ).delete(synchronize_session=False)
            removed = (
                session.query(RemoteTransaction)
                .filter(RemoteTransaction.user_id == user_id, RemoteTransaction.debtor_id == debtor_id)
                .delete(synchronize_session=False)
            )
        logger.debug("Removed remote debtor %s and %d transactions", debtor_id, removed)

    def put_transaction(self, user_id: str, record: dict[str, Any]) -> None:
        """Create or fully overwrite a transaction record."""
        with self._session() as session:
            session.merge(
                RemoteTransaction(
                    user_id=user_id,
                    id=record["id"],
                    debtor_id=record["debtorId"],
                    data=dict(record),
                    synced_at=_server_now(),
                )
            )

    def delete_transaction(self, user_id: str, transaction_id: str) -> None:
        """Delete a transaction record."""
        with self._session() as session:
            session.query(RemoteTransaction).filter(
                RemoteTransaction.user_id == user_id, RemoteTransaction.id == transaction_id
            ).delete(synchronize_session=False)

    @staticmethod
    def _with_transport_fields(data: dict[str, Any], synced_at: datetime) -> dict[str, Any]:
        return {**data, "syncedAt": to_epoch_ms(synced_at)}

    def fetch_debtors(self, user_id: str) -> dict[str, dict[str, Any]]:
        """Return all debtor records keyed by id."""
        with self._session() as session:
            rows = session.query(RemoteDebtor).filter(RemoteDebtor.user_id == user_id).all()
            return {row.id: self._with_transport_fields(row.data, row.synced_at) for row in rows}

    def fetch_transactions(self, user_id: str) -> dict[str, dict[str, Any]]:
        """Return all transaction records keyed by id."""
        with self._session() as session:
            rows = session.query(RemoteTransaction).filter(RemoteTransaction.user_id == user_id).all()
            return {row.id: self._with_transport_fields(row.data, row.synced_at) for row in rows}

    def put_settings(self, user_id: str, settings: dict[str, Any]) -> None:
        """Replace the remote settings object."""
        with self._session() as session:
            session.merge(RemoteSettings(user_id=user_id, data=dict(settings), synced_at=_server_now()))

    def fetch_settings(self, user_id: str) -> Optional[dict[str, Any]]:
        """Return the remote settings object, or None if never uploaded."""
        with self._session() as session:
            row = session.get(RemoteSettings, user_id)
            if row is None:
                return None
            return self._with_transport_fields(row.data, row.synced_at)

    def set_last_sync(self, user_id: str, epoch_ms: int) -> None:
        """Record the time of the last completed sync."""
        with self._session() as session:
            session.merge(RemoteSyncMarker(user_id=user_id, last_sync_at=epoch_ms))

    def get_last_sync(self, user_id: str) -> Optional[int]:
        """Return the time of the last completed sync, if any."""
        with self._session() as session:
            row = session.get(RemoteSyncMarker, user_id)
            return row.last_sync_at if row is not None else None

    def put_backup(self, user_id: str, backup_id: str, data: dict[str, Any]) -> None:
        """Store a full snapshot under backup_id."""
        with self._session() as session:
            session.merge(
                RemoteBackup(user_id=user_id, backup_id=backup_id, data=dict(data), created_at=_server_now())
            )

    def get_backup(self, user_id: str, backup_id: str) -> Optional[dict[str, Any]]:
        """Return a stored snapshot, or None if there is no such backup."""
        with self._session() as session:
            row = session.get(RemoteBackup, (user_id, backup_id))
            return dict(row.data) if row is not None else None

    def list_backups(self, user_id: str) -> list[dict[str, Any]]:
        """Return stored snapshots (each with its id and creation time), oldest first."""
        with self._session() as session:
            rows = (
                session.query(RemoteBackup)
                .filter(RemoteBackup.user_id == user_id)
                .order_by(RemoteBackup.created_at, RemoteBackup.backup_id)
                .all()
            )
            return [
                {**row.data, "id": row.backup_id, "createdAt": to_epoch_ms(row.created_at)}
                for row in rows
            ]


def create_remote_store(database_url: str) -> SQLAlchemyRemoteStore:
    """Create and initialize a remote store for a SQLAlchemy URL.

    Raises:
        RemoteStoreError: If the backend cannot be reached
    """
    remote = SQLAlchemyRemoteStore(database_url)
    remote.initialize_schema()
    return remote
