"""SQLAlchemy models for the local debtbook store."""

from datetime import datetime, UTC
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Engine,
    Index,
    Integer,
    String,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """DateTime stored as naive UTC and returned timezone-aware.

    SQLite has no timezone support, so values are normalized to UTC on the way
    in and tagged with UTC on the way out.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value
        return value.astimezone(UTC).replace(tzinfo=None)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class ExactDecimal(TypeDecorator):
    """Decimal stored as text, keeping every digit.

    Values are written in plain normalized notation ("2500.5", "100000") so
    equal amounts compare equal in index lookups.
    """

    impl = String
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> Optional[str]:
        if value is None:
            return None
        return format(Decimal(str(value)).normalize(), "f")

    def process_result_value(self, value: Any, dialect) -> Optional[Decimal]:
        if value is None:
            return None
        return Decimal(str(value))


class SchemaMeta(Base):
    """Single-row table recording the schema version of the store."""

    __tablename__ = "schema_meta"

    id = Column(Integer, primary_key=True)
    version = Column(Integer, nullable=False)
    migrated_at = Column(UTCDateTime, default=lambda: datetime.now(UTC), nullable=False)


class Debtor(Base):
    """Debtor model."""

    __tablename__ = "debtors"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=False, default="")
    address = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)

    __table_args__ = (
        Index("ix_debtors_name", "name"),
        Index("ix_debtors_phone", "phone"),
        Index("ix_debtors_created_at", "created_at"),
        Index("ix_debtors_updated_at", "updated_at"),
    )


class Transaction(Base):
    """Transaction model.

    debtor_id is deliberately not a database foreign key: the domain layer
    owns the cascade so that every cascaded delete produces an outbox entry.
    """

    __tablename__ = "transactions"

    id = Column(String, primary_key=True)
    debtor_id = Column(String, nullable=False)
    type = Column(String, nullable=False)
    amount = Column(ExactDecimal, nullable=False)
    currency = Column(String, nullable=False)
    product = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    payment_method = Column(String, nullable=True)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)

    __table_args__ = (
        Index("ix_transactions_debtor_id", "debtor_id"),
        Index("ix_transactions_type", "type"),
        Index("ix_transactions_created_at", "created_at"),
        Index("ix_transactions_amount", "amount"),
    )


class Setting(Base):
    """Key/value setting model."""

    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=True)


class SyncQueueItem(Base):
    """Outbox entry model."""

    __tablename__ = "sync_queue"

    id = Column(String, primary_key=True)
    # Tie-breaker for entries queued within the same clock tick
    sequence = Column(Integer, nullable=False, default=0)
    op_type = Column(String, nullable=False)
    payload = Column(JSON, nullable=False)
    queued_at = Column(UTCDateTime, nullable=False)
    retries = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_sync_queue_queued_at", "queued_at"),
        Index("ix_sync_queue_op_type", "op_type"),
    )


def create_store_engine(database_url: str) -> Engine:
    """Create an engine for the local store.

    File-backed SQLite connections may be used from the debounced auto-sync
    timer thread. In-memory databases keep a single connection alive and are
    single-threaded.
    """
    if database_url.startswith("sqlite"):
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                database_url,
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(database_url, echo=False, connect_args={"check_same_thread": False})
    return create_engine(database_url, echo=False)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory bound to an engine."""
    return sessionmaker(bind=engine, expire_on_commit=False)
