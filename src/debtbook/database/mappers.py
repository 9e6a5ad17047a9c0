"""Mapper functions to convert between domain entities and SQLAlchemy models.

This layer isolates the conversion logic so the ORM schema can evolve
(through schema migrations) without touching the domain entities.
"""

from decimal import Decimal

from debtbook.domain import entities as domain
from debtbook.database.models import (
    Debtor as ORMDebtor,
    Transaction as ORMTransaction,
    Setting as ORMSetting,
    SyncQueueItem as ORMSyncQueueItem,
)


def debtor_to_domain(orm_debtor: ORMDebtor) -> domain.Debtor:
    """Convert SQLAlchemy Debtor model to domain Debtor entity."""
    return domain.Debtor(
        id=orm_debtor.id,
        name=orm_debtor.name,
        phone=orm_debtor.phone,
        address=orm_debtor.address,
        notes=orm_debtor.notes,
        created_at=orm_debtor.created_at,
        updated_at=orm_debtor.updated_at,
    )


def debtor_to_orm(debtor: domain.Debtor) -> ORMDebtor:
    """Convert domain Debtor entity to a detached SQLAlchemy model."""
    return ORMDebtor(
        id=debtor.id,
        name=debtor.name,
        phone=debtor.phone,
        address=debtor.address,
        notes=debtor.notes,
        created_at=debtor.created_at,
        updated_at=debtor.updated_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        debtor_id=orm_transaction.debtor_id,
        type=domain.TransactionType(orm_transaction.type),
        amount=Decimal(orm_transaction.amount),
        currency=orm_transaction.currency,
        product=orm_transaction.product,
        notes=orm_transaction.notes,
        payment_method=orm_transaction.payment_method,
        created_at=orm_transaction.created_at,
        updated_at=orm_transaction.updated_at,
    )


def transaction_to_orm(transaction: domain.Transaction) -> ORMTransaction:
    """Convert domain Transaction entity to a detached SQLAlchemy model."""
    return ORMTransaction(
        id=transaction.id,
        debtor_id=transaction.debtor_id,
        type=transaction.type.value,
        amount=transaction.amount,
        currency=transaction.currency,
        product=transaction.product,
        notes=transaction.notes,
        payment_method=transaction.payment_method,
        created_at=transaction.created_at,
        updated_at=transaction.updated_at,
    )


def setting_to_domain(orm_setting: ORMSetting) -> domain.Setting:
    """Convert SQLAlchemy Setting model to domain Setting entity."""
    return domain.Setting(key=orm_setting.key, value=orm_setting.value)


def setting_to_orm(setting: domain.Setting) -> ORMSetting:
    """Convert domain Setting entity to a detached SQLAlchemy model."""
    return ORMSetting(key=setting.key, value=setting.value)


def sync_queue_item_to_domain(orm_item: ORMSyncQueueItem) -> domain.SyncQueueItem:
    """Convert SQLAlchemy SyncQueueItem model to domain SyncQueueItem entity."""
    return domain.SyncQueueItem(
        id=orm_item.id,
        op_type=domain.SyncOperation(orm_item.op_type),
        payload=dict(orm_item.payload),
        queued_at=orm_item.queued_at,
        retries=orm_item.retries,
    )


def sync_queue_item_to_orm(item: domain.SyncQueueItem) -> ORMSyncQueueItem:
    """Convert domain SyncQueueItem entity to a detached SQLAlchemy model.

    The sequence column is assigned by the store on first insert.
    """
    return ORMSyncQueueItem(
        id=item.id,
        op_type=item.op_type.value,
        payload=item.payload,
        queued_at=item.queued_at,
        retries=item.retries,
    )
