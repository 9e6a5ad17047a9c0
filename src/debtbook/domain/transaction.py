"""Transaction domain service."""

import logging
from dataclasses import replace
from datetime import datetime, UTC
from decimal import Decimal
from typing import Any, Optional

from debtbook.database.base import Collection, LocalStore
from debtbook.domain.debtor import DebtorService
from debtbook.domain.entities import DEFAULT_CURRENCY, SyncOperation, Transaction, TransactionType
from debtbook.domain.errors import NotFoundError, ValidationError, transaction_not_found, unknown_fields
from debtbook.domain.outbox import OutboxService
from debtbook.domain.records import amount_to_wire, transaction_to_wire
from debtbook.domain.validation import coerce_transaction_type
from debtbook.utils.identifiers import generate_id, utc_now

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"type", "amount", "currency", "product", "notes", "payment_method"})


def _as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


class TransactionService:
    """Service for managing debt and payment transactions.

    Every mutation also refreshes the parent debtor's updated_at, which is
    what marks the debtor as recently active and wins sync conflicts.
    """

    def __init__(
        self,
        store: LocalStore,
        outbox: OutboxService,
        debtor_service: Optional[DebtorService] = None,
    ):
        """Initialize transaction service.

        Args:
            store: Local store instance
            outbox: Outbox receiving a sync entry for every mutation
            debtor_service: Debtor service used to touch parent debtors
        """
        self.store = store
        self.outbox = outbox
        self.debtor_service = debtor_service or DebtorService(store, outbox)

    def add_transaction(
        self,
        debtor_id: str,
        type: TransactionType | str,
        amount: Decimal,
        currency: str = DEFAULT_CURRENCY,
        product: Optional[str] = None,
        notes: Optional[str] = None,
        payment_method: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Transaction:
        """Record a debt or payment against a debtor.

        The amount is expected to be positive; callers reject other values
        with validate_amount() before calling.

        Args:
            debtor_id: Debtor ID
            type: 'debt' or 'payment'
            amount: Positive amount
            currency: Currency code
            product: Optional product description
            notes: Optional notes
            payment_method: Optional payment method (cash, card, ...)
            created_at: Optional backdated creation time, defaults to now

        Returns:
            The stored transaction

        Raises:
            NotFoundError: If the debtor does not exist
            ValidationError: If type is not debt/payment
        """
        txn_type = coerce_transaction_type(type)
        now = utc_now()
        created = _as_utc(created_at or now)
        transaction = Transaction(
            id=generate_id(),
            debtor_id=debtor_id,
            type=txn_type,
            amount=Decimal(str(amount)),
            currency=currency,
            product=product,
            notes=notes,
            payment_method=payment_method,
            created_at=created,
            updated_at=max(now, created),
        )

        with self.store.unit_of_work():
            self.debtor_service.require_debtor(debtor_id)
            self.store.put(Collection.TRANSACTIONS, transaction)
            self.debtor_service.update_debtor(debtor_id)
            self.outbox.enqueue(SyncOperation.CREATE_TRANSACTION, transaction_to_wire(transaction))
        logger.debug("Added %s %s for debtor %s", txn_type.value, transaction.id, debtor_id)
        return transaction

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID, or None if not found."""
        return self.store.get(Collection.TRANSACTIONS, transaction_id)

    def require_transaction(self, transaction_id: str) -> Transaction:
        """Get transaction by ID.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        transaction = self.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return transaction

    def list_transactions(self) -> list[Transaction]:
        """List all transactions, newest first."""
        return sorted(
            self.store.get_all(Collection.TRANSACTIONS),
            key=lambda t: (t.created_at, t.id),
            reverse=True,
        )

    def get_transactions_by_debtor(self, debtor_id: str) -> list[Transaction]:
        """List a debtor's transactions, oldest first."""
        return self.store.get_all_by_index(Collection.TRANSACTIONS, "debtor_id", debtor_id)

    def update_transaction(self, transaction_id: str, **changes: Any) -> Transaction:
        """Update transaction fields and refresh updated_at on it and its debtor.

        Args:
            transaction_id: Transaction ID
            **changes: New values for type, amount, currency, product, notes or payment_method

        Returns:
            The updated transaction

        Raises:
            NotFoundError: If the transaction does not exist
            ValidationError: If an unknown field or an invalid type is given
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(unknown_fields("transaction", unknown))
        if "type" in changes:
            changes["type"] = coerce_transaction_type(changes["type"])
        if "amount" in changes:
            changes["amount"] = Decimal(str(changes["amount"]))

        with self.store.unit_of_work():
            existing = self.require_transaction(transaction_id)
            updated = replace(existing, **changes, updated_at=max(utc_now(), existing.created_at))
            self.store.put(Collection.TRANSACTIONS, updated)
            self.debtor_service.update_debtor(existing.debtor_id)
            self.outbox.enqueue(SyncOperation.UPDATE_TRANSACTION, transaction_to_wire(updated))
        return updated

    def delete_transaction(self, transaction_id: str) -> None:
        """Delete a transaction and refresh its debtor's updated_at.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        with self.store.unit_of_work():
            existing = self.require_transaction(transaction_id)
            self.store.delete(Collection.TRANSACTIONS, transaction_id)
            self.debtor_service.update_debtor(existing.debtor_id)
            self.outbox.enqueue(SyncOperation.DELETE_TRANSACTION, {"id": transaction_id})

    def get_transactions_in_date_range(self, start: datetime, end: datetime) -> list[Transaction]:
        """List transactions created between start and end, both inclusive.

        Naive bounds are taken to be UTC.
        """
        start, end = _as_utc(start), _as_utc(end)
        return [
            txn
            for txn in self.store.get_all(Collection.TRANSACTIONS)
            if start <= txn.created_at <= end
        ]

    def search_transactions(self, query: str) -> list[Transaction]:
        """Find transactions by product or notes (case-insensitive) or by amount digits."""
        needle = query.lower()
        results = []
        for txn in self.list_transactions():
            if txn.product and needle in txn.product.lower():
                results.append(txn)
            elif txn.notes and needle in txn.notes.lower():
                results.append(txn)
            elif query in str(amount_to_wire(txn.amount)):
                results.append(txn)
        return results
