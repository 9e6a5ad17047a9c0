"""Debtor domain service."""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Any, Optional

from debtbook.database.base import Collection, LocalStore
from debtbook.domain.entities import Debtor, SyncOperation
from debtbook.domain.errors import NotFoundError, ValidationError, debtor_not_found, unknown_fields
from debtbook.domain.outbox import OutboxService
from debtbook.domain.records import debtor_to_wire
from debtbook.domain.summary import SummaryService
from debtbook.utils.identifiers import generate_id, utc_now

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "phone", "address", "notes"})


class DebtorService:
    """Service for managing debtors."""

    def __init__(self, store: LocalStore, outbox: OutboxService):
        """Initialize debtor service.

        Args:
            store: Local store instance
            outbox: Outbox receiving a sync entry for every mutation
        """
        self.store = store
        self.outbox = outbox

    def add_debtor(
        self,
        name: str,
        phone: str,
        address: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Debtor:
        """Create a debtor.

        Name and phone are not checked here; rejecting blank values is up to
        the caller.

        Returns:
            The stored debtor
        """
        now = utc_now()
        debtor = Debtor(
            id=generate_id(),
            name=name,
            phone=phone,
            address=address,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        with self.store.unit_of_work():
            self.store.put(Collection.DEBTORS, debtor)
            self.outbox.enqueue(SyncOperation.CREATE_DEBTOR, debtor_to_wire(debtor))
        logger.debug("Added debtor %s", debtor.id)
        return debtor

    def get_debtor(self, debtor_id: str) -> Optional[Debtor]:
        """Get debtor by ID, or None if not found."""
        return self.store.get(Collection.DEBTORS, debtor_id)

    def require_debtor(self, debtor_id: str) -> Debtor:
        """Get debtor by ID.

        Raises:
            NotFoundError: If the debtor does not exist
        """
        debtor = self.get_debtor(debtor_id)
        if debtor is None:
            raise NotFoundError(debtor_not_found(debtor_id))
        return debtor

    def list_debtors(self) -> list[Debtor]:
        """List all debtors sorted by name."""
        return sorted(self.store.get_all(Collection.DEBTORS), key=lambda d: (d.name.lower(), d.id))

    def update_debtor(self, debtor_id: str, **changes: Any) -> Debtor:
        """Update debtor fields and refresh updated_at.

        Calling with no changes only refreshes updated_at; transaction
        mutations use this to mark the parent debtor as changed.

        Args:
            debtor_id: Debtor ID
            **changes: New values for name, phone, address or notes

        Returns:
            The updated debtor

        Raises:
            NotFoundError: If the debtor does not exist
            ValidationError: If an unknown field is given
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(unknown_fields("debtor", unknown))

        with self.store.unit_of_work():
            existing = self.require_debtor(debtor_id)
            updated = replace(existing, **changes, updated_at=max(utc_now(), existing.created_at))
            self.store.put(Collection.DEBTORS, updated)
            self.outbox.enqueue(SyncOperation.UPDATE_DEBTOR, debtor_to_wire(updated))
        return updated

    def delete_debtor(self, debtor_id: str) -> None:
        """Delete a debtor together with all of its transactions.

        Each transaction is removed through TransactionService so that every
        cascaded delete is queued for sync. The whole cascade commits or
        rolls back as one unit.

        Raises:
            NotFoundError: If the debtor does not exist
        """
        from debtbook.domain.transaction import TransactionService

        transaction_service = TransactionService(self.store, self.outbox, debtor_service=self)

        with self.store.unit_of_work():
            self.require_debtor(debtor_id)
            transactions = self.store.get_all_by_index(Collection.TRANSACTIONS, "debtor_id", debtor_id)
            for transaction in transactions:
                transaction_service.delete_transaction(transaction.id)
            self.store.delete(Collection.DEBTORS, debtor_id)
            self.outbox.enqueue(SyncOperation.DELETE_DEBTOR, {"id": debtor_id})
        logger.info("Deleted debtor %s and %d transactions", debtor_id, len(transactions))

    def search_debtors(self, query: str) -> list[Debtor]:
        """Find debtors whose name, phone, address or notes contain query (case-insensitive)."""
        needle = query.lower()
        results = []
        for debtor in self.list_debtors():
            haystacks = (debtor.name, debtor.phone, debtor.address, debtor.notes)
            if any(text and needle in text.lower() for text in haystacks):
                results.append(debtor)
        return results

    def get_debtor_balance(self, debtor_id: str) -> Decimal:
        """Return what the debtor currently owes (negative if overpaid)."""
        return SummaryService(self.store).get_debtor_balance(debtor_id)
