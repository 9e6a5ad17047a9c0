"""Full-ledger JSON export and import."""

import json
import logging
import math
from dataclasses import replace
from decimal import Decimal
from typing import Any, Optional

from debtbook.database.base import Collection, LocalStore
from debtbook.domain.entities import ImportSummary, SyncOperation
from debtbook.domain.errors import ValidationError
from debtbook.domain.outbox import OutboxService
from debtbook.domain.records import (
    amount_to_wire,
    debtor_from_wire,
    debtor_to_wire,
    transaction_from_wire,
    transaction_to_wire,
)
from debtbook.domain.settings import LAST_SYNC_AT, REMOTE_USER_ID, SettingsService
from debtbook.domain.summary import balance_of
from debtbook.domain.transaction import TransactionService
from debtbook.utils.identifiers import generate_id, utc_now

logger = logging.getLogger(__name__)

EXPORT_VERSION = 1

# Settings owned by the sync engine, not carried over when merging someone else's export
_MACHINE_SETTINGS = frozenset({LAST_SYNC_AT, REMOTE_USER_ID})


class DataExchangeService:
    """Service for snapshot export and import of the whole ledger."""

    def __init__(self, store: LocalStore, outbox: OutboxService, settings: SettingsService):
        """Initialize data exchange service.

        Args:
            store: Local store instance
            outbox: Outbox receiving entries for merged records
            settings: Settings service
        """
        self.store = store
        self.outbox = outbox
        self.settings = settings

    def export_data(self) -> dict[str, Any]:
        """Build a full snapshot of debtors, transactions and settings.

        Returns:
            Dict with debtors, transactions, settings, exportedAt and version
        """
        return {
            "debtors": [debtor_to_wire(d) for d in self.store.get_all(Collection.DEBTORS)],
            "transactions": [
                transaction_to_wire(t) for t in self.store.get_all(Collection.TRANSACTIONS)
            ],
            "settings": self.settings.get_all(),
            "exportedAt": utc_now().isoformat(),
            "version": EXPORT_VERSION,
        }

    def export_debtor_data(self, debtor_id: str) -> dict[str, Any]:
        """Build a snapshot of one debtor, its transactions and its balance.

        Raises:
            NotFoundError: If the debtor does not exist
        """
        transaction_service = TransactionService(self.store, self.outbox)
        debtor = transaction_service.debtor_service.require_debtor(debtor_id)
        transactions = transaction_service.get_transactions_by_debtor(debtor_id)
        return {
            "debtor": debtor_to_wire(debtor),
            "transactions": [transaction_to_wire(t) for t in transactions],
            "balance": amount_to_wire(balance_of(transactions)),
            "exportedAt": utc_now().isoformat(),
        }

    def validate_import_data(self, data: Any, merge: bool = False) -> None:
        """Check an import payload before anything is written.

        Raises:
            ValidationError: Describing the first problem found
        """
        if not isinstance(data, dict):
            raise ValidationError("Invalid import data: expected a JSON object")

        if not any(data.get(key) for key in ("debtors", "transactions", "settings")):
            raise ValidationError("No valid data found: expected debtors, transactions or settings")

        debtors = data.get("debtors") or []
        transactions = data.get("transactions") or []
        settings = data.get("settings") or {}

        if not isinstance(debtors, list) or not isinstance(transactions, list):
            raise ValidationError("Invalid import data: debtors and transactions must be lists")
        if not isinstance(settings, dict):
            raise ValidationError("Invalid import data: settings must be an object")

        debtor_ids = set()
        for debtor in debtors:
            if not isinstance(debtor, dict) or not debtor.get("id") or not debtor.get("name"):
                raise ValidationError("Invalid debtor data: missing id or name")
            debtor_ids.add(str(debtor["id"]))

        if merge:
            debtor_ids |= {d.id for d in self.store.get_all(Collection.DEBTORS)}

        for transaction in transactions:
            if not isinstance(transaction, dict):
                raise ValidationError("Invalid transaction data: expected an object")
            if not transaction.get("id") or not transaction.get("debtorId") or not transaction.get("type"):
                raise ValidationError("Invalid transaction data: missing required fields")
            amount = transaction.get("amount")
            if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
                raise ValidationError("Invalid transaction data: amount must be a number")
            if not math.isfinite(amount):
                raise ValidationError("Invalid transaction data: amount must be a finite number")
            if transaction["type"] not in ("debt", "payment"):
                raise ValidationError(f"Invalid transaction type '{transaction['type']}'")
            if str(transaction["debtorId"]) not in debtor_ids:
                raise ValidationError(
                    f"Invalid transaction data: transaction {transaction['id']} "
                    f"references unknown debtor {transaction['debtorId']}"
                )

        # Timestamps must parse before the store is touched
        try:
            for debtor in debtors:
                debtor_from_wire(debtor)
            for transaction in transactions:
                transaction_from_wire(transaction)
        except ValueError as e:
            raise ValidationError(f"Invalid import data: {e}")

    def import_data(self, data: Any, merge: bool = False) -> ImportSummary:
        """Load a snapshot into the store.

        Without merge, all four collections are wiped and the snapshot is
        loaded verbatim, ids and timestamps included. With merge, every
        debtor and transaction gets a fresh id, transactions are re-pointed at
        their debtor's new id, and the new records are queued for sync.

        The payload is validated first and rejected as a whole; nothing is
        written unless every record is valid.

        Returns:
            ImportSummary with the number of records written

        Raises:
            ValidationError: If the payload is invalid
        """
        self.validate_import_data(data, merge=merge)

        debtors = [debtor_from_wire(d) for d in data.get("debtors") or []]
        transactions = [transaction_from_wire(t) for t in data.get("transactions") or []]
        settings: dict[str, Any] = data.get("settings") or {}

        with self.store.unit_of_work():
            if not merge:
                for collection in Collection:
                    self.store.clear(collection)
            else:
                settings = {k: v for k, v in settings.items() if k not in _MACHINE_SETTINGS}

            for key, value in settings.items():
                self.settings.set(key, value)

            debtor_id_map: dict[str, str] = {}
            for debtor in debtors:
                if merge:
                    new_debtor = replace(debtor, id=generate_id(), updated_at=max(utc_now(), debtor.created_at))
                    debtor_id_map[debtor.id] = new_debtor.id
                    self.store.put(Collection.DEBTORS, new_debtor)
                    self.outbox.enqueue(SyncOperation.CREATE_DEBTOR, debtor_to_wire(new_debtor))
                else:
                    self.store.put(Collection.DEBTORS, debtor)

            for transaction in transactions:
                if merge:
                    new_transaction = replace(
                        transaction,
                        id=generate_id(),
                        debtor_id=debtor_id_map.get(transaction.debtor_id, transaction.debtor_id),
                        updated_at=max(utc_now(), transaction.created_at),
                    )
                    self.store.put(Collection.TRANSACTIONS, new_transaction)
                    self.outbox.enqueue(
                        SyncOperation.CREATE_TRANSACTION, transaction_to_wire(new_transaction)
                    )
                else:
                    self.store.put(Collection.TRANSACTIONS, transaction)

        logger.info(
            "Imported %d debtors, %d transactions and %d settings (%s)",
            len(debtors),
            len(transactions),
            len(settings),
            "merge" if merge else "replace",
        )
        return ImportSummary(debtors=len(debtors), transactions=len(transactions), settings=len(settings))

    @staticmethod
    def dumps(data: dict[str, Any]) -> str:
        """Serialize a snapshot to JSON text."""
        return json.dumps(data, ensure_ascii=False, indent=2)

    @staticmethod
    def loads(text: str) -> Any:
        """Parse JSON text into a snapshot.

        Raises:
            ValidationError: If the text is not valid JSON
        """
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON: {e}")

    def read_file(self, path: str) -> Any:
        """Read and parse a JSON export file."""
        with open(path, "r", encoding="utf-8") as f:
            return self.loads(f.read())

    def write_file(self, path: str, data: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Write a snapshot (the current ledger by default) to a JSON file."""
        if data is None:
            data = self.export_data()
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.dumps(data))
        return data
