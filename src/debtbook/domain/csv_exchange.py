"""CSV export and import of transaction rows."""

import csv
import io
import logging
from datetime import datetime, time, UTC
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Optional

from debtbook.database.base import LocalStore
from debtbook.domain.entities import DEFAULT_CURRENCY, Transaction, TransactionType
from debtbook.domain.errors import ValidationError
from debtbook.domain.outbox import OutboxService
from debtbook.domain.records import amount_to_wire
from debtbook.domain.summary import balance_of
from debtbook.domain.transaction import TransactionService
from debtbook.utils.amount_parser import parse_amount
from debtbook.utils.date_parser import parse_date

logger = logging.getLogger(__name__)

ROW_HEADERS = ["Date", "Type", "Amount", "Currency", "Product", "Notes", "PaymentMethod"]


def _normalize_header(name: str) -> str:
    return name.strip().lower().replace(" ", "").replace("_", "")


class CSVService:
    """Service for flat CSV exports and CSV transaction imports."""

    def __init__(self, store: LocalStore, outbox: OutboxService):
        """Initialize CSV service.

        Args:
            store: Local store instance
            outbox: Outbox used by imported transactions
        """
        self.store = store
        self.transaction_service = TransactionService(store, outbox)
        self.debtor_service = self.transaction_service.debtor_service

    @staticmethod
    def _row(transaction: Transaction) -> list[str]:
        return [
            transaction.created_at.date().isoformat(),
            transaction.type.value,
            str(amount_to_wire(transaction.amount)),
            transaction.currency or DEFAULT_CURRENCY,
            transaction.product or "",
            transaction.notes or "",
            transaction.payment_method or "",
        ]

    def transactions_to_csv(self, transactions: Iterable[Transaction], include_debtor: bool = True) -> str:
        """Render transactions as CSV text, one row per transaction.

        Args:
            transactions: Transactions to render
            include_debtor: Prefix each row with the debtor's name (for whole-ledger exports)
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow((["Debtor"] if include_debtor else []) + ROW_HEADERS)

        names: dict[str, str] = {}
        for transaction in transactions:
            row = self._row(transaction)
            if include_debtor:
                if transaction.debtor_id not in names:
                    debtor = self.debtor_service.get_debtor(transaction.debtor_id)
                    names[transaction.debtor_id] = debtor.name if debtor else "Unknown"
                row.insert(0, names[transaction.debtor_id])
            writer.writerow(row)
        return buffer.getvalue()

    def debtor_statement_csv(self, debtor_id: str) -> str:
        """Render one debtor's details, balance and transactions as CSV text.

        Raises:
            NotFoundError: If the debtor does not exist
        """
        debtor = self.debtor_service.require_debtor(debtor_id)
        transactions = self.transaction_service.get_transactions_by_debtor(debtor_id)

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["Debtor", debtor.name])
        writer.writerow(["Phone", debtor.phone])
        writer.writerow(["Address", debtor.address or ""])
        writer.writerow(["Current Balance", str(amount_to_wire(balance_of(transactions)))])
        writer.writerow([])
        writer.writerow(ROW_HEADERS)
        for transaction in transactions:
            writer.writerow(self._row(transaction))
        return buffer.getvalue()

    def import_transactions_csv(self, csv_file_path: str, debtor_id: str) -> int:
        """Add every row of a transactions CSV file to a debtor.

        The file needs at least Date, Type and Amount columns. A type other
        than 'payment' is read as a debt. Rows whose amount is missing, not a
        number or not positive are skipped. All rows are added in one unit:
        if any row fails, none are kept.

        Returns:
            Number of transactions added

        Raises:
            FileNotFoundError: If the CSV file doesn't exist
            NotFoundError: If the debtor does not exist
            ValidationError: If required columns are missing
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

        self.debtor_service.require_debtor(debtor_id)

        with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
            rows = list(csv.reader(f))

        if not rows:
            return 0

        header = [_normalize_header(name) for name in rows[0]]
        missing = [name for name in ("date", "type", "amount") if name not in header]
        if missing:
            raise ValidationError(f"CSV file is missing required columns: {', '.join(missing)}")
        columns = {name: index for index, name in enumerate(header)}

        def cell(row: list[str], name: str) -> Optional[str]:
            index = columns.get(name)
            if index is None or index >= len(row):
                return None
            return row[index].strip() or None

        imported = 0
        with self.store.unit_of_work():
            for line_number, row in enumerate(rows[1:], start=2):
                if not any(value.strip() for value in row):
                    continue

                try:
                    amount = parse_amount(cell(row, "amount") or "")
                except ValueError:
                    logger.debug("Skipping CSV line %d: unreadable amount", line_number)
                    continue
                if amount <= Decimal("0"):
                    continue

                raw_date = cell(row, "date")
                created_at = None
                if raw_date:
                    try:
                        created_at = datetime.combine(parse_date(raw_date), time.min, tzinfo=UTC)
                    except ValueError as e:
                        raise ValidationError(f"CSV line {line_number}: {e}")

                raw_type = (cell(row, "type") or "").lower()
                self.transaction_service.add_transaction(
                    debtor_id=debtor_id,
                    type=TransactionType.PAYMENT if raw_type == "payment" else TransactionType.DEBT,
                    amount=amount,
                    currency=cell(row, "currency") or DEFAULT_CURRENCY,
                    product=cell(row, "product"),
                    notes=cell(row, "notes"),
                    payment_method=cell(row, "paymentmethod"),
                    created_at=created_at,
                )
                imported += 1

        logger.info("Imported %d transactions from %s", imported, csv_file_path)
        return imported
