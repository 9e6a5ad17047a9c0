"""Balance and ledger-wide aggregate service."""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable

from debtbook.database.base import Collection, LocalStore
from debtbook.domain.entities import DebtorStats, Transaction, TransactionType


def signed_amount(transaction: Transaction) -> Decimal:
    """Return the amount as it affects the balance: debts add, payments subtract."""
    if transaction.type is TransactionType.DEBT:
        return transaction.amount
    return -transaction.amount


def balance_of(transactions: Iterable[Transaction]) -> Decimal:
    """Sum of debts minus sum of payments."""
    return sum((signed_amount(txn) for txn in transactions), Decimal("0"))


class SummaryService:
    """Service for derived balances and statistics.

    Nothing here is cached: every figure is recomputed from the stored
    transactions on each call.
    """

    def __init__(self, store: LocalStore):
        """Initialize summary service.

        Args:
            store: Local store instance
        """
        self.store = store

    def get_debtor_balance(self, debtor_id: str) -> Decimal:
        """Return a debtor's balance.

        Positive means the debtor owes money, negative means overpaid and
        zero means settled. A debtor with no transactions has balance zero.
        """
        return balance_of(self.store.get_all_by_index(Collection.TRANSACTIONS, "debtor_id", debtor_id))

    def get_debtor_stats(self) -> DebtorStats:
        """Compute ledger totals in a single pass over all transactions.

        total_balance only sums debtors with a positive balance, so an
        overpaid debtor does not offset what others owe.
        """
        total_debts = Decimal("0")
        total_payments = Decimal("0")
        debtor_balances: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))

        for txn in self.store.get_all(Collection.TRANSACTIONS):
            if txn.type is TransactionType.DEBT:
                total_debts += txn.amount
            else:
                total_payments += txn.amount
            debtor_balances[txn.debtor_id] += signed_amount(txn)

        total_balance = sum(
            (balance for balance in debtor_balances.values() if balance > 0), Decimal("0")
        )

        return DebtorStats(
            total_debtors=self.store.count(Collection.DEBTORS),
            total_debts=total_debts,
            total_payments=total_payments,
            total_balance=total_balance,
            debtor_balances=dict(debtor_balances),
        )
