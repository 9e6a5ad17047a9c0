"""Domain layer for debtbook."""

from debtbook.domain.debtor import DebtorService
from debtbook.domain.transaction import TransactionService
from debtbook.domain.summary import SummaryService
from debtbook.domain.settings import SettingsService
from debtbook.domain.outbox import OutboxService
from debtbook.domain.data_exchange import DataExchangeService
from debtbook.domain.csv_exchange import CSVService
from debtbook.domain.ledger import Ledger

__all__ = [
    "DebtorService",
    "TransactionService",
    "SummaryService",
    "SettingsService",
    "OutboxService",
    "DataExchangeService",
    "CSVService",
    "Ledger",
]
