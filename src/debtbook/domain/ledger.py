"""Wiring of the domain services around one local store."""

from debtbook.database.base import LocalStore
from debtbook.domain.csv_exchange import CSVService
from debtbook.domain.data_exchange import DataExchangeService
from debtbook.domain.debtor import DebtorService
from debtbook.domain.outbox import OutboxService
from debtbook.domain.settings import SettingsService
from debtbook.domain.summary import SummaryService
from debtbook.domain.transaction import TransactionService


class Ledger:
    """Domain services sharing one store and one outbox.

    Attributes:
        store: Local store instance
        settings: Settings service
        outbox: Sync outbox
        debtors: Debtor service
        transactions: Transaction service (touches parents through `debtors`)
        summary: Balances and statistics
        exchange: JSON export/import
        csv: CSV export/import
    """

    def __init__(self, store: LocalStore):
        self.store = store
        self.settings = SettingsService(store)
        self.outbox = OutboxService(store, self.settings)
        self.debtors = DebtorService(store, self.outbox)
        self.transactions = TransactionService(store, self.outbox, debtor_service=self.debtors)
        self.summary = SummaryService(store)
        self.exchange = DataExchangeService(store, self.outbox, self.settings)
        self.csv = CSVService(store, self.outbox)
