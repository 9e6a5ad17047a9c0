"""Domain model entities for debtbook.

These are pure data classes representing ledger concepts, independent of
the database schema and of the JSON wire shape used for exports and sync.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

DEFAULT_CURRENCY = "IQD"
MAX_SYNC_RETRIES = 3


class TransactionType(str, Enum):
    """Direction of a ledger transaction."""

    DEBT = "debt"
    PAYMENT = "payment"


class SyncOperation(str, Enum):
    """Mutation kinds recorded in the sync outbox."""

    CREATE_DEBTOR = "CREATE_DEBTOR"
    UPDATE_DEBTOR = "UPDATE_DEBTOR"
    DELETE_DEBTOR = "DELETE_DEBTOR"
    CREATE_TRANSACTION = "CREATE_TRANSACTION"
    UPDATE_TRANSACTION = "UPDATE_TRANSACTION"
    DELETE_TRANSACTION = "DELETE_TRANSACTION"


class SyncState(str, Enum):
    """Phase of a sync cycle."""

    IDLE = "idle"
    UPLOADING = "uploading"
    DOWNLOADING = "downloading"
    RECONCILING = "reconciling"


@dataclass(frozen=True)
class Debtor:
    """Debtor domain entity."""

    id: str
    name: str
    phone: str
    address: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Debt or payment recorded against a debtor."""

    id: str
    debtor_id: str
    type: TransactionType
    amount: Decimal
    currency: str
    product: Optional[str]
    notes: Optional[str]
    payment_method: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Setting:
    """Single key/value setting."""

    key: str
    value: Any


@dataclass(frozen=True)
class SyncQueueItem:
    """Pending mutation waiting to be uploaded."""

    id: str
    op_type: SyncOperation
    payload: dict[str, Any]
    queued_at: datetime
    retries: int = 0


@dataclass(frozen=True)
class DebtorStats:
    """Ledger-wide totals."""

    total_debtors: int
    total_debts: Decimal
    total_payments: Decimal
    total_balance: Decimal
    debtor_balances: dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class ImportSummary:
    """Counts of records written by an import."""

    debtors: int
    transactions: int
    settings: int


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one sync cycle."""

    success: bool
    message: str
    uploaded: int = 0
    failed: int = 0
    dropped: int = 0
    downloaded: int = 0


@dataclass(frozen=True)
class SyncStatus:
    """Sync health as shown to the user."""

    last_sync_at: Optional[int]
    sync_enabled: bool
    is_online: bool
    sync_in_progress: bool
    queue_length: int
    is_initialized: bool
    state: SyncState = SyncState.IDLE
