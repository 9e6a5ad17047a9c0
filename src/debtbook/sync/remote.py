"""Abstract remote store interface.

The remote keeps one namespace per user. Inside a namespace it holds
debtors and transactions keyed by id (same wire shape as local exports,
plus a server-assigned `syncedAt`), a settings object, the last sync time
and timestamped full backups.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class RemoteStore(ABC):
    """Abstract remote store.

    Every method raises RemoteStoreError when the backend cannot be reached
    or rejects the operation.
    """

    @abstractmethod
    def initialize_schema(self) -> None:
        """Prepare the backend (create tables, buckets, ...)."""
        pass

    @abstractmethod
    def put_debtor(self, user_id: str, record: dict[str, Any]) -> None:
        """Create or fully overwrite a debtor record."""
        pass

    @abstractmethod
    def delete_debtor(self, user_id: str, debtor_id: str) -> None:
        """Delete a debtor and every remote transaction that references it."""
        pass

    @abstractmethod
    def put_transaction(self, user_id: str, record: dict[str, Any]) -> None:
        """Create or fully overwrite a transaction record."""
        pass

    @abstractmethod
    def delete_transaction(self, user_id: str, transaction_id: str) -> None:
        """Delete a transaction record."""
        pass

    @abstractmethod
    def fetch_debtors(self, user_id: str) -> dict[str, dict[str, Any]]:
        """Return all debtor records keyed by id, including transport fields."""
        pass

    @abstractmethod
    def fetch_transactions(self, user_id: str) -> dict[str, dict[str, Any]]:
        """Return all transaction records keyed by id, including transport fields."""
        pass

    @abstractmethod
    def put_settings(self, user_id: str, settings: dict[str, Any]) -> None:
        """Replace the remote settings object."""
        pass

    @abstractmethod
    def fetch_settings(self, user_id: str) -> Optional[dict[str, Any]]:
        """Return the remote settings object, or None if never uploaded."""
        pass

    @abstractmethod
    def set_last_sync(self, user_id: str, epoch_ms: int) -> None:
        """Record the time of the last completed sync."""
        pass

    @abstractmethod
    def get_last_sync(self, user_id: str) -> Optional[int]:
        """Return the time of the last completed sync, if any."""
        pass

    @abstractmethod
    def put_backup(self, user_id: str, backup_id: str, data: dict[str, Any]) -> None:
        """Store a full snapshot under backup_id."""
        pass

    @abstractmethod
    def get_backup(self, user_id: str, backup_id: str) -> Optional[dict[str, Any]]:
        """Return a stored snapshot, or None if there is no such backup."""
        pass

    @abstractmethod
    def list_backups(self, user_id: str) -> list[dict[str, Any]]:
        """Return stored snapshots (each with its id), oldest first."""
        pass
