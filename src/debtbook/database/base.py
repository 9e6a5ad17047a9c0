"""Abstract local store interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from enum import Enum
from typing import Any, Optional


class Collection(str, Enum):
    """Record collections held by the local store."""

    DEBTORS = "debtors"
    TRANSACTIONS = "transactions"
    SETTINGS = "settings"
    SYNC_QUEUE = "sync_queue"


# Secondary indexes available to get_all_by_index, per collection
INDEXES: dict[Collection, tuple[str, ...]] = {
    Collection.DEBTORS: ("name", "phone", "created_at", "updated_at"),
    Collection.TRANSACTIONS: ("debtor_id", "type", "created_at", "amount"),
    Collection.SETTINGS: (),
    Collection.SYNC_QUEUE: ("queued_at", "op_type"),
}


class LocalStore(ABC):
    """Abstract embedded store for debtors, transactions, settings and the outbox.

    Records are domain entities (see debtbook.domain.entities). Every method
    runs as one atomic commit against one collection, unless it is called
    inside unit_of_work(), in which case the whole block commits together.
    """

    @abstractmethod
    def connect(self) -> None:
        """Open the store."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Release any open connections."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Create or migrate the schema. Safe to call any number of times.

        Raises:
            StorageFatalError: If the store cannot be opened or migrated
        """
        pass

    @abstractmethod
    def schema_version(self) -> Optional[int]:
        """Return the stored schema version, or None before initialization."""
        pass

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[None]:
        """Group several operations into a single commit.

        Nested calls join the outer unit. An exception rolls everything back.
        """
        pass

    @abstractmethod
    def put(self, collection: Collection, record: Any) -> None:
        """Insert or replace a record."""
        pass

    @abstractmethod
    def get(self, collection: Collection, key: str) -> Optional[Any]:
        """Get a record by key. Returns None if it does not exist."""
        pass

    @abstractmethod
    def get_all(self, collection: Collection) -> list[Any]:
        """Get all records in a collection."""
        pass

    @abstractmethod
    def delete(self, collection: Collection, key: str) -> None:
        """Delete a record by key. Deleting a missing key is a no-op."""
        pass

    @abstractmethod
    def get_all_by_index(self, collection: Collection, index_name: str, value: Any) -> list[Any]:
        """Get all records whose indexed field equals value.

        Raises:
            ValueError: If the collection has no such index
        """
        pass

    @abstractmethod
    def clear(self, collection: Collection) -> None:
        """Delete every record in a collection."""
        pass

    @abstractmethod
    def count(self, collection: Collection) -> int:
        """Count records in a collection."""
        pass
