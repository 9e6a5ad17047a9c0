"""Sync outbox domain service.

The outbox is an append-only log of local mutations waiting to be uploaded.
Domain services append to it; only the sync engine reads and drains it.
"""

import logging
from dataclasses import replace
from typing import Any, Optional

from debtbook.database.base import Collection, LocalStore
from debtbook.domain.entities import MAX_SYNC_RETRIES, SyncOperation, SyncQueueItem
from debtbook.domain.settings import SettingsService
from debtbook.utils.identifiers import generate_id, utc_now

logger = logging.getLogger(__name__)


class OutboxService:
    """Service for the queue of pending sync mutations."""

    def __init__(self, store: LocalStore, settings: SettingsService):
        """Initialize outbox service.

        Args:
            store: Local store instance
            settings: Settings service used to check whether sync is enabled
        """
        self.store = store
        self.settings = settings

    def enqueue(self, op_type: SyncOperation, payload: dict[str, Any]) -> Optional[SyncQueueItem]:
        """Append a mutation to the outbox.

        Does nothing when sync is disabled.

        Returns:
            The queued item, or None if sync is disabled
        """
        if not self.settings.is_sync_enabled():
            return None

        item = SyncQueueItem(
            id=generate_id(),
            op_type=op_type,
            payload=payload,
            queued_at=utc_now(),
            retries=0,
        )
        self.store.put(Collection.SYNC_QUEUE, item)
        return item

    def pending(self) -> list[SyncQueueItem]:
        """Return queued items in enqueue order."""
        return self.store.get_all(Collection.SYNC_QUEUE)

    def get(self, item_id: str) -> Optional[SyncQueueItem]:
        """Get a queued item by ID."""
        return self.store.get(Collection.SYNC_QUEUE, item_id)

    def remove(self, item_id: str) -> None:
        """Remove an item after a successful upload."""
        self.store.delete(Collection.SYNC_QUEUE, item_id)

    def record_failure(self, item: SyncQueueItem) -> bool:
        """Count a failed upload attempt.

        Returns:
            True if the item reached the retry ceiling and was dropped
        """
        retries = item.retries + 1
        if retries >= MAX_SYNC_RETRIES:
            logger.warning(
                "Dropping %s %s after %d failed uploads",
                item.op_type.value,
                item.payload.get("id"),
                retries,
            )
            self.store.delete(Collection.SYNC_QUEUE, item.id)
            return True

        self.store.put(Collection.SYNC_QUEUE, replace(item, retries=retries))
        return False

    def clear(self) -> None:
        """Remove every queued item."""
        self.store.clear(Collection.SYNC_QUEUE)

    def length(self) -> int:
        """Return the number of queued items."""
        return self.store.count(Collection.SYNC_QUEUE)
