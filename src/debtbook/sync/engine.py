"""Remote sync engine.

One sync cycle uploads the outbox, downloads the remote collections and
merges them into the local store with last-writer-wins on updated_at:

    IDLE -> UPLOADING -> DOWNLOADING -> RECONCILING -> IDLE

Only one cycle runs at a time. A completed cycle empties the outbox,
including uploads that failed. When the download aborts the cycle the
outbox is kept, so failed uploads are retried on the next cycle and
dropped after MAX_SYNC_RETRIES attempts.
"""

import logging
import threading
from typing import Any, Callable, Optional, Protocol

from debtbook.database.base import Collection
from debtbook.domain.entities import SyncOperation, SyncQueueItem, SyncResult, SyncState, SyncStatus
from debtbook.domain.errors import (
    NotFoundError,
    RemoteStoreError,
    SyncUnavailableError,
    backup_not_found,
)
from debtbook.domain.ledger import Ledger
from debtbook.domain.records import debtor_from_wire, strip_transport_fields, transaction_from_wire
from debtbook.domain.settings import LAST_SYNC_AT, REMOTE_USER_ID, SYNC_ENABLED, SYNC_ON_STARTUP
from debtbook.sync.remote import RemoteStore
from debtbook.utils.identifiers import generate_id, to_epoch_ms, utc_now

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 1.0

# Settings written by the engine itself, never copied between devices
ENGINE_SETTINGS = frozenset({LAST_SYNC_AT, REMOTE_USER_ID})

SYNC_NOT_AVAILABLE = "Sync not available"
SYNC_IN_PROGRESS = "Sync already in progress"


class ScheduledCall(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], ScheduledCall]


def timer_scheduler(delay: float, callback: Callable[[], None]) -> ScheduledCall:
    """Run callback once after delay seconds on a daemon timer thread."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class SyncEngine:
    """Synchronizes a ledger with a remote store.

    Attributes:
        ledger: Domain services around the local store
        remote: Remote store holding this user's namespace
        debounce_seconds: Delay between an auto_sync() request and the cycle it triggers
    """

    def __init__(
        self,
        ledger: Ledger,
        remote: RemoteStore,
        *,
        online: bool = True,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        scheduler: Optional[Scheduler] = None,
    ):
        """Initialize sync engine.

        Args:
            ledger: Ledger to synchronize
            remote: Remote store
            online: Initial connectivity
            debounce_seconds: Delay used by auto_sync()
            scheduler: Callable(delay, callback) returning a cancellable handle;
                defaults to a daemon threading.Timer
        """
        self.ledger = ledger
        self.remote = remote
        self.debounce_seconds = debounce_seconds
        self._scheduler = scheduler or timer_scheduler
        self._online = online
        self._initialized = False
        self._user_id: Optional[str] = None
        self._state = SyncState.IDLE
        self._guard = threading.Lock()
        self._scheduled: Optional[ScheduledCall] = None

    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def user_id(self) -> Optional[str]:
        """Remote namespace of this installation, once initialized."""
        return self._user_id

    def initialize(self) -> bool:
        """Resolve the remote user id and prepare the remote store.

        A new installation gets an anonymous id which is kept in settings.
        When syncOnStartup is set and the engine is online, an auto-sync is
        scheduled.

        Returns:
            True on success, False if the remote store could not be reached
        """
        settings = self.ledger.settings
        user_id = settings.get(REMOTE_USER_ID)
        if not user_id:
            user_id = f"anon_{generate_id()}"
            settings.set(REMOTE_USER_ID, user_id)

        try:
            self.remote.initialize_schema()
        except RemoteStoreError as e:
            logger.error("Sync initialization failed: %s", e)
            return False

        self._user_id = user_id
        self._initialized = True
        logger.info("Sync initialized for %s", user_id)

        if settings.get(SYNC_ON_STARTUP, False) and self._online:
            self.auto_sync()
        return True

    def set_online(self, online: bool) -> None:
        """Update connectivity. Coming back online schedules an auto-sync."""
        was_online = self._online
        self._online = online
        if online and not was_online:
            logger.info("Connection restored")
            self.auto_sync()
        elif not online and was_online:
            logger.info("Connection lost, working offline")

    def set_sync_enabled(self, enabled: bool) -> None:
        """Turn outbox recording on or off. Enabling also schedules an auto-sync."""
        self.ledger.settings.set(SYNC_ENABLED, enabled)
        if enabled:
            self.auto_sync()

    def _available(self) -> bool:
        return self._initialized and self._online

    def _require_available(self) -> str:
        if not self._available() or self._user_id is None:
            raise SyncUnavailableError(SYNC_NOT_AVAILABLE)
        return self._user_id

    def auto_sync(self) -> bool:
        """Schedule a sync cycle after debounce_seconds.

        Repeated calls within the delay collapse into one cycle.

        Returns:
            True if a cycle was scheduled
        """
        if not self.ledger.settings.is_sync_enabled() or not self._available() or self._guard.locked():
            return False

        self.cancel_pending()
        self._scheduled = self._scheduler(self.debounce_seconds, self._run_scheduled)
        return True

    def cancel_pending(self) -> None:
        """Cancel a scheduled auto-sync that has not started yet."""
        if self._scheduled is not None:
            self._scheduled.cancel()
            self._scheduled = None

    def _run_scheduled(self) -> None:
        self._scheduled = None
        result = self.perform_sync()
        if not result.success:
            logger.warning("Auto-sync failed: %s", result.message)

    def perform_sync(self) -> SyncResult:
        """Run one full sync cycle.

        Returns:
            SyncResult describing the cycle. A refused or aborted cycle has
            success=False and leaves the outbox for the next attempt.
        """
        if not self._available():
            return SyncResult(success=False, message=SYNC_NOT_AVAILABLE)
        if not self._guard.acquire(blocking=False):
            return SyncResult(success=False, message=SYNC_IN_PROGRESS)

        try:
            self._state = SyncState.UPLOADING
            uploaded, failed, dropped = self._upload()

            self._state = SyncState.DOWNLOADING
            try:
                remote_debtors = self.remote.fetch_debtors(self._user_id)
                remote_transactions = self.remote.fetch_transactions(self._user_id)
            except RemoteStoreError as e:
                logger.error("Download failed, sync aborted: %s", e)
                return SyncResult(
                    success=False,
                    message=f"Sync failed: {e}",
                    uploaded=uploaded,
                    failed=failed,
                    dropped=dropped,
                )

            self._state = SyncState.RECONCILING
            downloaded = self._merge(remote_debtors, remote_transactions)

            synced_at = to_epoch_ms(utc_now())
            try:
                self.remote.set_last_sync(self._user_id, synced_at)
            except RemoteStoreError as e:
                logger.warning("Could not record sync time remotely: %s", e)
            self.ledger.settings.set(LAST_SYNC_AT, synced_at)
            # Whatever is still queued (failed uploads, changes made mid-cycle) is discarded
            self.ledger.outbox.clear()
        finally:
            self._state = SyncState.IDLE
            self._guard.release()

        logger.info(
            "Sync completed: %d uploaded, %d failed, %d dropped, %d downloaded",
            uploaded,
            failed,
            dropped,
            downloaded,
        )
        return SyncResult(
            success=True,
            message="Sync completed",
            uploaded=uploaded,
            failed=failed,
            dropped=dropped,
            downloaded=downloaded,
        )

    def _upload(self) -> tuple[int, int, int]:
        """Push the current outbox snapshot, item by item.

        Items queued while this runs are left for the next cycle.
        """
        outbox = self.ledger.outbox
        uploaded = failed = dropped = 0
        for item in outbox.pending():
            try:
                self._apply_remote(item)
            except RemoteStoreError as e:
                logger.warning("Upload of %s failed: %s", item.op_type.value, e)
                if outbox.record_failure(item):
                    dropped += 1
                else:
                    failed += 1
                continue
            outbox.remove(item.id)
            uploaded += 1
        return uploaded, failed, dropped

    def _apply_remote(self, item: SyncQueueItem) -> None:
        payload = item.payload
        op = item.op_type
        if op in (SyncOperation.CREATE_DEBTOR, SyncOperation.UPDATE_DEBTOR):
            self.remote.put_debtor(self._user_id, payload)
        elif op is SyncOperation.DELETE_DEBTOR:
            self.remote.delete_debtor(self._user_id, payload["id"])
        elif op in (SyncOperation.CREATE_TRANSACTION, SyncOperation.UPDATE_TRANSACTION):
            self.remote.put_transaction(self._user_id, payload)
        elif op is SyncOperation.DELETE_TRANSACTION:
            self.remote.delete_transaction(self._user_id, payload["id"])

    def _merge(
        self,
        remote_debtors: dict[str, dict[str, Any]],
        remote_transactions: dict[str, dict[str, Any]],
    ) -> int:
        """Apply remote records that are new or strictly newer than the local copy.

        Debtors go first so transactions can be checked against them.
        Merged records are not queued for upload.

        Returns:
            Number of records written locally
        """
        store = self.ledger.store
        written = 0
        with store.unit_of_work():
            for record_id, record in remote_debtors.items():
                try:
                    debtor = debtor_from_wire(strip_transport_fields(record))
                except (KeyError, ValueError) as e:
                    logger.warning("Skipping malformed remote debtor %s: %s", record_id, e)
                    continue
                if self._merge_record(Collection.DEBTORS, debtor):
                    written += 1

            for record_id, record in remote_transactions.items():
                try:
                    transaction = transaction_from_wire(strip_transport_fields(record))
                except (KeyError, ValueError) as e:
                    logger.warning("Skipping malformed remote transaction %s: %s", record_id, e)
                    continue
                if store.get(Collection.DEBTORS, transaction.debtor_id) is None:
                    logger.info(
                        "Skipping remote transaction %s: debtor %s not found locally",
                        transaction.id,
                        transaction.debtor_id,
                    )
                    continue
                if self._merge_record(Collection.TRANSACTIONS, transaction):
                    written += 1
        return written

    def _merge_record(self, collection: Collection, remote_record: Any) -> bool:
        local = self.ledger.store.get(collection, remote_record.id)
        if local is not None and remote_record.updated_at <= local.updated_at:
            return False
        self.ledger.store.put(collection, remote_record)
        return True

    def backup_to_remote(self) -> str:
        """Upload a full export as a remote backup.

        Returns:
            The backup id (creation time in epoch milliseconds)

        Raises:
            SyncUnavailableError: If offline or not initialized
            RemoteStoreError: If the upload fails
        """
        user_id = self._require_available()
        backup_id = str(to_epoch_ms(utc_now()))
        self.remote.put_backup(user_id, backup_id, self.ledger.exchange.export_data())
        logger.info("Created remote backup %s", backup_id)
        return backup_id

    def restore_from_remote(self, backup_id: str) -> None:
        """Replace the local ledger with a remote backup.

        Raises:
            SyncUnavailableError: If offline or not initialized
            NotFoundError: If there is no such backup
            ValidationError: If the backup content is invalid
        """
        user_id = self._require_available()
        data = self.remote.get_backup(user_id, backup_id)
        if data is None:
            raise NotFoundError(backup_not_found(backup_id))
        self.ledger.exchange.import_data(data, merge=False)
        logger.info("Restored remote backup %s", backup_id)

    def list_backups(self) -> list[dict[str, Any]]:
        """List remote backups, oldest first. Empty when sync is unavailable."""
        if not self._available():
            return []
        try:
            return self.remote.list_backups(self._user_id)
        except RemoteStoreError as e:
            logger.warning("Could not list backups: %s", e)
            return []

    def push_settings(self) -> None:
        """Upload local settings, without the engine-owned keys.

        Raises:
            SyncUnavailableError: If offline or not initialized
        """
        user_id = self._require_available()
        settings = {
            key: value
            for key, value in self.ledger.settings.get_all().items()
            if key not in ENGINE_SETTINGS
        }
        self.remote.put_settings(user_id, settings)

    def pull_settings(self) -> int:
        """Copy remote settings into the local store.

        Returns:
            Number of settings written

        Raises:
            SyncUnavailableError: If offline or not initialized
        """
        user_id = self._require_available()
        remote_settings = self.remote.fetch_settings(user_id)
        if not remote_settings:
            return 0

        written = 0
        with self.ledger.store.unit_of_work():
            for key, value in strip_transport_fields(remote_settings).items():
                if key in ENGINE_SETTINGS:
                    continue
                self.ledger.settings.set(key, value)
                written += 1
        return written

    def get_status(self) -> SyncStatus:
        """Return the current sync health."""
        return SyncStatus(
            last_sync_at=self.ledger.settings.get(LAST_SYNC_AT),
            sync_enabled=self.ledger.settings.is_sync_enabled(),
            is_online=self._online,
            sync_in_progress=self._guard.locked(),
            queue_length=self.ledger.outbox.length(),
            is_initialized=self._initialized,
            state=self._state,
        )
