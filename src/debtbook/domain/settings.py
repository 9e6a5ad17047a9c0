"""Settings domain service."""

from typing import Any

from debtbook.database.base import Collection, LocalStore
from debtbook.domain.entities import Setting

SYNC_ENABLED = "syncEnabled"
SYNC_ON_STARTUP = "syncOnStartup"
LAST_SYNC_AT = "lastSyncAt"
REMOTE_USER_ID = "remoteUserId"


class SettingsService:
    """Service for reading and writing flat key/value settings."""

    def __init__(self, store: LocalStore):
        """Initialize settings service.

        Args:
            store: Local store instance
        """
        self.store = store

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting value, or default if the key is not set."""
        setting = self.store.get(Collection.SETTINGS, key)
        if setting is None:
            return default
        return setting.value

    def set(self, key: str, value: Any) -> None:
        """Set a setting value, replacing any previous value."""
        self.store.put(Collection.SETTINGS, Setting(key=key, value=value))

    def delete(self, key: str) -> None:
        """Remove a setting."""
        self.store.delete(Collection.SETTINGS, key)

    def get_all(self) -> dict[str, Any]:
        """Get all settings as a plain mapping."""
        return {setting.key: setting.value for setting in self.store.get_all(Collection.SETTINGS)}

    def is_sync_enabled(self) -> bool:
        """Return True if mutations should be queued for upload."""
        return bool(self.get(SYNC_ENABLED, False))
