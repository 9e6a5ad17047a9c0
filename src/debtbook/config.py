"""Application configuration from environment variables."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from debtbook.sync.engine import DEFAULT_DEBOUNCE_SECONDS

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


@dataclass(frozen=True)
class AppConfig:
    """Runtime settings.

    Attributes:
        db_path: Local database file (None means the default under ~/.debtbook)
        remote_url: SQLAlchemy URL of the remote store (None disables remote sync)
        log_level: Name of the logging level
        sync_debounce: Seconds between an auto-sync request and the sync itself
    """

    db_path: Optional[str] = None
    remote_url: Optional[str] = None
    log_level: str = "WARNING"
    sync_debounce: float = DEFAULT_DEBOUNCE_SECONDS

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build settings from DEBTBOOK_* environment variables."""
        raw_debounce = os.getenv("DEBTBOOK_SYNC_DEBOUNCE")
        sync_debounce = DEFAULT_DEBOUNCE_SECONDS
        if raw_debounce:
            try:
                sync_debounce = max(0.0, float(raw_debounce))
            except ValueError:
                logger.warning("Ignoring invalid DEBTBOOK_SYNC_DEBOUNCE value %r", raw_debounce)

        return cls(
            db_path=os.getenv("DEBTBOOK_DB_PATH") or None,
            remote_url=os.getenv("DEBTBOOK_REMOTE_URL") or None,
            log_level=os.getenv("DEBTBOOK_LOG_LEVEL", "WARNING").strip().upper(),
            sync_debounce=sync_debounce,
        )


def get_log_level(name: str) -> int:
    """Map a level name to a logging level, defaulting to WARNING."""
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(name.upper(), logging.WARNING)


def configure_logging(level: str) -> None:
    """Send debtbook log records to stderr at the given level."""
    logging.basicConfig(level=get_log_level(level), format=LOG_FORMAT)
    logging.getLogger("debtbook").setLevel(get_log_level(level))
