"""Id and timestamp helpers."""

import uuid
from datetime import datetime, UTC


def generate_id() -> str:
    """Return a new opaque record id."""
    return uuid.uuid4().hex


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def to_epoch_ms(moment: datetime) -> int:
    """Convert a datetime to milliseconds since the epoch."""
    return int(moment.timestamp() * 1000)
