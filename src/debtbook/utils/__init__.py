"""Utility functions for debtbook."""

from debtbook.utils.date_parser import parse_date, parse_timestamp, get_date_range, day_bounds
from debtbook.utils.amount_parser import parse_amount
from debtbook.utils.identifiers import generate_id, utc_now, to_epoch_ms

__all__ = [
    "parse_date",
    "parse_timestamp",
    "get_date_range",
    "day_bounds",
    "parse_amount",
    "generate_id",
    "utc_now",
    "to_epoch_ms",
]
