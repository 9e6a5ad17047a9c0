"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "100000"
    - "100,000"
    - "IQD 100,000"
    - "$123.45"
    - "1 250.50"

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Currency codes and symbols
    amount_str = re.sub(r"[A-Za-z$€£¥]", "", amount_str)

    # Thousands separators
    amount_str = amount_str.replace(",", "").replace(" ", "")

    try:
        return Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
