"""Conversion between domain entities and the JSON wire shape.

The wire shape is shared by exports, outbox payloads and the remote store:
camelCase keys, ISO-8601 timestamps and plain JSON numbers for amounts.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from debtbook.domain.entities import DEFAULT_CURRENCY, Debtor, Transaction
from debtbook.domain.validation import coerce_transaction_type
from debtbook.utils.date_parser import parse_timestamp
from debtbook.utils.identifiers import utc_now

# Fields added by the remote store that never belong in a local record
TRANSPORT_FIELDS = ("syncedAt",)


def strip_transport_fields(record: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a remote record without transport-only fields."""
    return {key: value for key, value in record.items() if key not in TRANSPORT_FIELDS}


def amount_to_wire(amount: Decimal) -> int | float:
    """Render an amount as a JSON number, keeping whole amounts integral."""
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def _amount(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid amount {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Invalid amount {value!r}")
    return amount


def _timestamp(value: Any, fallback: datetime) -> datetime:
    if value is None or value == "":
        return fallback
    if isinstance(value, datetime):
        return parse_timestamp(value.isoformat())
    if isinstance(value, (int, float)):
        # Epoch milliseconds
        return datetime.fromtimestamp(value / 1000, tz=fallback.tzinfo)
    return parse_timestamp(str(value))


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def debtor_to_wire(debtor: Debtor) -> dict[str, Any]:
    """Convert a Debtor to its wire record."""
    return {
        "id": debtor.id,
        "name": debtor.name,
        "phone": debtor.phone,
        "address": debtor.address,
        "notes": debtor.notes,
        "createdAt": debtor.created_at.isoformat(),
        "updatedAt": debtor.updated_at.isoformat(),
    }


def debtor_from_wire(record: dict[str, Any]) -> Debtor:
    """Build a Debtor from a wire record.

    Raises:
        ValueError: If a timestamp cannot be parsed
    """
    now = utc_now()
    created_at = _timestamp(record.get("createdAt"), now)
    return Debtor(
        id=str(record["id"]),
        name=str(record["name"]),
        phone=str(record.get("phone") or ""),
        address=_optional_text(record.get("address")),
        notes=_optional_text(record.get("notes")),
        created_at=created_at,
        updated_at=_timestamp(record.get("updatedAt"), created_at),
    )


def transaction_to_wire(transaction: Transaction) -> dict[str, Any]:
    """Convert a Transaction to its wire record."""
    return {
        "id": transaction.id,
        "debtorId": transaction.debtor_id,
        "type": transaction.type.value,
        "amount": amount_to_wire(transaction.amount),
        "currency": transaction.currency,
        "product": transaction.product,
        "notes": transaction.notes,
        "paymentMethod": transaction.payment_method,
        "createdAt": transaction.created_at.isoformat(),
        "updatedAt": transaction.updated_at.isoformat(),
    }


def transaction_from_wire(record: dict[str, Any]) -> Transaction:
    """Build a Transaction from a wire record.

    Raises:
        ValidationError: If the type is not debt/payment
        ValueError: If the amount or a timestamp cannot be parsed
    """
    now = utc_now()
    created_at = _timestamp(record.get("createdAt"), now)
    return Transaction(
        id=str(record["id"]),
        debtor_id=str(record["debtorId"]),
        type=coerce_transaction_type(record["type"]),
        amount=_amount(record["amount"]),
        currency=str(record.get("currency") or DEFAULT_CURRENCY),
        product=_optional_text(record.get("product")),
        notes=_optional_text(record.get("notes")),
        payment_method=_optional_text(record.get("paymentMethod")),
        created_at=created_at,
        updated_at=_timestamp(record.get("updatedAt"), created_at),
    )
