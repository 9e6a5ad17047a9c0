"""Input checks shared by callers of the domain layer."""

from decimal import Decimal, InvalidOperation

from debtbook.domain.entities import TransactionType
from debtbook.domain.errors import ValidationError, invalid_transaction_type
from debtbook.utils.amount_parser import parse_amount


def validate_amount(amount: Decimal | int | float | str) -> Decimal:
    """Return the amount as a Decimal, rejecting anything not strictly positive.

    Raises:
        ValidationError: If the amount is not a positive number
    """
    if isinstance(amount, bool):
        raise ValidationError(f"Amount must be a number, got {amount!r}")
    if isinstance(amount, str):
        try:
            value = parse_amount(amount)
        except ValueError as e:
            raise ValidationError(str(e))
    else:
        try:
            value = Decimal(str(amount))
        except InvalidOperation:
            raise ValidationError(f"Amount must be a number, got {amount!r}")

    if not value.is_finite() or value <= 0:
        raise ValidationError(f"Amount must be greater than zero, got {amount}")
    return value


def coerce_transaction_type(value: TransactionType | str) -> TransactionType:
    """Convert a raw type value to TransactionType.

    Raises:
        ValidationError: If the value is not 'debt' or 'payment'
    """
    if isinstance(value, TransactionType):
        return value
    try:
        return TransactionType(str(value).strip().lower())
    except ValueError:
        raise ValidationError(invalid_transaction_type(value))
