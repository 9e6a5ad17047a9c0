"""Display helpers shared by CLI commands."""

from datetime import datetime
from decimal import Decimal

from debtbook.domain.entities import DEFAULT_CURRENCY


def format_amount(amount: Decimal, currency: str = DEFAULT_CURRENCY) -> str:
    """Render an amount with thousands separators, e.g. '60,000 IQD'."""
    if amount == amount.to_integral_value():
        text = f"{int(amount):,}"
    else:
        text = f"{amount:,.2f}"
    return f"{text} {currency}"


def format_date(moment: datetime) -> str:
    """Render a timestamp as the dd/MM/yyyy date the ledger displays."""
    return moment.strftime("%d/%m/%Y")


def balance_label(balance: Decimal) -> str:
    if balance > 0:
        return "owes"
    if balance < 0:
        return "overpaid"
    return "settled"
