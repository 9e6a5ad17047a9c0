"""Transaction management commands."""

from datetime import date, datetime, time, UTC

import click

from debtbook.cli.date_filters import resolve_cli_date_range
from debtbook.cli.error_handling import handle_domain_error
from debtbook.cli.formatting import format_amount, format_date
from debtbook.domain.entities import DEFAULT_CURRENCY
from debtbook.domain.validation import validate_amount
from debtbook.utils.date_parser import day_bounds, parse_date

TYPE_CHOICE = click.Choice(["debt", "payment"], case_sensitive=False)


@click.group()
def transaction_group():
    """Manage debts and payments."""
    pass


def _echo_transactions(ledger, transactions) -> None:
    names = {debtor.id: debtor.name for debtor in ledger.debtors.list_debtors()}
    click.echo("-" * 100)
    for txn in transactions:
        detail = txn.product or txn.notes or ""
        click.echo(
            f"{format_date(txn.created_at)} | {names.get(txn.debtor_id, 'Unknown'):20s} | "
            f"{txn.type.value:7s} | {format_amount(txn.amount, txn.currency):>16s} | {detail} [{txn.id}]"
        )


@transaction_group.command("add")
@click.argument("debtor_id", metavar="DEBTOR_ID")
@click.argument("amount", metavar="AMOUNT")
@click.option("--type", "txn_type", type=TYPE_CHOICE, default="debt", show_default=True, help="Debt or payment")
@click.option("--currency", default=DEFAULT_CURRENCY, show_default=True, help="Currency code")
@click.option("--product", help="What was bought")
@click.option("--notes", help="Notes")
@click.option("--payment-method", help="How it was paid (cash, card, ...)")
@click.option("--date", "txn_date", help="Transaction date (YYYY-MM-DD, DD/MM/YYYY or 'yesterday'); defaults to now")
@click.pass_context
def add_transaction(
    ctx,
    debtor_id: str,
    amount: str,
    txn_type: str,
    currency: str,
    product: str | None,
    notes: str | None,
    payment_method: str | None,
    txn_date: str | None,
):
    """Record a debt or a payment for a debtor.

    Examples:
        debtbook txn add 3f2a... 100000 --product "Rice 50kg"
        debtbook txn add 3f2a... "40,000" --type payment --payment-method cash
    """
    ledger = ctx.obj["ledger"]

    try:
        value = validate_amount(amount)
    except ValueError as e:
        handle_domain_error(ctx, e)

    created_at = None
    if txn_date is not None:
        try:
            created_at = datetime.combine(parse_date(txn_date), time.min, tzinfo=UTC)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        txn = ledger.transactions.add_transaction(
            debtor_id=debtor_id,
            type=txn_type,
            amount=value,
            currency=currency,
            product=product,
            notes=notes,
            payment_method=payment_method,
            created_at=created_at,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    balance = ledger.summary.get_debtor_balance(debtor_id)
    click.echo(f"Recorded {txn.type.value} of {format_amount(txn.amount, txn.currency)} (ID: {txn.id})")
    click.echo(f"New balance: {format_amount(balance)}")


@transaction_group.command("list")
@click.option("--debtor", "debtor_id", help="Only this debtor's transactions")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this year')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today', 'this month')")
@click.option("--this-month", is_flag=True, help="Filter to current month")
@click.option("--last-month", is_flag=True, help="Filter to previous month")
@click.option("--this-year", is_flag=True, help="Filter to current year")
@click.option("--last-year", is_flag=True, help="Filter to previous year")
@click.pass_context
def list_transactions(
    ctx,
    debtor_id: str | None,
    start_date: str | None,
    end_date: str | None,
    this_month: bool,
    last_month: bool,
    this_year: bool,
    last_year: bool,
):
    """List transactions, newest first, with optional filters."""
    ledger = ctx.obj["ledger"]

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags={
            "this-month": this_month,
            "last-month": last_month,
            "this-year": this_year,
            "last-year": last_year,
        },
    )

    if start is not None or end is not None:
        lower, upper = day_bounds(start or date.min, end or date.max)
        transactions = sorted(
            ledger.transactions.get_transactions_in_date_range(lower, upper),
            key=lambda t: (t.created_at, t.id),
            reverse=True,
        )
    else:
        transactions = ledger.transactions.list_transactions()

    if debtor_id is not None:
        transactions = [txn for txn in transactions if txn.debtor_id == debtor_id]

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    _echo_transactions(ledger, transactions)


@transaction_group.command("update")
@click.argument("transaction_id", metavar="TRANSACTION_ID")
@click.option("--type", "txn_type", type=TYPE_CHOICE, help="Debt or payment")
@click.option("--amount", help="New amount")
@click.option("--currency", help="Currency code")
@click.option("--product", help="What was bought")
@click.option("--notes", help="Notes")
@click.option("--payment-method", help="How it was paid")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: str,
    txn_type: str | None,
    amount: str | None,
    currency: str | None,
    product: str | None,
    notes: str | None,
    payment_method: str | None,
):
    """Update a transaction.

    Updates only the fields that are provided.

    Examples:
        debtbook txn update 9c1d... --amount 45000
        debtbook txn update 9c1d... --type payment
    """
    ledger = ctx.obj["ledger"]

    changes = {
        field: value
        for field, value in (
            ("type", txn_type),
            ("currency", currency),
            ("product", product),
            ("notes", notes),
            ("payment_method", payment_method),
        )
        if value is not None
    }
    if amount is not None:
        try:
            changes["amount"] = validate_amount(amount)
        except ValueError as e:
            handle_domain_error(ctx, e)

    if not changes:
        click.echo("Error: Nothing to update. Provide at least one option.", err=True)
        ctx.exit(1)

    try:
        ledger.transactions.update_transaction(transaction_id, **changes)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated transaction {transaction_id}")


@transaction_group.command("delete")
@click.argument("transaction_id", metavar="TRANSACTION_ID")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: str, yes: bool):
    """Delete a transaction."""
    ledger = ctx.obj["ledger"]

    try:
        txn = ledger.transactions.require_transaction(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(
        f"Delete {txn.type.value} of {format_amount(txn.amount, txn.currency)} from {format_date(txn.created_at)}?"
    ):
        click.echo("Deletion cancelled.")
        return

    ledger.transactions.delete_transaction(transaction_id)
    click.echo(f"Deleted transaction {transaction_id}")


@transaction_group.command("search")
@click.argument("query", metavar="QUERY")
@click.pass_context
def search_transactions(ctx, query: str):
    """Search transactions by product, notes or amount."""
    ledger = ctx.obj["ledger"]

    transactions = ledger.transactions.search_transactions(query)
    if not transactions:
        click.echo("No matching transactions.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    _echo_transactions(ledger, transactions)


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="txn")
