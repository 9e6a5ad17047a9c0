"""Debtor management commands."""

from decimal import Decimal

import click

from debtbook.cli.error_handling import handle_domain_error
from debtbook.cli.formatting import balance_label, format_amount, format_date


@click.group()
def debtor_group():
    """Manage debtors."""
    pass


@debtor_group.command("add")
@click.argument("name", metavar="NAME")
@click.option("--phone", required=True, help="Phone number")
@click.option("--address", help="Address")
@click.option("--notes", help="Notes")
@click.pass_context
def add_debtor(ctx, name: str, phone: str, address: str | None, notes: str | None):
    """Add a new debtor.

    Examples:
        debtbook debtor add "Ahmed Ali" --phone 07701234567
        debtbook debtor add "Sara" --phone 07809876543 --address "Erbil"
    """
    if not name.strip():
        click.echo("Error: Name cannot be empty", err=True)
        ctx.exit(1)
    if not phone.strip():
        click.echo("Error: Phone cannot be empty", err=True)
        ctx.exit(1)

    ledger = ctx.obj["ledger"]
    debtor = ledger.debtors.add_debtor(
        name=name.strip(), phone=phone.strip(), address=address, notes=notes
    )
    click.echo(f"Added debtor '{debtor.name}' (ID: {debtor.id})")


def _echo_debtor_rows(debtors, balances: dict[str, Decimal]) -> None:
    click.echo("-" * 90)
    for debtor in debtors:
        balance = balances.get(debtor.id, Decimal("0"))
        click.echo(
            f"{debtor.id} | {debtor.name:24s} | {debtor.phone:14s} | {format_amount(balance):>16s}"
        )


@debtor_group.command("list")
@click.pass_context
def list_debtors(ctx):
    """List all debtors with their balances."""
    ledger = ctx.obj["ledger"]

    debtors = ledger.debtors.list_debtors()
    if not debtors:
        click.echo("No debtors found.")
        return

    click.echo("\nDebtors:")
    _echo_debtor_rows(debtors, ledger.summary.get_debtor_stats().debtor_balances)


@debtor_group.command("show")
@click.argument("debtor_id", metavar="DEBTOR_ID")
@click.pass_context
def show_debtor(ctx, debtor_id: str):
    """Show a debtor's details, balance and transaction history."""
    ledger = ctx.obj["ledger"]

    try:
        debtor = ledger.debtors.require_debtor(debtor_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    transactions = ledger.transactions.get_transactions_by_debtor(debtor_id)
    balance = ledger.summary.get_debtor_balance(debtor_id)

    click.echo(f"\n{debtor.name}")
    click.echo(f"  Phone: {debtor.phone}")
    if debtor.address:
        click.echo(f"  Address: {debtor.address}")
    if debtor.notes:
        click.echo(f"  Notes: {debtor.notes}")
    click.echo(f"  Since: {format_date(debtor.created_at)}")
    click.echo(f"  Balance: {format_amount(balance)} ({balance_label(balance)})")

    if not transactions:
        click.echo("\nNo transactions.")
        return

    click.echo(f"\nTransactions ({len(transactions)}):")
    click.echo("-" * 90)
    for txn in transactions:
        detail = txn.product or txn.notes or ""
        click.echo(
            f"{format_date(txn.created_at)} | {txn.type.value:7s} | "
            f"{format_amount(txn.amount, txn.currency):>16s} | {detail} [{txn.id}]"
        )


@debtor_group.command("update")
@click.argument("debtor_id", metavar="DEBTOR_ID")
@click.option("--name", help="New name")
@click.option("--phone", help="New phone number")
@click.option("--address", help="New address")
@click.option("--notes", help="New notes")
@click.pass_context
def update_debtor(
    ctx,
    debtor_id: str,
    name: str | None,
    phone: str | None,
    address: str | None,
    notes: str | None,
):
    """Update a debtor.

    Updates only the fields that are provided.

    Examples:
        debtbook debtor update 3f2a... --phone 07501112233
    """
    changes = {
        field: value
        for field, value in (("name", name), ("phone", phone), ("address", address), ("notes", notes))
        if value is not None
    }
    if not changes:
        click.echo("Error: Nothing to update. Provide at least one option.", err=True)
        ctx.exit(1)
    if ("name" in changes and not changes["name"].strip()) or ("phone" in changes and not changes["phone"].strip()):
        click.echo("Error: Name and phone cannot be empty", err=True)
        ctx.exit(1)

    ledger = ctx.obj["ledger"]
    try:
        debtor = ledger.debtors.update_debtor(debtor_id, **changes)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated debtor '{debtor.name}'")


@debtor_group.command("delete")
@click.argument("debtor_id", metavar="DEBTOR_ID")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_debtor(ctx, debtor_id: str, yes: bool):
    """Delete a debtor and all of their transactions."""
    ledger = ctx.obj["ledger"]

    try:
        debtor = ledger.debtors.require_debtor(debtor_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    count = len(ledger.transactions.get_transactions_by_debtor(debtor_id))
    if not yes and not click.confirm(
        f"Delete '{debtor.name}' and {count} transaction{'s' if count != 1 else ''}?"
    ):
        click.echo("Deletion cancelled.")
        return

    ledger.debtors.delete_debtor(debtor_id)
    click.echo(f"Deleted debtor '{debtor.name}'")


@debtor_group.command("search")
@click.argument("query", metavar="QUERY")
@click.pass_context
def search_debtors(ctx, query: str):
    """Search debtors by name, phone, address or notes."""
    ledger = ctx.obj["ledger"]

    debtors = ledger.debtors.search_debtors(query)
    if not debtors:
        click.echo("No matching debtors.")
        return

    click.echo(f"\nFound {len(debtors)} debtor(s):")
    _echo_debtor_rows(debtors, ledger.summary.get_debtor_stats().debtor_balances)


def register_commands(cli):
    """Register debtor commands with main CLI."""
    cli.add_command(debtor_group, name="debtor")
