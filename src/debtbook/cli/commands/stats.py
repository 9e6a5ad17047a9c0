"""Ledger statistics command."""

import click

from debtbook.cli.formatting import format_amount


@click.command("stats")
@click.option("--top", default=5, show_default=True, help="Number of largest balances to show")
@click.pass_context
def stats(ctx, top: int):
    """Show ledger totals and the debtors who owe the most.

    Total outstanding only counts debtors with a positive balance, so an
    overpaid debtor does not reduce what the others owe.
    """
    ledger = ctx.obj["ledger"]
    result = ledger.summary.get_debtor_stats()

    click.echo("\nLedger totals:")
    click.echo("-" * 50)
    click.echo(f"{'Debtors':30s} {result.total_debtors:>18d}")
    click.echo(f"{'Total debts':30s} {format_amount(result.total_debts):>18s}")
    click.echo(f"{'Total payments':30s} {format_amount(result.total_payments):>18s}")
    click.echo(f"{'Total outstanding':30s} {format_amount(result.total_balance):>18s}")

    owing = sorted(
        ((balance, debtor_id) for debtor_id, balance in result.debtor_balances.items() if balance > 0),
        reverse=True,
    )[:top]
    if not owing:
        return

    click.echo(f"\nTop {len(owing)} balance(s):")
    click.echo("-" * 50)
    for balance, debtor_id in owing:
        debtor = ledger.debtors.get_debtor(debtor_id)
        name = debtor.name if debtor else "Unknown"
        click.echo(f"{name:30s} {format_amount(balance):>18s}")


def register_commands(cli):
    """Register stats command with main CLI."""
    cli.add_command(stats)
