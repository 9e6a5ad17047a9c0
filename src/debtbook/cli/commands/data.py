"""Export and import commands."""

import click

from debtbook.cli.error_handling import handle_domain_error


@click.group()
def data_group():
    """Export and import ledger data."""
    pass


@data_group.command("export")
@click.argument("output", type=click.Path(dir_okay=False, writable=True), metavar="OUTPUT_FILE")
@click.option("--debtor", "debtor_id", help="Export only this debtor")
@click.pass_context
def export_json(ctx, output: str, debtor_id: str | None):
    """Export the ledger (or one debtor) to a JSON file.

    Examples:
        debtbook data export backup.json
        debtbook data export ahmed.json --debtor 3f2a...
    """
    exchange = ctx.obj["ledger"].exchange

    if debtor_id is None:
        data = exchange.write_file(output)
        click.echo(
            f"Exported {len(data['debtors'])} debtors and {len(data['transactions'])} transactions to {output}"
        )
        return

    try:
        data = exchange.export_debtor_data(debtor_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    exchange.write_file(output, data)
    click.echo(f"Exported '{data['debtor']['name']}' with {len(data['transactions'])} transactions to {output}")


@data_group.command("import")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False), metavar="INPUT_FILE")
@click.option("--merge", is_flag=True, help="Add to the existing ledger instead of replacing it")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def import_json(ctx, input_file: str, merge: bool, yes: bool):
    """Import a JSON export.

    Without --merge the current ledger is replaced, ids included. With
    --merge every imported record gets a new id and is added alongside the
    existing ones.
    """
    exchange = ctx.obj["ledger"].exchange

    if not merge and not yes and not click.confirm("This replaces all current data. Continue?"):
        click.echo("Import cancelled.")
        return

    try:
        summary = exchange.import_data(exchange.read_file(input_file), merge=merge)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(
        f"Imported {summary.debtors} debtors, {summary.transactions} transactions "
        f"and {summary.settings} settings"
    )


@data_group.command("export-csv")
@click.argument("output", type=click.Path(dir_okay=False, writable=True), metavar="OUTPUT_FILE")
@click.option("--debtor", "debtor_id", help="Write one debtor's statement instead of all transactions")
@click.pass_context
def export_csv(ctx, output: str, debtor_id: str | None):
    """Export transactions to a CSV file."""
    ledger = ctx.obj["ledger"]

    if debtor_id is None:
        text = ledger.csv.transactions_to_csv(ledger.transactions.list_transactions())
    else:
        try:
            text = ledger.csv.debtor_statement_csv(debtor_id)
        except ValueError as e:
            handle_domain_error(ctx, e)

    with open(output, "w", encoding="utf-8", newline="") as f:
        f.write(text)
    click.echo(f"Wrote {output}")


@data_group.command("import-csv")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False), metavar="CSV_FILE")
@click.argument("debtor_id", metavar="DEBTOR_ID")
@click.pass_context
def import_csv(ctx, csv_file: str, debtor_id: str):
    """Add the transactions in a CSV file to a debtor.

    The file needs Date, Type and Amount columns; Currency, Product, Notes
    and PaymentMethod are optional.

    Examples:
        debtbook data import-csv ahmed.csv 3f2a...
    """
    ledger = ctx.obj["ledger"]

    try:
        count = ledger.csv.import_transactions_csv(csv_file, debtor_id)
    except (FileNotFoundError, ValueError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Imported {count} transaction(s)")


def register_commands(cli):
    """Register data commands with main CLI."""
    cli.add_command(data_group, name="data")
