"""Main CLI entry point."""

import click

from debtbook.config import AppConfig, configure_logging
from debtbook.database.factories import create_sqlite_store
from debtbook.domain.errors import StorageFatalError
from debtbook.domain.ledger import Ledger

# Import and register all commands at module level
from debtbook.cli.commands import (
    debtor,
    transaction,
    stats,
    data,
    settings,
    sync,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides DEBTBOOK_DB_PATH environment variable)",
    envvar="DEBTBOOK_DB_PATH",
)
@click.option(
    "--remote-url",
    help="SQLAlchemy URL of the sync server database (overrides DEBTBOOK_REMOTE_URL)",
    envvar="DEBTBOOK_REMOTE_URL",
)
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, remote_url: str | None, verbose: bool):
    """Debtbook - Debt and payment tracking for small shops.

    Keep a ledger of customers and what they owe, and sync it to a shared
    server database when one is configured.
    """
    ctx.ensure_object(dict)

    env_config = AppConfig.from_env()
    config = AppConfig(
        db_path=db_path or env_config.db_path,
        remote_url=remote_url or env_config.remote_url,
        log_level="DEBUG" if verbose else env_config.log_level,
        sync_debounce=env_config.sync_debounce,
    )
    configure_logging(config.log_level)
    ctx.obj["config"] = config

    # Open the store only when actually running a command (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            store = create_sqlite_store(database_path=config.db_path)
            store.connect()
            store.initialize_schema()
        except StorageFatalError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        ctx.call_on_close(store.disconnect)
        ctx.obj["store"] = store
        ctx.obj["ledger"] = Ledger(store)


# Register all commands
debtor.register_commands(cli)
transaction.register_commands(cli)
stats.register_commands(cli)
data.register_commands(cli)
settings.register_commands(cli)
sync.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
