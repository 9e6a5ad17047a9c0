"""Remote sync and backup commands."""

from datetime import datetime, UTC

import click

from debtbook.cli.error_handling import handle_domain_error
from debtbook.domain.errors import RemoteStoreError
from debtbook.domain.settings import LAST_SYNC_AT, SYNC_ENABLED
from debtbook.sync.engine import SyncEngine
from debtbook.sync.sqlalchemy_remote import create_remote_store


def _format_epoch_ms(value) -> str:
    if not value:
        return "never"
    return datetime.fromtimestamp(int(value) / 1000, tz=UTC).strftime("%d/%m/%Y %H:%M UTC")


def _get_engine(ctx) -> SyncEngine:
    """Build and initialize the sync engine for this invocation."""
    if "sync_engine" in ctx.obj:
        return ctx.obj["sync_engine"]

    config = ctx.obj["config"]
    if not config.remote_url:
        click.echo("Error: No remote store configured. Use --remote-url or DEBTBOOK_REMOTE_URL.", err=True)
        ctx.exit(1)

    try:
        remote = create_remote_store(config.remote_url)
    except RemoteStoreError as e:
        handle_domain_error(ctx, e)

    engine = SyncEngine(ctx.obj["ledger"], remote, debounce_seconds=config.sync_debounce)
    if not engine.initialize():
        click.echo("Error: Could not reach the remote store", err=True)
        ctx.exit(1)

    # A one-shot command never waits for a debounced auto-sync
    engine.cancel_pending()
    ctx.call_on_close(engine.cancel_pending)
    ctx.call_on_close(remote.disconnect)
    ctx.obj["sync_engine"] = engine
    return engine


@click.group()
def sync_group():
    """Synchronize with the remote store."""
    pass


@sync_group.command("run")
@click.pass_context
def run_sync(ctx):
    """Upload pending changes and download remote ones."""
    engine = _get_engine(ctx)
    result = engine.perform_sync()

    if not result.success:
        click.echo(f"Error: {result.message}", err=True)
        ctx.exit(1)

    click.echo(result.message)
    click.echo(f"  Uploaded: {result.uploaded}")
    click.echo(f"  Downloaded: {result.downloaded}")
    if result.failed:
        click.echo(f"  Failed (will retry): {result.failed}")
    if result.dropped:
        click.echo(f"  Dropped after repeated failures: {result.dropped}")


@sync_group.command("status")
@click.pass_context
def sync_status(ctx):
    """Show sync settings, last sync time and pending changes."""
    ledger = ctx.obj["ledger"]

    if not ctx.obj["config"].remote_url:
        click.echo(f"Sync enabled: {'yes' if ledger.settings.is_sync_enabled() else 'no'}")
        click.echo(f"Last sync: {_format_epoch_ms(ledger.settings.get(LAST_SYNC_AT))}")
        click.echo(f"Pending changes: {ledger.outbox.length()}")
        click.echo("Remote: not configured")
        return

    status = _get_engine(ctx).get_status()
    click.echo(f"Sync enabled: {'yes' if status.sync_enabled else 'no'}")
    click.echo(f"Last sync: {_format_epoch_ms(status.last_sync_at)}")
    click.echo(f"Pending changes: {status.queue_length}")
    click.echo(f"Remote: {'online' if status.is_online else 'offline'} ({status.state.value})")


@sync_group.command("enable")
@click.pass_context
def enable_sync(ctx):
    """Start recording changes for upload."""
    ctx.obj["ledger"].settings.set(SYNC_ENABLED, True)
    click.echo("Sync enabled. Changes from now on will be uploaded on the next sync.")


@sync_group.command("disable")
@click.pass_context
def disable_sync(ctx):
    """Stop recording changes for upload."""
    ctx.obj["ledger"].settings.set(SYNC_ENABLED, False)
    click.echo("Sync disabled.")


@sync_group.command("backup")
@click.pass_context
def backup(ctx):
    """Store a full copy of the ledger on the remote."""
    engine = _get_engine(ctx)
    try:
        backup_id = engine.backup_to_remote()
    except (ValueError, RemoteStoreError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created backup {backup_id}")


@sync_group.command("backups")
@click.pass_context
def list_backups(ctx):
    """List remote backups."""
    backups = _get_engine(ctx).list_backups()
    if not backups:
        click.echo("No backups found.")
        return

    click.echo("\nBackups:")
    click.echo("-" * 70)
    for item in backups:
        click.echo(
            f"{item['id']} | {_format_epoch_ms(item.get('createdAt'))} | "
            f"{len(item.get('debtors') or [])} debtors, {len(item.get('transactions') or [])} transactions"
        )


@sync_group.command("restore")
@click.argument("backup_id", metavar="BACKUP_ID")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def restore(ctx, backup_id: str, yes: bool):
    """Replace the local ledger with a remote backup."""
    engine = _get_engine(ctx)

    if not yes and not click.confirm("This replaces all current data. Continue?"):
        click.echo("Restore cancelled.")
        return

    try:
        engine.restore_from_remote(backup_id)
    except (ValueError, RemoteStoreError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Restored backup {backup_id}")


def register_commands(cli):
    """Register sync commands with main CLI."""
    cli.add_command(sync_group, name="sync")
