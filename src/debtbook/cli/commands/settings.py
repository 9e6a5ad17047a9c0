"""Settings commands."""

import json

import click


def _parse_value(raw: str):
    """Read a value as JSON (true, 3, "x", {...}) and fall back to plain text."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


@click.group()
def settings_group():
    """View and change settings."""
    pass


@settings_group.command("get")
@click.argument("key", metavar="KEY")
@click.pass_context
def get_setting(ctx, key: str):
    """Print one setting."""
    settings = ctx.obj["ledger"].settings
    value = settings.get(key)
    if value is None:
        click.echo(f"Error: Setting '{key}' is not set", err=True)
        ctx.exit(1)
    click.echo(json.dumps(value))


@settings_group.command("set")
@click.argument("key", metavar="KEY")
@click.argument("value", metavar="VALUE")
@click.pass_context
def set_setting(ctx, key: str, value: str):
    """Set a setting. VALUE is read as JSON when possible.

    Examples:
        debtbook settings set syncOnStartup true
        debtbook settings set shopName "Corner Store"
    """
    ctx.obj["ledger"].settings.set(key, _parse_value(value))
    click.echo(f"Set {key}")


@settings_group.command("list")
@click.pass_context
def list_settings(ctx):
    """List all settings."""
    values = ctx.obj["ledger"].settings.get_all()
    if not values:
        click.echo("No settings.")
        return
    for key in sorted(values):
        click.echo(f"{key} = {json.dumps(values[key])}")


def register_commands(cli):
    """Register settings commands with main CLI."""
    cli.add_command(settings_group, name="settings")
