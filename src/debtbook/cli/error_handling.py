"""CLI error handling helpers."""

import click

from debtbook.domain.errors import DomainError, RemoteStoreError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError | RemoteStoreError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
