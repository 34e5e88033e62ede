"""CLI error handling helpers."""

import click

from timebill.domain.errors import ConflictError, DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, ConflictError) and error.conflicting_ids:
        click.echo(f"Conflicting records: {', '.join(error.conflicting_ids)}", err=True)
    ctx.exit(1)
