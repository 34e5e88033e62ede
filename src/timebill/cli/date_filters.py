"""CLI helpers for billing period and date resolution."""

from datetime import date

import click

from timebill.utils.date_parser import parse_date, previous_month


def resolve_cli_period(
    ctx,
    *,
    year: int | None,
    month: int | None,
    this_month: bool,
    last_month: bool,
    today: date | None = None,
) -> tuple[int, int]:
    """Resolve a (year, month) billing period from CLI options.

    Defaults to the current month when nothing is given.
    """
    today = today or date.today()
    explicit = year is not None or month is not None

    if this_month and last_month:
        click.echo("Error: Only one of --this-month and --last-month can be specified.", err=True)
        ctx.exit(1)

    if explicit and (this_month or last_month):
        click.echo(
            "Error: --this-month/--last-month cannot be combined with --year or --month.",
            err=True,
        )
        ctx.exit(1)

    if last_month:
        return previous_month(today)
    if explicit:
        if month is None:
            click.echo("Error: --month is required with --year.", err=True)
            ctx.exit(1)
        if not 1 <= month <= 12:
            click.echo(f"Error: Month must be between 1 and 12, got {month}.", err=True)
            ctx.exit(1)
        return (year if year is not None else today.year), month
    return today.year, today.month


def parse_date_or_exit(ctx, value: str | None, label: str) -> date | None:
    """Parse an optional date option, exiting with an error on bad input."""
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)
