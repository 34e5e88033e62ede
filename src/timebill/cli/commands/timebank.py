"""Time-bank status command."""

import click
from timebill.cli.date_filters import parse_date_or_exit
from timebill.cli.error_handling import handle_domain_error
from timebill.domain.errors import DomainError
from timebill.domain.timebank import TimeBankService
from timebill.utils.formatting import format_hours


@click.group()
def timebank_group():
    """Inspect time-bank balances."""
    pass


@timebank_group.command("status")
@click.argument("agreement_id", metavar="AGREEMENT_ID")
@click.option("--date", "reference", help="Any date in the period to report on (default: today)")
@click.pass_context
def timebank_status(ctx, agreement_id: str, reference: str | None):
    """Show how much of an agreement's time bank is used.

    Examples:
        timebill timebank status 3f2a...
        timebill timebank status 3f2a... --date 2026-01-31
    """
    service = TimeBankService(ctx.obj["db"])
    reference_date = parse_date_or_exit(ctx, reference, "date")
    try:
        status = service.get_time_bank_status(agreement_id, reference_date)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if status is None:
        click.echo(f"Agreement {agreement_id} has no time bank.")
        return

    click.echo(f"\nTime bank {status.period_start} - {status.period_end}")
    click.echo("-" * 40)
    click.echo(f"Included:   {format_hours(status.included_hours)}")
    click.echo(f"Used:       {format_hours(status.hours_used)} ({status.percent_used}%)")
    click.echo(f"Remaining:  {format_hours(status.hours_remaining)}")
    click.echo(f"Overtime:   {format_hours(status.overtime_hours)}")
    if status.is_overtime or (status.included_hours > 0 and status.hours_remaining == 0):
        click.echo("Time bank is exhausted; further hours are billed as overtime.")


def register_commands(cli):
    """Register time-bank commands with main CLI."""
    cli.add_command(timebank_group, name="timebank")
