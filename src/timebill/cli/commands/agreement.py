"""Agreement management commands."""

from datetime import date

import click
from timebill.cli.customer_resolution import resolve_customer_or_exit
from timebill.cli.date_filters import parse_date_or_exit
from timebill.cli.error_handling import handle_domain_error
from timebill.domain.agreement import AgreementService, is_indexation_due
from timebill.domain.entities import AgreementPeriod, AgreementType
from timebill.domain.errors import DomainError
from timebill.utils.amount_parser import parse_amount, parse_hours
from timebill.utils.formatting import format_currency, format_hours


def _parse_optional(ctx, value: str | None, parser, label: str):
    if value is None:
        return None
    try:
        return parser(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


@click.group()
def agreement_group():
    """Manage customer agreements."""
    pass


@agreement_group.command("create")
@click.argument("customer", metavar="CUSTOMER")
@click.option(
    "--type",
    "agreement_type",
    type=click.Choice([t.value for t in AgreementType]),
    required=True,
    help="Agreement type",
)
@click.option("--rate", required=True, help="Hourly rate in kronor")
@click.option("--overtime-rate", help="Rate for hours beyond the time bank")
@click.option("--included-hours", help="Hours included in the time bank per period")
@click.option(
    "--period",
    type=click.Choice([p.value for p in AgreementPeriod]),
    help="Time-bank period",
)
@click.option("--fixed-amount", help="Periodic amount of a fixed agreement")
@click.option("--valid-from", default="today", show_default=True, help="First day of the agreement")
@click.option("--valid-to", help="Last day of the agreement")
@click.option("--next-indexation", help="Date of the next price indexation")
@click.option(
    "--replace",
    is_flag=True,
    help="Terminate the customer's current agreement instead of failing",
)
@click.pass_context
def create_agreement(
    ctx,
    customer: str,
    agreement_type: str,
    rate: str,
    overtime_rate: str | None,
    included_hours: str | None,
    period: str | None,
    fixed_amount: str | None,
    valid_from: str,
    valid_to: str | None,
    next_indexation: str | None,
    replace: bool,
):
    """Create an agreement for a customer.

    CUSTOMER can be a customer ID, number or name.

    Examples:
        timebill agreement create 1001 --type hourly --rate 950
        timebill agreement create 1001 --type timebank --rate 950 \\
            --overtime-rate 1100 --included-hours 10 --period monthly
    """
    customer_obj = resolve_customer_or_exit(ctx, customer)
    service = AgreementService(ctx.obj["db"])

    try:
        agreement_id = service.create_agreement(
            customer_id=customer_obj.id,
            type=agreement_type,
            hourly_rate=_parse_optional(ctx, rate, parse_amount, "rate"),
            valid_from=parse_date_or_exit(ctx, valid_from, "valid-from date"),
            overtime_rate=_parse_optional(ctx, overtime_rate, parse_amount, "overtime rate"),
            included_hours=_parse_optional(ctx, included_hours, parse_hours, "included hours"),
            fixed_amount=_parse_optional(ctx, fixed_amount, parse_amount, "fixed amount"),
            period=period,
            valid_to=parse_date_or_exit(ctx, valid_to, "valid-to date"),
            next_indexation=parse_date_or_exit(ctx, next_indexation, "indexation date"),
            replace_active=replace,
        )
        click.echo(
            f"Created {agreement_type} agreement for '{customer_obj.name}' (ID: {agreement_id})"
        )
    except DomainError as e:
        handle_domain_error(ctx, e)


@agreement_group.command("list")
@click.option("--customer", help="Only agreements of this customer")
@click.pass_context
def list_agreements(ctx, customer: str | None):
    """List agreements.

    Agreements due for price indexation within a week are flagged.
    """
    customer_id = resolve_customer_or_exit(ctx, customer).id if customer else None
    agreements = AgreementService(ctx.obj["db"]).list_agreements(customer_id=customer_id)
    if not agreements:
        click.echo("No agreements found.")
        return

    today = date.today()
    click.echo("\nAgreements:")
    click.echo("-" * 90)
    for a in agreements:
        terms = format_currency(a.hourly_rate) + "/h"
        if a.type == AgreementType.TIMEBANK:
            terms += (
                f", {format_hours(a.included_hours)} per {a.period.value} period,"
                f" overtime {format_currency(a.overtime_rate)}/h"
            )
        elif a.fixed_amount is not None:
            terms += f", fixed {format_currency(a.fixed_amount)}"
        valid = f"{a.valid_from} - {a.valid_to or ''}"
        line = f"{a.id} | {a.type.value:8s} | {a.status.value:10s} | {valid:23s} | {terms}"
        if a.is_active and is_indexation_due(a, today):
            line += f" | indexation due {a.next_indexation}"
        click.echo(line)


@agreement_group.command("terminate")
@click.argument("agreement_id", metavar="AGREEMENT_ID")
@click.option("--valid-to", help="Last day of the agreement (default: today)")
@click.pass_context
def terminate_agreement(ctx, agreement_id: str, valid_to: str | None):
    """Terminate an active agreement."""
    service = AgreementService(ctx.obj["db"])
    end = parse_date_or_exit(ctx, valid_to, "valid-to date")
    try:
        service.terminate_agreement(agreement_id, valid_to=end)
        click.echo(f"Terminated agreement {agreement_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register agreement commands with main CLI."""
    cli.add_command(agreement_group, name="agreement")
