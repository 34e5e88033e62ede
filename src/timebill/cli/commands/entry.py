"""Time entry commands."""

import click
from timebill.cli.customer_resolution import resolve_customer_or_exit
from timebill.cli.date_filters import parse_date_or_exit
from timebill.cli.error_handling import handle_domain_error
from timebill.domain.customer import AssignmentService
from timebill.domain.entities import Classification, TimeEntryDraft
from timebill.domain.errors import DomainError, OvertimeConfirmationRequired
from timebill.domain.time_entry import DEFAULT_CLASSIFY_RETRIES, TimeEntryService
from timebill.utils.amount_parser import parse_hours
from timebill.utils.formatting import format_currency, format_hours


def _service(ctx) -> TimeEntryService:
    retries = ctx.obj.get("classify_retries", DEFAULT_CLASSIFY_RETRIES)
    return TimeEntryService(ctx.obj["db"], max_retries=retries)


def _build_draft(ctx, customer: str, hours: str, entry_date: str, internal: bool,
                 assignment: str | None = None, description: str | None = None) -> TimeEntryDraft:
    customer_obj = resolve_customer_or_exit(ctx, customer)
    try:
        parsed_hours = parse_hours(hours)
    except ValueError as e:
        click.echo(f"Error: Invalid hours: {e}", err=True)
        ctx.exit(1)

    assignment_id = None
    if assignment:
        try:
            assignment_id = AssignmentService(ctx.obj["db"]).resolve_assignment(assignment).id
        except DomainError as e:
            handle_domain_error(ctx, e)

    return TimeEntryDraft(
        customer_id=customer_obj.id,
        date=parse_date_or_exit(ctx, entry_date, "date"),
        hours=parsed_hours,
        assignment_id=assignment_id,
        description=description,
        is_internal=internal,
    )


def _echo_classification(classification: Classification) -> None:
    for line in classification.lines:
        click.echo(
            f"  {format_hours(line.hours):>9s} {line.billing_type.value:8s} "
            f"@ {format_currency(line.rate)}/h = {format_currency(line.amount)}"
        )
    if len(classification.lines) > 1:
        click.echo(f"  Total: {format_currency(classification.total_amount)}")


@click.group()
def entry_group():
    """Record and list time entries."""
    pass


@entry_group.command("classify")
@click.argument("customer", metavar="CUSTOMER")
@click.option("--hours", required=True, help="Hours worked, e.g. 1.5 or 1:30")
@click.option("--date", "entry_date", default="today", show_default=True, help="Date worked")
@click.option("--extra-billable", is_flag=True, help="Bill on top of the agreement")
@click.option("--internal", is_flag=True, help="Internal work, never billed")
@click.pass_context
def classify_entry(ctx, customer: str, hours: str, entry_date: str, extra_billable: bool, internal: bool):
    """Preview how time would be billed, without recording it."""
    draft = _build_draft(ctx, customer, hours, entry_date, internal)
    try:
        classification = _service(ctx).classify_entry(
            draft, override_extra_billable=extra_billable
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Billing type: {classification.billing_type.value}")
    _echo_classification(classification)
    if classification.requires_confirmation:
        click.echo(f"Warning: {format_hours(classification.excess_hours)} beyond the time bank")


@entry_group.command("add")
@click.argument("customer", metavar="CUSTOMER")
@click.option("--hours", required=True, help="Hours worked, e.g. 1.5 or 1:30")
@click.option("--date", "entry_date", default="today", show_default=True, help="Date worked")
@click.option("--assignment", help="Assignment ID or number")
@click.option("--description", help="What was done")
@click.option("--extra-billable", is_flag=True, help="Bill on top of the agreement")
@click.option("--internal", is_flag=True, help="Internal work, never billed")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Accept overtime without asking")
@click.pass_context
def add_entry(
    ctx,
    customer: str,
    hours: str,
    entry_date: str,
    assignment: str | None,
    description: str | None,
    extra_billable: bool,
    internal: bool,
    assume_yes: bool,
):
    """Record time worked for a customer.

    Hours beyond the remaining time bank are billed as overtime; you are
    asked to confirm unless --yes is given.

    Examples:
        timebill entry add 1001 --hours 2 --description "Board meeting"
        timebill entry add 1001 --hours 1:30 --date yesterday --extra-billable
    """
    draft = _build_draft(ctx, customer, hours, entry_date, internal, assignment, description)
    service = _service(ctx)
    user = ctx.obj.get("user")

    try:
        try:
            recorded = service.record_time_entry(
                draft,
                override_extra_billable=extra_billable,
                confirm_overtime=assume_yes,
                acting_user=user,
            )
        except OvertimeConfirmationRequired as e:
            click.echo(f"Warning: {e}")
            if not click.confirm("Record the entry anyway?", default=False):
                click.echo("Cancelled.")
                return
            recorded = service.record_time_entry(
                draft,
                override_extra_billable=extra_billable,
                confirm_overtime=True,
                acting_user=user,
            )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Recorded {format_hours(draft.hours)} on {draft.date}")
    _echo_classification(recorded.classification)
    for entry_id in recorded.entry_ids:
        click.echo(f"  Entry ID: {entry_id}")


@entry_group.command("list")
@click.option("--customer", help="Only entries of this customer")
@click.option("--start-date", help="First date to include")
@click.option("--end-date", help="Last date to include")
@click.pass_context
def list_entries(ctx, customer: str | None, start_date: str | None, end_date: str | None):
    """List time entries."""
    customer_id = resolve_customer_or_exit(ctx, customer).id if customer else None
    entries = _service(ctx).list_time_entries(
        customer_id=customer_id,
        start_date=parse_date_or_exit(ctx, start_date, "start date"),
        end_date=parse_date_or_exit(ctx, end_date, "end date"),
    )
    if not entries:
        click.echo("No time entries found.")
        return

    for e in entries:
        state = "exported" if e.is_exported else ("batched" if e.export_batch_id else "")
        click.echo(
            f"{e.date} | {format_hours(e.hours):>9s} | {e.billing_type.value:8s} | "
            f"{format_currency(e.amount):>10s} | {state:8s} | {e.description or ''} | {e.id}"
        )


def register_commands(cli):
    """Register time entry commands with main CLI."""
    cli.add_command(entry_group, name="entry")
