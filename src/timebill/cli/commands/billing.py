"""Billing summary and batch commands."""

import click
from timebill.cli.customer_resolution import resolve_customer_or_exit
from timebill.cli.date_filters import resolve_cli_period
from timebill.cli.error_handling import handle_domain_error
from timebill.domain.batch import BillingBatchService
from timebill.domain.errors import DomainError
from timebill.domain.summary import BillingSummaryService, grand_total
from timebill.utils.amount_parser import parse_amount
from timebill.utils.formatting import format_currency, format_hours


@click.group()
def billing_group():
    """Billing summaries and invoice batches."""
    pass


@billing_group.command("summary")
@click.option("--year", type=int, help="Period year (default: current year)")
@click.option("--month", type=int, help="Period month (1-12)")
@click.option("--this-month", is_flag=True, help="Current month (default)")
@click.option("--last-month", is_flag=True, help="Previous month")
@click.option("--unbatched", is_flag=True, help="Leave out entries already in a batch")
@click.pass_context
def billing_summary(
    ctx,
    year: int | None,
    month: int | None,
    this_month: bool,
    last_month: bool,
    unbatched: bool,
):
    """Show unexported billable time per customer for one month.

    Examples:
        timebill billing summary
        timebill billing summary --last-month
        timebill billing summary --year 2026 --month 1
    """
    year, month = resolve_cli_period(
        ctx, year=year, month=month, this_month=this_month, last_month=last_month
    )
    service = BillingSummaryService(ctx.obj["db"])
    try:
        summaries = service.list_billing_summary(year, month, unbatched_only=unbatched)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nBilling summary {year}-{month:02d}")
    click.echo("=" * 100)
    if not summaries:
        click.echo("No billable time found.")
        return

    click.echo(
        f"{'Customer':30s} {'Number':>8s} {'Total':>10s} {'Time bank':>10s} "
        f"{'Overtime':>10s} {'Hourly':>10s} {'Amount':>14s}"
    )
    click.echo("-" * 100)
    for s in summaries:
        click.echo(
            f"{s.customer_name:30s} {s.customer_number:>8s} {format_hours(s.total_hours):>10s} "
            f"{format_hours(s.timebank_hours):>10s} {format_hours(s.overtime_hours):>10s} "
            f"{format_hours(s.hourly_hours):>10s} {format_currency(s.total_amount):>14s}"
        )
    click.echo("-" * 100)
    click.echo(f"{'Total':>85s} {format_currency(grand_total(summaries)):>14s}")


@click.group()
def batch_group():
    """Create and advance billing batches."""
    pass


@batch_group.command("create")
@click.argument("customer", metavar="CUSTOMER")
@click.option("--year", type=int, required=True, help="Period year")
@click.option("--month", type=int, required=True, help="Period month (1-12)")
@click.option(
    "--entry",
    "entry_ids",
    multiple=True,
    help="Time entry ID to include (repeatable; default: all unbatched billable entries)",
)
@click.option("--total", help="Expected total amount; must match the entries")
@click.option("--notes", help="Free text stored on the batch")
@click.pass_context
def create_batch(
    ctx,
    customer: str,
    year: int,
    month: int,
    entry_ids: tuple[str, ...],
    total: str | None,
    notes: str | None,
):
    """Group a customer's billable entries of one month into a draft batch.

    CUSTOMER can be a customer ID, number or name.

    Examples:
        timebill billing batch create 1001 --year 2026 --month 1
        timebill billing batch create 1001 --year 2026 --month 1 --entry ID1 --entry ID2
    """
    db = ctx.obj["db"]
    customer_obj = resolve_customer_or_exit(ctx, customer)

    total_amount = None
    if total is not None:
        try:
            total_amount = parse_amount(total)
        except ValueError as e:
            click.echo(f"Error: Invalid total: {e}", err=True)
            ctx.exit(1)

    try:
        if not entry_ids:
            summaries = BillingSummaryService(db).list_billing_summary(
                year, month, unbatched_only=True
            )
            entry_ids = tuple(
                e.id
                for s in summaries
                if s.customer_id == customer_obj.id
                for e in s.entries
            )
            if not entry_ids:
                click.echo(
                    f"No unbatched billable time for '{customer_obj.name}' in {year}-{month:02d}."
                )
                return

        batch = BillingBatchService(db).create_batch(
            customer_id=customer_obj.id,
            year=year,
            month=month,
            entry_ids=list(entry_ids),
            total_amount=total_amount,
            acting_user=ctx.obj.get("user"),
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created batch {batch.batch_id} (ID: {batch.id})")
    click.echo(f"  Entries: {len(entry_ids)}")
    click.echo(f"  Total:   {format_currency(batch.total_amount)}")


@batch_group.command("list")
@click.option("--year", type=int, help="Only batches of this year")
@click.option("--month", type=int, help="Only batches of this month")
@click.pass_context
def list_batches(ctx, year: int | None, month: int | None):
    """List billing batches, newest first."""
    db = ctx.obj["db"]
    try:
        batches = BillingBatchService(db).list_batches(year=year, month=month)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not batches:
        click.echo("No batches found.")
        return

    names = {c.id: c.name for c in db.list_customers({b.customer_id for b in batches})}
    for b in batches:
        click.echo(
            f"{b.batch_id:26s} | {b.period_year}-{b.period_month:02d} | {b.status.value:8s} | "
            f"{names.get(b.customer_id, 'Unknown'):30s} | {format_currency(b.total_amount):>12s} | {b.id}"
        )


@batch_group.command("status")
@click.argument("batch_id", metavar="BATCH_ID")
@click.argument("new_status", metavar="NEW_STATUS")
@click.pass_context
def change_batch_status(ctx, batch_id: str, new_status: str):
    """Move a batch to its next status.

    Statuses run draft -> review -> exported -> locked, one step at a time.
    Exporting marks the batch's entries exported.
    """
    service = BillingBatchService(ctx.obj["db"])
    try:
        batch = service.advance_status(batch_id, new_status, acting_user=ctx.obj.get("user"))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Batch {batch.batch_id} is now {batch.status.value}")


@batch_group.command("show")
@click.argument("batch_id", metavar="BATCH_ID")
@click.pass_context
def show_batch(ctx, batch_id: str):
    """Show a batch with its time entries."""
    service = BillingBatchService(ctx.obj["db"])
    try:
        detail = service.get_batch_detail(batch_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    batch = detail.batch
    customer_name = detail.customer.name if detail.customer else "Unknown"
    click.echo(f"\nBatch {batch.batch_id} ({batch.status.value})")
    click.echo("-" * 80)
    click.echo(f"Customer: {customer_name}")
    click.echo(f"Period:   {batch.period_year}-{batch.period_month:02d}")
    click.echo(f"Total:    {format_currency(batch.total_amount)}")
    if batch.exported_at is not None:
        click.echo(f"Exported: {batch.exported_at:%Y-%m-%d %H:%M} by {batch.exported_by or '-'}")
    if batch.notes:
        click.echo(f"Notes:    {batch.notes}")
    click.echo("")
    for item in detail.entries:
        e = item.entry
        assignment = item.assignment.assignment_number if item.assignment else ""
        click.echo(
            f"{e.date} | {assignment:10s} | {format_hours(e.hours):>9s} | {e.billing_type.value:8s} | "
            f"{format_currency(e.amount):>10s} | {e.description or ''}"
        )


def register_commands(cli):
    """Register billing commands with main CLI."""
    billing_group.add_command(batch_group, name="batch")
    cli.add_command(billing_group, name="billing")
