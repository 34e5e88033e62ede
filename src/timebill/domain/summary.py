"""Billing summary aggregation."""

from decimal import Decimal
from typing import Iterable, Mapping, Optional

from timebill.database.base import Database
from timebill.domain import errors
from timebill.domain.entities import (
    BILLABLE_BUCKETS,
    BillingSummary,
    BillingType,
    Customer,
    TimeEntry,
)
from timebill.utils.date_parser import month_range

UNKNOWN_CUSTOMER = "Unknown"


def summarize(
    year: int,
    month: int,
    entries: Iterable[TimeEntry],
    customers: Optional[Mapping[str, Customer]] = None,
) -> list[BillingSummary]:
    """Group unexported billable entries of one month per customer.

    Args:
        year: Period year
        month: Period month (1-12)
        entries: Candidate time entries; anything not billable, already
            exported or outside the month is skipped
        customers: Optional customer lookup for names and numbers

    Returns:
        One BillingSummary per customer, sorted by customer name
    """
    try:
        start, end = month_range(year, month)
    except ValueError as e:
        raise errors.ValidationError(str(e))
    customers = customers or {}

    summaries: dict[str, BillingSummary] = {}
    for entry in entries:
        if not entry.is_billable or entry.is_exported:
            continue
        if not start <= entry.date <= end:
            continue

        summary = summaries.get(entry.customer_id)
        if summary is None:
            customer = customers.get(entry.customer_id)
            summary = BillingSummary(
                customer_id=entry.customer_id,
                customer_name=customer.name if customer else UNKNOWN_CUSTOMER,
                customer_number=customer.customer_number if customer else "",
            )
            summaries[entry.customer_id] = summary

        summary.entries.append(entry)
        summary.total_amount += entry.hours * entry.hourly_rate

        if entry.billing_type not in BILLABLE_BUCKETS:
            continue
        summary.total_hours += entry.hours
        if entry.billing_type == BillingType.TIMEBANK:
            summary.timebank_hours += entry.hours
        elif entry.billing_type == BillingType.OVERTIME:
            summary.overtime_hours += entry.hours
        else:
            summary.hourly_hours += entry.hours

    return sorted(summaries.values(), key=lambda s: (s.customer_name, s.customer_id))


def grand_total(summaries: Iterable[BillingSummary]) -> Decimal:
    """Return the summed amount across customer summaries."""
    return sum((s.total_amount for s in summaries), Decimal("0"))


class BillingSummaryService:
    """Service for building per-customer billing summaries."""

    def __init__(self, db: Database):
        """Initialize billing summary service.

        Args:
            db: Database instance
        """
        self.db = db

    def list_billing_summary(
        self, year: int, month: int, unbatched_only: bool = False
    ) -> list[BillingSummary]:
        """Summarize unexported billable time for one month.

        Args:
            year: Period year
            month: Period month (1-12)
            unbatched_only: If True, leave out entries already placed in a
                draft or review batch

        Returns:
            List of BillingSummary sorted by customer name

        Raises:
            ValidationError: If month is out of range
        """
        try:
            start, end = month_range(year, month)
        except ValueError as e:
            raise errors.ValidationError(str(e))

        entries = self.db.list_time_entries(
            start_date=start, end_date=end, is_billable=True, is_exported=False
        )
        if unbatched_only:
            entries = [e for e in entries if e.export_batch_id is None]

        customer_ids = {e.customer_id for e in entries}
        customers = {c.id: c for c in self.db.list_customers(customer_ids)} if customer_ids else {}
        return summarize(year, month, entries, customers)
