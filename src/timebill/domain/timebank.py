"""Time-bank accounting.

A time-bank agreement grants a pool of included hours per period window
(calendar month or calendar year). Entries classified as ``timebank`` draw
from the pool; entries classified as ``overtime`` are tracked beside it.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from timebill.database.base import Database
from timebill.domain import errors
from timebill.domain.entities import (
    Agreement,
    AgreementPeriod,
    AgreementType,
    BillingType,
    TimeBankStatus,
    TimeEntry,
)
from timebill.utils.date_parser import month_range, year_range

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def period_window(period: AgreementPeriod, reference_date: date) -> tuple[date, date]:
    """Return the (start, end) of the period containing ``reference_date``."""
    if AgreementPeriod(period) == AgreementPeriod.MONTHLY:
        return month_range(reference_date.year, reference_date.month)
    return year_range(reference_date.year)


def compute_status(
    agreement: Agreement,
    entries_in_period: Iterable[TimeEntry],
    reference_date: date,
) -> TimeBankStatus:
    """Compute time-bank consumption for the period containing ``reference_date``.

    Args:
        agreement: A time-bank agreement
        entries_in_period: Entries of the agreement's customer dated inside
            the period window
        reference_date: Any date inside the period to report on

    Returns:
        TimeBankStatus for the window

    Raises:
        ValidationError: If the agreement is not a time-bank agreement or an
            entry does not belong to the customer or window
    """
    if agreement.type != AgreementType.TIMEBANK:
        raise errors.ValidationError(f"Agreement {agreement.id} is not a time-bank agreement")
    if agreement.period is None:
        raise errors.ValidationError(f"Time-bank agreement {agreement.id} has no period")

    start, end = period_window(agreement.period, reference_date)
    included = agreement.included_hours or ZERO

    hours_used = ZERO
    overtime_classified = ZERO
    for entry in entries_in_period:
        if entry.customer_id != agreement.customer_id:
            raise errors.ValidationError(
                f"Time entry {entry.id} belongs to customer {entry.customer_id}, "
                f"not {agreement.customer_id}"
            )
        if not start <= entry.date <= end:
            raise errors.ValidationError(
                f"Time entry {entry.id} dated {entry.date} is outside period {start} - {end}"
            )
        if entry.billing_type == BillingType.TIMEBANK:
            hours_used += entry.hours
        elif entry.billing_type == BillingType.OVERTIME:
            overtime_classified += entry.hours

    hours_remaining = max(ZERO, included - hours_used)
    overtime_hours = overtime_classified + max(ZERO, hours_used - included)

    if included > 0:
        percent_used = min(hours_used / included * HUNDRED, HUNDRED)
        percent_used = percent_used.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        is_overtime = hours_used > included
    else:
        # No pool to measure against
        percent_used = ZERO
        is_overtime = overtime_hours > 0

    return TimeBankStatus(
        agreement_id=agreement.id,
        period_start=start,
        period_end=end,
        included_hours=included,
        hours_used=hours_used,
        hours_remaining=hours_remaining,
        overtime_hours=overtime_hours,
        percent_used=percent_used,
        is_overtime=is_overtime,
    )


class TimeBankService:
    """Service for reading time-bank balances."""

    def __init__(self, db: Database):
        """Initialize time-bank service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_time_bank_status(
        self, agreement_id: str, reference_date: Optional[date] = None
    ) -> Optional[TimeBankStatus]:
        """Get the time-bank status of an agreement.

        Args:
            agreement_id: Agreement ID
            reference_date: Date inside the period to report on (default: today)

        Returns:
            TimeBankStatus, or None if the agreement is not a time-bank agreement

        Raises:
            NotFoundError: If the agreement doesn't exist
        """
        agreement = self.db.get_agreement(agreement_id)
        if agreement is None:
            raise errors.NotFoundError(errors.agreement_not_found(agreement_id))
        if agreement.type != AgreementType.TIMEBANK:
            return None
        return self.status_for(agreement, reference_date or date.today())

    def status_for(self, agreement: Agreement, reference_date: date) -> TimeBankStatus:
        """Load the agreement's entries for the window and compute its status."""
        if agreement.period is None:
            raise errors.ValidationError(f"Time-bank agreement {agreement.id} has no period")
        start, end = period_window(agreement.period, reference_date)
        entries = self.db.list_time_entries(
            customer_id=agreement.customer_id,
            agreement_id=agreement.id,
            start_date=start,
            end_date=end,
        )
        return compute_status(agreement, entries, reference_date)
