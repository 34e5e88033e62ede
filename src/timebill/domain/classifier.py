"""Billing line classification.

Decides how a new time entry is billed under the customer's agreement.
A time-bank entry larger than the remaining balance is split: the
remaining hours stay in the bank and the excess becomes overtime.
"""

from decimal import Decimal
from typing import Optional

from timebill.domain import errors
from timebill.domain.entities import (
    Agreement,
    AgreementType,
    BillingSplit,
    BillingType,
    Classification,
    TimeBankStatus,
    TimeEntryDraft,
)
from timebill.utils.amount_parser import validate_hours

ZERO = Decimal("0")


def _single(hours: Decimal, billing_type: BillingType, rate: Decimal) -> Classification:
    line = BillingSplit(hours=hours, billing_type=billing_type, rate=rate)
    return Classification(
        billing_type=billing_type,
        rate=rate,
        is_billable=line.is_billable,
        excess_hours=ZERO,
        lines=(line,),
    )


def _not_billed(hours: Decimal) -> Classification:
    return _single(hours, BillingType.NONE, ZERO)


def classify(
    entry: TimeEntryDraft,
    agreement: Agreement,
    prior_status: Optional[TimeBankStatus] = None,
    explicit_override: bool = False,
) -> Classification:
    """Classify a time entry against an agreement.

    Args:
        entry: The entry being recorded
        agreement: The customer's agreement covering the entry date
        prior_status: Time-bank status before this entry; None means the
            whole pool is still available
        explicit_override: The user marked the work as extra billable

    Returns:
        Classification with the rows to persist and any overtime excess

    Raises:
        ValidationError: If hours are invalid or the time-bank agreement
            lacks its overtime rate
    """
    try:
        validate_hours(entry.hours)
    except ValueError as e:
        raise errors.ValidationError(str(e))

    if entry.is_internal:
        return _not_billed(entry.hours)

    if agreement.type == AgreementType.HOURLY:
        return _single(entry.hours, BillingType.HOURLY, agreement.hourly_rate)

    if agreement.type == AgreementType.FIXED:
        if explicit_override:
            # Extra work outside the fixed scope
            return _single(entry.hours, BillingType.HOURLY, agreement.hourly_rate)
        return _not_billed(entry.hours)

    if agreement.overtime_rate is None:
        raise errors.ValidationError(f"Time-bank agreement {agreement.id} has no overtime rate")
    overtime_rate = agreement.overtime_rate

    if explicit_override:
        return _single(entry.hours, BillingType.OVERTIME, overtime_rate)

    if prior_status is not None:
        remaining = prior_status.hours_remaining
    else:
        remaining = agreement.included_hours or ZERO

    if entry.hours <= remaining:
        return _single(entry.hours, BillingType.TIMEBANK, ZERO)

    excess = entry.hours - remaining
    overtime_line = BillingSplit(hours=excess, billing_type=BillingType.OVERTIME, rate=overtime_rate)
    if remaining > 0:
        lines = (
            BillingSplit(hours=remaining, billing_type=BillingType.TIMEBANK, rate=ZERO),
            overtime_line,
        )
        billing_type, rate = BillingType.TIMEBANK, ZERO
    else:
        lines = (overtime_line,)
        billing_type, rate = BillingType.OVERTIME, overtime_rate

    return Classification(
        billing_type=billing_type,
        rate=rate,
        is_billable=True,
        excess_hours=excess,
        lines=lines,
    )
