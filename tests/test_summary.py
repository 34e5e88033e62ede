"""Tests for billing summary aggregation."""

from datetime import date
from decimal import Decimal

import pytest

from timebill.domain.entities import BillingType, Customer, TimeEntry
from timebill.domain.errors import ValidationError
from timebill.domain.summary import UNKNOWN_CUSTOMER, grand_total, summarize


def _entry(entry_id, customer_id, hours, billing_type, rate, day=date(2026, 1, 10), **kwargs):
    return TimeEntry(
        id=entry_id,
        customer_id=customer_id,
        date=day,
        hours=Decimal(hours),
        billing_type=billing_type,
        hourly_rate=Decimal(rate),
        is_billable=kwargs.pop("is_billable", billing_type != BillingType.NONE),
        **kwargs,
    )


CUSTOMERS = {
    "c1": Customer(id="c1", customer_number="1001", name="Alfa AB", created_at=None),
    "c2": Customer(id="c2", customer_number="1002", name="Beta AB", created_at=None),
}


def test_summarize_example_month():
    entries = [
        _entry("e1", "c1", "5", BillingType.HOURLY, "500"),
        _entry("e2", "c1", "3", BillingType.TIMEBANK, "0"),
        _entry("e3", "c2", "2", BillingType.OVERTIME, "600"),
    ]

    c1, c2 = summarize(2026, 1, entries, CUSTOMERS)

    assert c1.customer_id == "c1"
    assert c1.total_hours == Decimal("8")
    assert c1.hourly_hours == Decimal("5")
    assert c1.timebank_hours == Decimal("3")
    assert c1.total_amount == Decimal("2500")
    assert c2.total_hours == Decimal("2")
    assert c2.overtime_hours == Decimal("2")
    assert c2.total_amount == Decimal("1200")
    assert grand_total([c1, c2]) == Decimal("3700")


def test_summarize_skips_exported_unbillable_and_other_months():
    entries = [
        _entry("e1", "c1", "1", BillingType.HOURLY, "500"),
        _entry("e2", "c1", "2", BillingType.HOURLY, "500", is_exported=True),
        _entry("e3", "c1", "4", BillingType.NONE, "0"),
        _entry("e4", "c1", "8", BillingType.HOURLY, "500", day=date(2026, 2, 1)),
        _entry("e5", "c1", "16", BillingType.HOURLY, "500", day=date(2025, 12, 31)),
    ]

    (summary,) = summarize(2026, 1, entries, CUSTOMERS)

    assert summary.total_hours == Decimal("1")
    assert summary.total_amount == Decimal("500")
    assert [e.id for e in summary.entries] == ["e1"]


def test_summarize_month_boundaries_inclusive():
    entries = [
        _entry("e1", "c1", "1", BillingType.HOURLY, "100", day=date(2026, 2, 1)),
        _entry("e2", "c1", "1", BillingType.HOURLY, "100", day=date(2026, 2, 28)),
    ]

    (summary,) = summarize(2026, 2, entries, CUSTOMERS)

    assert summary.total_hours == Decimal("2")


def test_summarize_sorted_by_customer_name():
    entries = [
        _entry("e1", "c2", "1", BillingType.HOURLY, "100"),
        _entry("e2", "c1", "1", BillingType.HOURLY, "100"),
    ]

    names = [s.customer_name for s in summarize(2026, 1, entries, CUSTOMERS)]

    assert names == ["Alfa AB", "Beta AB"]


def test_summarize_unknown_customer():
    (summary,) = summarize(2026, 1, [_entry("e1", "c9", "1", BillingType.HOURLY, "100")])

    assert summary.customer_name == UNKNOWN_CUSTOMER
    assert summary.customer_number == ""


def test_summarize_empty():
    assert summarize(2026, 1, []) == []


def test_summarize_invalid_month():
    with pytest.raises(ValidationError):
        summarize(2026, 13, [])


def test_service_summary(summary_service, sample_customer, hourly_agreement, other_customer, timebank_agreement, record_hours):
    record_hours(sample_customer.id, "2.5")
    record_hours(other_customer.id, "12")
    record_hours(other_customer.id, "1", is_internal=True)

    summaries = summary_service.list_billing_summary(2026, 1)

    by_name = {s.customer_name: s for s in summaries}
    assert [s.customer_name for s in summaries] == ["Advokatbyrån Ek", "Brf Solgläntan"]
    assert by_name["Brf Solgläntan"].total_amount == Decimal("2500")
    ek = by_name["Advokatbyrån Ek"]
    assert ek.timebank_hours == Decimal("10")
    assert ek.overtime_hours == Decimal("2")
    assert ek.total_hours == Decimal("12")
    assert ek.total_amount == Decimal("2400")


def test_service_summary_unbatched_only(summary_service, batch_service, sample_customer, hourly_agreement, record_hours):
    (first,) = record_hours(sample_customer.id, "1")
    record_hours(sample_customer.id, "2")
    batch_service.create_batch(sample_customer.id, 2026, 1, [first.id])

    (all_entries,) = summary_service.list_billing_summary(2026, 1)
    (unbatched,) = summary_service.list_billing_summary(2026, 1, unbatched_only=True)

    assert all_entries.total_hours == Decimal("3")
    assert unbatched.total_hours == Decimal("2")
