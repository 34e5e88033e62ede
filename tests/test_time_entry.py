"""Tests for recording and maintaining time entries."""

from datetime import date
from decimal import Decimal

import pytest

from timebill.domain.entities import BillingType, TimeEntryDraft
from timebill.domain.errors import (
    ConflictError,
    NotFoundError,
    OvertimeConfirmationRequired,
    StaleLedgerError,
    ValidationError,
)
from timebill.domain.events import TIME_ENTRY_DELETED, TIME_ENTRY_RECORDED, TIME_ENTRY_UPDATED
from timebill.domain.time_entry import TimeEntryService


def _draft(customer, hours, day=date(2026, 1, 15), **kwargs):
    return TimeEntryDraft(customer_id=customer.id, date=day, hours=Decimal(hours), **kwargs)


def test_record_hourly_entry(time_entry_service, sample_customer, hourly_agreement, events):
    recorded = time_entry_service.record_time_entry(
        _draft(sample_customer, "2", description="Styrelsemöte"), acting_user="anna"
    )

    (entry_id,) = recorded.entry_ids
    entry = time_entry_service.get_time_entry(entry_id)
    assert entry.billing_type == BillingType.HOURLY
    assert entry.hourly_rate == Decimal("1000")
    assert entry.is_billable is True
    assert entry.agreement_id == hourly_agreement.id
    assert entry.created_by == "anna"
    assert entry.description == "Styrelsemöte"
    assert events.names() == [TIME_ENTRY_RECORDED]


def test_record_within_time_bank(time_entry_service, other_customer, timebank_agreement, temp_db):
    recorded = time_entry_service.record_time_entry(_draft(other_customer, "4"))

    entry = time_entry_service.get_time_entry(recorded.entry_ids[0])
    assert entry.billing_type == BillingType.TIMEBANK
    assert entry.amount == Decimal("0")
    assert temp_db.get_agreement(timebank_agreement.id).ledger_version == 1


def test_crossing_time_bank_needs_confirmation(time_entry_service, other_customer, timebank_agreement):
    time_entry_service.record_time_entry(_draft(other_customer, "8"))

    with pytest.raises(OvertimeConfirmationRequired) as excinfo:
        time_entry_service.record_time_entry(_draft(other_customer, "5"))

    assert "will be billed as overtime at" in str(excinfo.value)
    assert excinfo.value.classification.excess_hours == Decimal("3")
    # Nothing was written
    assert len(time_entry_service.list_time_entries(customer_id=other_customer.id)) == 1


def test_confirmed_crossing_is_split(time_entry_service, timebank_service, other_customer, timebank_agreement):
    time_entry_service.record_time_entry(_draft(other_customer, "8"))

    recorded = time_entry_service.record_time_entry(
        _draft(other_customer, "5"), confirm_overtime=True
    )

    entries = [time_entry_service.get_time_entry(i) for i in recorded.entry_ids]
    assert [(e.hours, e.billing_type) for e in entries] == [
        (Decimal("2"), BillingType.TIMEBANK),
        (Decimal("3"), BillingType.OVERTIME),
    ]
    assert entries[1].hourly_rate == Decimal("1200")

    status = timebank_service.get_time_bank_status(timebank_agreement.id, date(2026, 1, 31))
    assert status.hours_used == Decimal("10")
    assert status.hours_remaining == Decimal("0")
    assert status.overtime_hours == Decimal("3")


def test_classify_entry_is_read_only(time_entry_service, other_customer, timebank_agreement):
    classification = time_entry_service.classify_entry(_draft(other_customer, "12"))

    assert classification.excess_hours == Decimal("2")
    assert time_entry_service.list_time_entries() == []


def test_extra_billable_on_fixed_agreement(time_entry_service, agreement_service, sample_customer):
    agreement_service.create_agreement(
        customer_id=sample_customer.id,
        type="fixed",
        hourly_rate=Decimal("900"),
        fixed_amount=Decimal("5000"),
        valid_from=date(2026, 1, 1),
    )

    plain = time_entry_service.record_time_entry(_draft(sample_customer, "1"))
    extra = time_entry_service.record_time_entry(
        _draft(sample_customer, "1"), override_extra_billable=True
    )

    assert time_entry_service.get_time_entry(plain.entry_ids[0]).is_billable is False
    extra_entry = time_entry_service.get_time_entry(extra.entry_ids[0])
    assert extra_entry.billing_type == BillingType.HOURLY
    assert extra_entry.hourly_rate == Decimal("900")


def test_classification_retries_after_concurrent_write(temp_db, events, other_customer, timebank_agreement):
    """An entry written between reading and writing the bank is taken into account."""
    service = TimeEntryService(temp_db, events)
    interloper = TimeEntryService(temp_db)
    original_status_for = service.timebank.status_for
    calls = []

    def racing_status_for(agreement, reference_date):
        status = original_status_for(agreement, reference_date)
        if not calls:
            interloper.record_time_entry(_draft(other_customer, "9"))
        calls.append(status)
        return status

    service.timebank.status_for = racing_status_for

    with pytest.raises(OvertimeConfirmationRequired) as excinfo:
        service.record_time_entry(_draft(other_customer, "2"))

    assert len(calls) == 2
    assert excinfo.value.classification.excess_hours == Decimal("1")


def test_classification_gives_up_after_retries(temp_db, other_customer, timebank_agreement, monkeypatch):
    attempts = []

    def always_stale(**kwargs):
        attempts.append(kwargs["expected_ledger_version"])
        raise StaleLedgerError("changed", [kwargs["agreement_id"]])

    monkeypatch.setattr(temp_db, "create_time_entries", always_stale)
    service = TimeEntryService(temp_db, max_retries=2)

    with pytest.raises(ConflictError, match="changed on each of 2 attempts") as excinfo:
        service.record_time_entry(_draft(other_customer, "1"))

    assert attempts == [0, 0]
    assert excinfo.value.conflicting_ids == (timebank_agreement.id,)


def test_record_without_agreement(time_entry_service, sample_customer):
    with pytest.raises(ValidationError, match="no active agreement"):
        time_entry_service.record_time_entry(_draft(sample_customer, "1"))


def test_record_before_agreement_starts(time_entry_service, sample_customer, hourly_agreement):
    with pytest.raises(ValidationError, match="outside agreement"):
        time_entry_service.record_time_entry(_draft(sample_customer, "1", day=date(2025, 12, 31)))


def test_record_rejects_bad_hours(time_entry_service, sample_customer, hourly_agreement):
    with pytest.raises(ValidationError):
        time_entry_service.record_time_entry(_draft(sample_customer, "-2"))


def test_record_rejects_foreign_assignment(time_entry_service, assignment_service, sample_customer, other_customer, hourly_agreement):
    assignment_id = assignment_service.create_assignment(other_customer.id, "A-1", "Tvist")

    with pytest.raises(ValidationError, match="does not belong"):
        time_entry_service.record_time_entry(
            _draft(sample_customer, "1", assignment_id=assignment_id)
        )


def test_record_unknown_customer(time_entry_service):
    draft = TimeEntryDraft(customer_id="missing", date=date(2026, 1, 1), hours=Decimal("1"))
    with pytest.raises(NotFoundError):
        time_entry_service.record_time_entry(draft)


def test_update_reclassifies(time_entry_service, other_customer, timebank_agreement, events):
    (first,) = time_entry_service.record_time_entry(_draft(other_customer, "10")).entry_ids
    (second,) = time_entry_service.record_time_entry(
        _draft(other_customer, "2", day=date(2026, 2, 2))
    ).entry_ids

    # Moving into the exhausted January bank makes it overtime
    updated = time_entry_service.update_time_entry(second, date=date(2026, 1, 20))

    assert updated.billing_type == BillingType.OVERTIME
    assert updated.hourly_rate == Decimal("1200")
    assert TIME_ENTRY_UPDATED in events.names()

    # Shrinking the first entry keeps it in the bank
    shrunk = time_entry_service.update_time_entry(first, hours=Decimal("6"))
    assert shrunk.billing_type == BillingType.TIMEBANK


def test_update_rejects_crossing(time_entry_service, other_customer, timebank_agreement):
    time_entry_service.record_time_entry(_draft(other_customer, "8"))
    (entry_id,) = time_entry_service.record_time_entry(_draft(other_customer, "1")).entry_ids

    with pytest.raises(ValidationError, match="cross the time-bank balance"):
        time_entry_service.update_time_entry(entry_id, hours=Decimal("4"))


def test_update_description_only(time_entry_service, sample_customer, hourly_agreement):
    (entry_id,) = time_entry_service.record_time_entry(_draft(sample_customer, "1")).entry_ids

    updated = time_entry_service.update_time_entry(entry_id, description="Ny text")

    assert updated.description == "Ny text"
    assert updated.hours == Decimal("1")


def test_delete_entry(time_entry_service, sample_customer, hourly_agreement, events):
    (entry_id,) = time_entry_service.record_time_entry(_draft(sample_customer, "1")).entry_ids

    time_entry_service.delete_time_entry(entry_id)

    with pytest.raises(NotFoundError):
        time_entry_service.get_time_entry(entry_id)
    assert events.names()[-1] == TIME_ENTRY_DELETED


def test_list_entries_filters(time_entry_service, sample_customer, hourly_agreement):
    time_entry_service.record_time_entry(_draft(sample_customer, "1", day=date(2026, 1, 5)))
    time_entry_service.record_time_entry(_draft(sample_customer, "1", day=date(2026, 2, 5)))

    entries = time_entry_service.list_time_entries(
        customer_id=sample_customer.id, start_date=date(2026, 2, 1)
    )

    assert [e.date for e in entries] == [date(2026, 2, 5)]
