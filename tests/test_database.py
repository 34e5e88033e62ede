"""Tests for the SQLAlchemy database implementation."""

from datetime import date
from decimal import Decimal

import pytest

from timebill.database.base import Database
from timebill.database.factories import (
    create_database,
    create_sqlite_database,
    resolve_database_url,
)
from timebill.domain.entities import (
    AgreementPeriod,
    AgreementStatus,
    AgreementType,
    BatchStatus,
    BillingSplit,
    BillingType,
)
from timebill.domain.errors import (
    ConflictError,
    NotFoundError,
    PersistenceError,
    StaleLedgerError,
)


def test_database_implements_interface(temp_db):
    assert isinstance(temp_db, Database)


def test_factory_uses_environment(tmp_path, monkeypatch):
    db_path = tmp_path / "env.db"
    monkeypatch.setenv("TIMEBILL_DB_PATH", str(db_path))

    db = create_sqlite_database()

    assert db.database_url == f"sqlite:///{db_path}"


def test_factory_honours_database_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'url.db'}"
    monkeypatch.delenv("TIMEBILL_DB_PATH", raising=False)
    monkeypatch.setenv("TIMEBILL_DATABASE_URL", url)

    db = create_database()

    assert db.database_url == url
    assert (tmp_path / "url.db").exists()


def test_database_path_wins_over_url(tmp_path, monkeypatch):
    monkeypatch.setenv("TIMEBILL_DATABASE_URL", "postgresql://user@host/timebill")
    monkeypatch.setenv("TIMEBILL_DB_PATH", str(tmp_path / "env.db"))

    assert resolve_database_url() == f"sqlite:///{tmp_path / 'env.db'}"
    assert resolve_database_url(database_path="x.db") == "sqlite:///x.db"
    monkeypatch.delenv("TIMEBILL_DB_PATH")
    assert resolve_database_url() == "postgresql://user@host/timebill"
    assert resolve_database_url(database_url="sqlite://") == "sqlite://"


def test_agreement_round_trip(temp_db, sample_customer):
    agreement_id = temp_db.create_agreement(
        customer_id=sample_customer.id,
        type=AgreementType.TIMEBANK,
        hourly_rate=Decimal("1000"),
        valid_from=date(2026, 1, 1),
        overtime_rate=Decimal("1200"),
        included_hours=Decimal("10"),
        period=AgreementPeriod.MONTHLY,
        next_indexation=date(2027, 1, 1),
    )

    agreement = temp_db.get_agreement(agreement_id)
    assert agreement.type == AgreementType.TIMEBANK
    assert agreement.period == AgreementPeriod.MONTHLY
    assert agreement.status == AgreementStatus.ACTIVE
    assert agreement.included_hours == Decimal("10")
    assert isinstance(agreement.overtime_rate, Decimal)
    assert agreement.next_indexation == date(2027, 1, 1)


def test_get_missing_rows_return_none(temp_db):
    assert temp_db.get_customer("missing") is None
    assert temp_db.get_agreement("missing") is None
    assert temp_db.get_time_entry("missing") is None
    assert temp_db.get_batch("missing") is None


def test_stale_ledger_version_rejected(temp_db, timebank_agreement, other_customer):
    lines = [BillingSplit(hours=Decimal("1"), billing_type=BillingType.TIMEBANK, rate=Decimal("0"))]
    temp_db.create_time_entries(
        customer_id=other_customer.id,
        date=date(2026, 1, 5),
        lines=lines,
        agreement_id=timebank_agreement.id,
        expected_ledger_version=0,
    )

    with pytest.raises(StaleLedgerError):
        temp_db.create_time_entries(
            customer_id=other_customer.id,
            date=date(2026, 1, 6),
            lines=lines,
            agreement_id=timebank_agreement.id,
            expected_ledger_version=0,
        )

    assert len(temp_db.list_time_entries(agreement_id=timebank_agreement.id)) == 1
    assert temp_db.get_agreement(timebank_agreement.id).ledger_version == 1


def test_replacement_rolls_back_when_termination_fails(temp_db, sample_customer, hourly_agreement):
    temp_db.terminate_agreement(hourly_agreement.id, date(2026, 3, 31))

    with pytest.raises(ConflictError):
        temp_db.create_agreement(
            customer_id=sample_customer.id,
            type=AgreementType.HOURLY,
            hourly_rate=Decimal("1100"),
            valid_from=date(2026, 4, 1),
            replaces=(hourly_agreement.id, date(2026, 3, 31)),
        )

    assert [a.id for a in temp_db.list_agreements(customer_id=sample_customer.id)] == [
        hourly_agreement.id
    ]


def test_terminate_unknown_agreement(temp_db):
    with pytest.raises(NotFoundError):
        temp_db.terminate_agreement("missing", date(2026, 1, 1))


def test_update_batch_status_requires_expected_status(temp_db, batch_service, sample_customer, hourly_agreement, record_hours):
    (entry,) = record_hours(sample_customer.id, "1")
    batch = batch_service.create_batch(sample_customer.id, 2026, 1, [entry.id])

    with pytest.raises(ConflictError, match="no longer review"):
        temp_db.update_batch_status(
            batch.id, expected_status=BatchStatus.REVIEW, new_status=BatchStatus.EXPORTED
        )
    assert temp_db.get_time_entry(entry.id).is_exported is False


def test_integrity_error_becomes_persistence_error(temp_db):
    with pytest.raises(PersistenceError) as excinfo:
        temp_db.create_assignment(customer_id=None, assignment_number="A-1", title="Utan kund")

    assert excinfo.value.__cause__ is not None
    # The session is usable after the failure
    assert temp_db.list_assignments() == []
