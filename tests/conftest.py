"""Shared pytest fixtures for timebill tests."""

import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

from timebill.database.factories import create_sqlite_database
from timebill.domain.agreement import AgreementService
from timebill.domain.batch import BillingBatchService
from timebill.domain.customer import AssignmentService, CustomerService
from timebill.domain.entities import TimeEntryDraft
from timebill.domain.events import RecordingEventSink
from timebill.domain.summary import BillingSummaryService
from timebill.domain.time_entry import TimeEntryService
from timebill.domain.timebank import TimeBankService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for CLI tests
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def events():
    """Collect billing events emitted by services."""
    return RecordingEventSink()


@pytest.fixture
def customer_service(temp_db):
    return CustomerService(temp_db)


@pytest.fixture
def assignment_service(temp_db):
    return AssignmentService(temp_db)


@pytest.fixture
def agreement_service(temp_db, events):
    return AgreementService(temp_db, events)


@pytest.fixture
def time_entry_service(temp_db, events):
    return TimeEntryService(temp_db, events)


@pytest.fixture
def batch_service(temp_db, events):
    return BillingBatchService(temp_db, events)


@pytest.fixture
def summary_service(temp_db):
    return BillingSummaryService(temp_db)


@pytest.fixture
def timebank_service(temp_db):
    return TimeBankService(temp_db)


@pytest.fixture
def sample_customer(customer_service):
    """Create a sample customer for testing."""
    customer_id = customer_service.create_customer(customer_number="1001", name="Brf Solgläntan")
    return customer_service.get_customer(customer_id)


@pytest.fixture
def other_customer(customer_service):
    customer_id = customer_service.create_customer(customer_number="1002", name="Advokatbyrån Ek")
    return customer_service.get_customer(customer_id)


@pytest.fixture
def hourly_agreement(agreement_service, sample_customer):
    """Hourly agreement at 1000 kr/h from 2026-01-01."""
    agreement_id = agreement_service.create_agreement(
        customer_id=sample_customer.id,
        type="hourly",
        hourly_rate=Decimal("1000"),
        valid_from=date(2026, 1, 1),
    )
    return agreement_service.get_agreement(agreement_id)


@pytest.fixture
def timebank_agreement(agreement_service, other_customer):
    """Monthly time bank of 10 hours, overtime at 1200 kr/h."""
    agreement_id = agreement_service.create_agreement(
        customer_id=other_customer.id,
        type="timebank",
        hourly_rate=Decimal("1000"),
        overtime_rate=Decimal("1200"),
        included_hours=Decimal("10"),
        period="monthly",
        valid_from=date(2026, 1, 1),
    )
    return agreement_service.get_agreement(agreement_id)


@pytest.fixture
def record_hours(time_entry_service):
    """Record hours for a customer and return the created entries."""

    def _record(customer_id, hours, day=date(2026, 1, 15), **kwargs):
        draft = TimeEntryDraft(
            customer_id=customer_id,
            date=day,
            hours=Decimal(str(hours)),
            is_internal=kwargs.pop("is_internal", False),
            description=kwargs.pop("description", None),
            assignment_id=kwargs.pop("assignment_id", None),
        )
        recorded = time_entry_service.record_time_entry(draft, confirm_overtime=True, **kwargs)
        return [time_entry_service.get_time_entry(entry_id) for entry_id in recorded.entry_ids]

    return _record


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
