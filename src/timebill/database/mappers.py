"""Mapper functions to convert between domain models and SQLAlchemy models.

Enum-valued columns are stored as plain strings and converted here.
"""

from decimal import Decimal

from timebill.domain import entities as domain
from timebill.database.models import (
    Agreement as ORMAgreement,
    Assignment as ORMAssignment,
    BillingBatch as ORMBillingBatch,
    Customer as ORMCustomer,
    TimeEntry as ORMTimeEntry,
)


def _optional_decimal(value) -> Decimal | None:
    return None if value is None else Decimal(value)


def customer_to_domain(orm_customer: ORMCustomer) -> domain.Customer:
    """Convert SQLAlchemy Customer model to domain Customer entity."""
    return domain.Customer(
        id=orm_customer.id,
        customer_number=orm_customer.customer_number,
        name=orm_customer.name,
        created_at=orm_customer.created_at,
    )


def assignment_to_domain(orm_assignment: ORMAssignment) -> domain.Assignment:
    """Convert SQLAlchemy Assignment model to domain Assignment entity."""
    return domain.Assignment(
        id=orm_assignment.id,
        customer_id=orm_assignment.customer_id,
        assignment_number=orm_assignment.assignment_number,
        title=orm_assignment.title,
        created_at=orm_assignment.created_at,
    )


def agreement_to_domain(orm_agreement: ORMAgreement) -> domain.Agreement:
    """Convert SQLAlchemy Agreement model to domain Agreement entity."""
    return domain.Agreement(
        id=orm_agreement.id,
        customer_id=orm_agreement.customer_id,
        type=domain.AgreementType(orm_agreement.type),
        status=domain.AgreementStatus(orm_agreement.status),
        hourly_rate=Decimal(orm_agreement.hourly_rate),
        overtime_rate=_optional_decimal(orm_agreement.overtime_rate),
        included_hours=_optional_decimal(orm_agreement.included_hours),
        fixed_amount=_optional_decimal(orm_agreement.fixed_amount),
        period=domain.AgreementPeriod(orm_agreement.period) if orm_agreement.period else None,
        valid_from=orm_agreement.valid_from,
        valid_to=orm_agreement.valid_to,
        next_indexation=orm_agreement.next_indexation,
        ledger_version=orm_agreement.ledger_version,
        created_at=orm_agreement.created_at,
    )


def time_entry_to_domain(orm_entry: ORMTimeEntry) -> domain.TimeEntry:
    """Convert SQLAlchemy TimeEntry model to domain TimeEntry entity."""
    return domain.TimeEntry(
        id=orm_entry.id,
        customer_id=orm_entry.customer_id,
        assignment_id=orm_entry.assignment_id,
        agreement_id=orm_entry.agreement_id,
        date=orm_entry.date,
        hours=Decimal(orm_entry.hours),
        billing_type=domain.BillingType(orm_entry.billing_type),
        hourly_rate=Decimal(orm_entry.hourly_rate or 0),
        is_billable=orm_entry.is_billable,
        is_exported=orm_entry.is_exported,
        export_batch_id=orm_entry.export_batch_id,
        description=orm_entry.description,
        created_by=orm_entry.created_by,
        created_at=orm_entry.created_at,
    )


def batch_to_domain(orm_batch: ORMBillingBatch) -> domain.BillingBatch:
    """Convert SQLAlchemy BillingBatch model to domain BillingBatch entity."""
    return domain.BillingBatch(
        id=orm_batch.id,
        batch_id=orm_batch.batch_id,
        customer_id=orm_batch.customer_id,
        period_year=orm_batch.period_year,
        period_month=orm_batch.period_month,
        status=domain.BatchStatus(orm_batch.status),
        total_amount=Decimal(orm_batch.total_amount),
        exported_at=orm_batch.exported_at,
        exported_by=orm_batch.exported_by,
        notes=orm_batch.notes,
        created_by=orm_batch.created_by,
        created_at=orm_batch.created_at,
    )
