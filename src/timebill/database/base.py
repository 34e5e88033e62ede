"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from timebill.domain.entities import (
    Agreement,
    AgreementPeriod,
    AgreementType,
    Assignment,
    BatchStatus,
    BillingBatch,
    BillingSplit,
    BillingType,
    Customer,
    TimeEntry,
)


class Database(ABC):
    """Abstract database interface for timebill.

    Operations that touch more than one row commit atomically: either every
    row is written or none is.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Customer operations
    @abstractmethod
    def create_customer(self, customer_number: str, name: str) -> str:
        """Create a customer. Returns customer ID."""
        pass

    @abstractmethod
    def get_customer(self, customer_id: str) -> Optional[Customer]:
        """Get customer by ID."""
        pass

    @abstractmethod
    def get_customer_by_number(self, customer_number: str) -> Optional[Customer]:
        """Get customer by customer number."""
        pass

    @abstractmethod
    def list_customers(self, customer_ids: Optional[Iterable[str]] = None) -> list[Customer]:
        """List customers, optionally restricted to the given IDs."""
        pass

    # Assignment operations
    @abstractmethod
    def create_assignment(self, customer_id: str, assignment_number: str, title: str) -> str:
        """Create an assignment. Returns assignment ID."""
        pass

    @abstractmethod
    def get_assignment(self, assignment_id: str) -> Optional[Assignment]:
        """Get assignment by ID."""
        pass

    @abstractmethod
    def list_assignments(
        self,
        customer_id: Optional[str] = None,
        assignment_ids: Optional[Iterable[str]] = None,
    ) -> list[Assignment]:
        """List assignments, optionally filtered by customer or IDs."""
        pass

    # Agreement operations
    @abstractmethod
    def create_agreement(
        self,
        customer_id: str,
        type: AgreementType,
        hourly_rate: Decimal,
        valid_from: date,
        overtime_rate: Optional[Decimal] = None,
        included_hours: Optional[Decimal] = None,
        fixed_amount: Optional[Decimal] = None,
        period: Optional[AgreementPeriod] = None,
        valid_to: Optional[date] = None,
        next_indexation: Optional[date] = None,
        replaces: Optional[tuple[str, date]] = None,
    ) -> str:
        """Create an active agreement. Returns agreement ID.

        Args:
            replaces: Optional (agreement_id, valid_to) of the currently active
                agreement to terminate in the same transaction
        """
        pass

    @abstractmethod
    def get_agreement(self, agreement_id: str) -> Optional[Agreement]:
        """Get agreement by ID."""
        pass

    @abstractmethod
    def list_agreements(
        self,
        customer_id: Optional[str] = None,
        active_only: bool = False,
    ) -> list[Agreement]:
        """List agreements, optionally filtered by customer and status."""
        pass

    @abstractmethod
    def terminate_agreement(self, agreement_id: str, valid_to: date) -> None:
        """Mark an active agreement as terminated."""
        pass

    # Time entry operations
    @abstractmethod
    def create_time_entries(
        self,
        customer_id: str,
        date: date,
        lines: Sequence[BillingSplit],
        assignment_id: Optional[str] = None,
        agreement_id: Optional[str] = None,
        expected_ledger_version: Optional[int] = None,
        description: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> list[str]:
        """Persist one time entry per classified line. Returns entry IDs.

        When ``expected_ledger_version`` is given, the agreement's ledger
        version is compared and bumped in the same transaction; a mismatch
        raises StaleLedgerError and nothing is written.
        """
        pass

    @abstractmethod
    def get_time_entry(self, entry_id: str) -> Optional[TimeEntry]:
        """Get time entry by ID."""
        pass

    @abstractmethod
    def list_time_entries(
        self,
        customer_id: Optional[str] = None,
        agreement_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        is_billable: Optional[bool] = None,
        is_exported: Optional[bool] = None,
        export_batch_id: Optional[str] = None,
        entry_ids: Optional[Iterable[str]] = None,
    ) -> list[TimeEntry]:
        """List time entries with optional filters, ordered by date."""
        pass

    @abstractmethod
    def update_time_entry(
        self,
        entry_id: str,
        date: Optional[date] = None,
        hours: Optional[Decimal] = None,
        billing_type: Optional[BillingType] = None,
        hourly_rate: Optional[Decimal] = None,
        is_billable: Optional[bool] = None,
        description: Optional[str] = None,
    ) -> None:
        """Update fields of an unexported time entry."""
        pass

    @abstractmethod
    def delete_time_entry(self, entry_id: str) -> None:
        """Delete an unexported time entry."""
        pass

    # Billing batch operations
    @abstractmethod
    def create_batch(
        self,
        batch_id: str,
        customer_id: str,
        period_year: int,
        period_month: int,
        total_amount: Decimal,
        entry_ids: Sequence[str],
        created_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> str:
        """Insert a draft batch and stamp its entries. Returns the batch row ID.

        Entries are stamped only if they carry no batch yet; if any entry was
        taken in the meantime, raises ConflictError and nothing is written.
        """
        pass

    @abstractmethod
    def get_batch(self, batch_id: str) -> Optional[BillingBatch]:
        """Get billing batch by row ID."""
        pass

    @abstractmethod
    def list_batches(
        self,
        period_year: Optional[int] = None,
        period_month: Optional[int] = None,
        customer_id: Optional[str] = None,
    ) -> list[BillingBatch]:
        """List billing batches, newest first."""
        pass

    @abstractmethod
    def update_batch_status(
        self,
        batch_id: str,
        expected_status: BatchStatus,
        new_status: BatchStatus,
        exported_at: Optional[datetime] = None,
        exported_by: Optional[str] = None,
    ) -> None:
        """Move a batch from ``expected_status`` to ``new_status``.

        Moving to exported also marks every entry of the batch as exported in
        the same transaction. Raises ConflictError if the batch is no longer
        in ``expected_status``.
        """
        pass
