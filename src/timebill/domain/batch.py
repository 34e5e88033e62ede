"""Billing batch lifecycle.

A batch freezes a customer's billable entries for one month. It moves
forward through draft, review, exported and locked; reaching exported marks
its entries exported, after which they can no longer change.
"""

import uuid
from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional, Sequence

import structlog

from timebill.database.base import Database
from timebill.domain import errors
from timebill.domain.entities import (
    BatchDetail,
    BatchDetailEntry,
    BatchStatus,
    BillingBatch,
)
from timebill.domain.events import (
    BATCH_CREATED,
    BATCH_STATUS_CHANGED,
    BillingEventSink,
    LoggingEventSink,
    make_event,
)
from timebill.utils.date_parser import month_range

logger = structlog.get_logger(__name__)

# Each state may only move to the state listed here
ALLOWED_TRANSITIONS: dict[BatchStatus, BatchStatus] = {
    BatchStatus.DRAFT: BatchStatus.REVIEW,
    BatchStatus.REVIEW: BatchStatus.EXPORTED,
    BatchStatus.EXPORTED: BatchStatus.LOCKED,
}

_STATUS_ORDER = list(BatchStatus)


def generate_batch_id(year: int, month: int) -> str:
    """Return a display batch id such as ``B-202601-3f9c1a7b0d2e``."""
    return f"B-{year:04d}{month:02d}-{uuid.uuid4().hex[:12]}"


def parse_status(value: str | BatchStatus) -> BatchStatus:
    """Convert a status name into a BatchStatus.

    Raises:
        ValidationError: If the value is not a known status
    """
    try:
        return BatchStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in BatchStatus)
        raise errors.ValidationError(f"Unknown batch status '{value}'. Expected one of: {allowed}")


def check_transition(current: BatchStatus, requested: BatchStatus) -> None:
    """Validate a status move against ALLOWED_TRANSITIONS.

    Raises:
        ConflictError: If the move stays put or goes backwards
        ValidationError: If the move skips a state
    """
    if ALLOWED_TRANSITIONS.get(current) == requested:
        return
    if _STATUS_ORDER.index(requested) <= _STATUS_ORDER.index(current):
        raise errors.ConflictError(
            f"Cannot move batch from {current.value} to {requested.value}: "
            "status can only move forward"
        )
    raise errors.ValidationError(
        f"Cannot move batch from {current.value} to {requested.value}: "
        f"next status is {ALLOWED_TRANSITIONS[current].value}"
    )


class BillingBatchService:
    """Service for creating billing batches and moving them through their lifecycle."""

    def __init__(self, db: Database, events: Optional[BillingEventSink] = None):
        """Initialize billing batch service.

        Args:
            db: Database instance
            events: Sink for billing events (default: structured log)
        """
        self.db = db
        self.events = events or LoggingEventSink()

    def create_batch(
        self,
        customer_id: str,
        year: int,
        month: int,
        entry_ids: Sequence[str],
        total_amount: Optional[Decimal] = None,
        acting_user: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> BillingBatch:
        """Create a draft batch from a customer's entries for one month.

        Args:
            customer_id: Customer ID
            year: Period year
            month: Period month (1-12)
            entry_ids: Time entries to include
            total_amount: Expected total; must equal the sum of hours x rate
                of the entries when given
            acting_user: User creating the batch
            notes: Optional free text

        Returns:
            The created BillingBatch

        Raises:
            NotFoundError: If the customer or an entry doesn't exist
            ValidationError: If the entries don't fit the customer/period
            ConflictError: If an entry is already batched or exported
        """
        try:
            start, end = month_range(year, month)
        except ValueError as e:
            raise errors.ValidationError(str(e))

        if not entry_ids:
            raise errors.ValidationError("A billing batch needs at least one time entry")
        if len(set(entry_ids)) != len(entry_ids):
            raise errors.ValidationError("Time entry ids must not repeat")

        if self.db.get_customer(customer_id) is None:
            raise errors.NotFoundError(errors.customer_not_found(customer_id))

        entries = self.db.list_time_entries(entry_ids=entry_ids)
        found = {e.id for e in entries}
        missing = [entry_id for entry_id in entry_ids if entry_id not in found]
        if missing:
            raise errors.NotFoundError(
                f"Time entries not found: {', '.join(sorted(missing))}"
            )

        foreign = [e.id for e in entries if e.customer_id != customer_id]
        if foreign:
            raise errors.ValidationError(
                f"Time entries belong to another customer: {', '.join(sorted(foreign))}"
            )

        outside = [e.id for e in entries if not start <= e.date <= end]
        if outside:
            raise errors.ValidationError(
                f"Time entries outside {year}-{month:02d}: {', '.join(sorted(outside))}"
            )

        not_billable = [e.id for e in entries if not e.is_billable]
        if not_billable:
            raise errors.ValidationError(
                f"Time entries are not billable: {', '.join(sorted(not_billable))}"
            )

        taken = [e.id for e in entries if e.export_batch_id is not None or e.is_exported]
        if taken:
            raise errors.ConflictError(errors.entries_already_batched(taken), taken)

        computed_total = sum((e.amount for e in entries), Decimal("0"))
        if total_amount is not None and Decimal(total_amount) != computed_total:
            raise errors.ValidationError(
                f"Total amount {total_amount} does not match the entries' total {computed_total}"
            )

        batch_row_id = self.db.create_batch(
            batch_id=generate_batch_id(year, month),
            customer_id=customer_id,
            period_year=year,
            period_month=month,
            total_amount=computed_total,
            entry_ids=list(entry_ids),
            created_by=acting_user,
            notes=notes,
        )
        batch = self.db.get_batch(batch_row_id)
        logger.info(
            "billing_batch_created",
            batch_id=batch.batch_id,
            customer_id=customer_id,
            entries=len(entry_ids),
            total_amount=str(computed_total),
        )
        self.events.emit(
            make_event(
                BATCH_CREATED,
                batch.id,
                actor=acting_user,
                batch_id=batch.batch_id,
                customer_id=customer_id,
                total_amount=computed_total,
                entry_count=len(entry_ids),
            )
        )
        return batch

    def advance_status(
        self,
        batch_id: str,
        new_status: str | BatchStatus,
        acting_user: Optional[str] = None,
    ) -> BillingBatch:
        """Move a batch to its next status.

        Args:
            batch_id: Batch row ID
            new_status: Requested status; must be the immediate next one
            acting_user: User performing the change, stamped on export

        Returns:
            The updated BillingBatch

        Raises:
            NotFoundError: If the batch doesn't exist
            ValidationError: If the status is unknown or skips a state
            ConflictError: If the status would not move forward
        """
        requested = parse_status(new_status)
        batch = self.get_batch(batch_id)
        check_transition(batch.status, requested)

        exported_at = None
        exported_by = None
        if requested == BatchStatus.EXPORTED:
            exported_at = datetime.now(UTC)
            exported_by = acting_user

        self.db.update_batch_status(
            batch_id,
            expected_status=batch.status,
            new_status=requested,
            exported_at=exported_at,
            exported_by=exported_by,
        )
        logger.info(
            "billing_batch_status_changed",
            batch_id=batch.batch_id,
            from_status=batch.status.value,
            to_status=requested.value,
        )
        self.events.emit(
            make_event(
                BATCH_STATUS_CHANGED,
                batch.id,
                actor=acting_user,
                batch_id=batch.batch_id,
                from_status=batch.status.value,
                to_status=requested.value,
            )
        )
        return self.get_batch(batch_id)

    def get_batch(self, batch_id: str) -> BillingBatch:
        """Get a batch by row ID.

        Raises:
            NotFoundError: If the batch doesn't exist
        """
        batch = self.db.get_batch(batch_id)
        if batch is None:
            raise errors.NotFoundError(errors.batch_not_found(batch_id))
        return batch

    def get_batch_detail(self, batch_id: str) -> BatchDetail:
        """Get a batch with its customer and entries (ordered by date).

        Raises:
            NotFoundError: If the batch doesn't exist
        """
        batch = self.get_batch(batch_id)
        entries = self.db.list_time_entries(export_batch_id=batch.id)

        assignment_ids = {e.assignment_id for e in entries if e.assignment_id is not None}
        assignments = (
            {a.id: a for a in self.db.list_assignments(assignment_ids=assignment_ids)}
            if assignment_ids
            else {}
        )

        return BatchDetail(
            batch=batch,
            customer=self.db.get_customer(batch.customer_id),
            entries=tuple(
                BatchDetailEntry(entry=e, assignment=assignments.get(e.assignment_id))
                for e in entries
            ),
        )

    def list_batches(
        self, year: Optional[int] = None, month: Optional[int] = None
    ) -> list[BillingBatch]:
        """List batches, optionally for one period, newest first."""
        if month is not None and not 1 <= month <= 12:
            raise errors.ValidationError(f"Month must be between 1 and 12, got {month}")
        return self.db.list_batches(period_year=year, period_month=month)
