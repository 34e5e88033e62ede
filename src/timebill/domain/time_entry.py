"""Time entry domain service."""

from datetime import date
from decimal import Decimal
from typing import Optional

import structlog

from timebill.database.base import Database
from timebill.domain import errors
from timebill.domain.classifier import classify
from timebill.domain.entities import (
    Agreement,
    AgreementType,
    BillingType,
    Classification,
    RecordedTimeEntry,
    TimeEntry,
    TimeEntryDraft,
)
from timebill.domain.events import (
    TIME_ENTRY_DELETED,
    TIME_ENTRY_RECORDED,
    TIME_ENTRY_UPDATED,
    BillingEventSink,
    LoggingEventSink,
    make_event,
)
from timebill.domain.timebank import TimeBankService, compute_status, period_window

logger = structlog.get_logger(__name__)

DEFAULT_CLASSIFY_RETRIES = 3


class TimeEntryService:
    """Service for recording and maintaining time entries."""

    def __init__(
        self,
        db: Database,
        events: Optional[BillingEventSink] = None,
        max_retries: int = DEFAULT_CLASSIFY_RETRIES,
    ):
        """Initialize time entry service.

        Args:
            db: Database instance
            events: Sink for billing events (default: structured log)
            max_retries: Attempts at classifying against a time bank that is
                being written concurrently
        """
        self.db = db
        self.events = events or LoggingEventSink()
        self.max_retries = max(1, max_retries)
        self.timebank = TimeBankService(db)

    def resolve_agreement(self, draft: TimeEntryDraft, agreement_id: Optional[str] = None) -> Agreement:
        """Find the agreement an entry is billed under and check it applies.

        Args:
            draft: Entry being recorded
            agreement_id: Explicit agreement; defaults to the customer's active one

        Raises:
            NotFoundError: If the customer or agreement doesn't exist
            ValidationError: If the agreement is inactive, belongs to another
                customer, or doesn't cover the entry date
        """
        if self.db.get_customer(draft.customer_id) is None:
            raise errors.NotFoundError(errors.customer_not_found(draft.customer_id))

        if agreement_id is None:
            active = self.db.list_agreements(customer_id=draft.customer_id, active_only=True)
            if not active:
                raise errors.ValidationError(errors.no_active_agreement(draft.customer_id))
            agreement = active[0]
        else:
            agreement = self.db.get_agreement(agreement_id)
            if agreement is None:
                raise errors.NotFoundError(errors.agreement_not_found(agreement_id))

        if agreement.customer_id != draft.customer_id:
            raise errors.ValidationError(
                f"Agreement {agreement.id} does not belong to customer {draft.customer_id}"
            )
        if not agreement.is_active:
            raise errors.ValidationError(f"Agreement {agreement.id} is terminated")
        if not agreement.covers(draft.date):
            raise errors.ValidationError(
                f"Entry date {draft.date} is outside agreement {agreement.id} "
                f"({agreement.valid_from} - {agreement.valid_to or 'open'})"
            )
        return agreement

    def classify_entry(
        self,
        draft: TimeEntryDraft,
        agreement_id: Optional[str] = None,
        override_extra_billable: bool = False,
    ) -> Classification:
        """Preview how an entry would be billed, without persisting it.

        Args:
            draft: Entry to classify
            agreement_id: Explicit agreement; defaults to the customer's active one
            override_extra_billable: The user marked the work as extra billable

        Returns:
            Classification including any overtime excess to confirm
        """
        agreement = self.resolve_agreement(draft, agreement_id)
        return self._classify(draft, agreement, override_extra_billable)

    def _classify(
        self, draft: TimeEntryDraft, agreement: Agreement, override_extra_billable: bool
    ) -> Classification:
        prior_status = None
        if agreement.type == AgreementType.TIMEBANK:
            prior_status = self.timebank.status_for(agreement, draft.date)
        return classify(draft, agreement, prior_status, override_extra_billable)

    def record_time_entry(
        self,
        draft: TimeEntryDraft,
        agreement_id: Optional[str] = None,
        override_extra_billable: bool = False,
        confirm_overtime: bool = False,
        acting_user: Optional[str] = None,
    ) -> RecordedTimeEntry:
        """Classify and persist an entry.

        Classification against a time bank is retried when another entry
        for the same agreement was written in between.

        Args:
            draft: Entry to record
            agreement_id: Explicit agreement; defaults to the customer's active one
            override_extra_billable: The user marked the work as extra billable
            confirm_overtime: The user accepted that excess hours become overtime
            acting_user: User recording the entry

        Returns:
            RecordedTimeEntry with the created entry IDs and the classification

        Raises:
            OvertimeConfirmationRequired: If hours spill into overtime and
                confirm_overtime is False
            ConflictError: If the time bank kept changing on every attempt
        """
        if draft.assignment_id is not None:
            assignment = self.db.get_assignment(draft.assignment_id)
            if assignment is None:
                raise errors.NotFoundError(errors.assignment_not_found(draft.assignment_id))
            if assignment.customer_id != draft.customer_id:
                raise errors.ValidationError(
                    f"Assignment {draft.assignment_id} does not belong to customer {draft.customer_id}"
                )

        for attempt in range(1, self.max_retries + 1):
            agreement = self.resolve_agreement(draft, agreement_id)
            classification = self._classify(draft, agreement, override_extra_billable)

            if classification.requires_confirmation and not confirm_overtime:
                raise errors.OvertimeConfirmationRequired(
                    errors.overtime_warning(classification.excess_hours, agreement.overtime_rate),
                    classification,
                )

            expected_version = None
            if agreement.type == AgreementType.TIMEBANK:
                expected_version = agreement.ledger_version

            try:
                entry_ids = self.db.create_time_entries(
                    customer_id=draft.customer_id,
                    date=draft.date,
                    lines=classification.lines,
                    assignment_id=draft.assignment_id,
                    agreement_id=agreement.id,
                    expected_ledger_version=expected_version,
                    description=draft.description,
                    created_by=acting_user,
                )
            except errors.StaleLedgerError:
                logger.warning(
                    "time_bank_changed_during_classification",
                    agreement_id=agreement.id,
                    attempt=attempt,
                )
                continue

            logger.info(
                "time_entry_recorded",
                customer_id=draft.customer_id,
                agreement_id=agreement.id,
                hours=str(draft.hours),
                billing_type=classification.billing_type.value,
                rows=len(entry_ids),
            )
            for entry_id, line in zip(entry_ids, classification.lines):
                self.events.emit(
                    make_event(
                        TIME_ENTRY_RECORDED,
                        entry_id,
                        actor=acting_user,
                        customer_id=draft.customer_id,
                        hours=line.hours,
                        billing_type=line.billing_type.value,
                        rate=line.rate,
                    )
                )
            return RecordedTimeEntry(entry_ids=tuple(entry_ids), classification=classification)

        raise errors.ConflictError(
            f"Time bank of agreement {agreement.id} changed on each of {self.max_retries} attempts; try again",
            [agreement.id],
        )

    def get_time_entry(self, entry_id: str) -> TimeEntry:
        """Get time entry by ID.

        Raises:
            NotFoundError: If the entry doesn't exist
        """
        entry = self.db.get_time_entry(entry_id)
        if entry is None:
            raise errors.NotFoundError(errors.time_entry_not_found(entry_id))
        return entry

    def list_time_entries(
        self,
        customer_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        unexported_only: bool = False,
    ) -> list[TimeEntry]:
        """List time entries with filters."""
        return self.db.list_time_entries(
            customer_id=customer_id,
            start_date=start_date,
            end_date=end_date,
            is_exported=False if unexported_only else None,
        )

    def update_time_entry(
        self,
        entry_id: str,
        date: Optional[date] = None,
        hours: Optional[Decimal] = None,
        description: Optional[str] = None,
        acting_user: Optional[str] = None,
    ) -> TimeEntry:
        """Update a time entry that is not in a billing batch.

        Changing hours or date re-derives the billing type and rate against
        the entry's agreement. A change that would cross the time-bank
        boundary is rejected; delete and record the entry again instead.

        Raises:
            NotFoundError: If the entry doesn't exist
            ConflictError: If the entry is batched or exported
            ValidationError: If the new values are invalid
        """
        entry = self._get_mutable_entry(entry_id)

        billing_type = None
        rate = None
        is_billable = None
        if (hours is not None and hours != entry.hours) or (date is not None and date != entry.date):
            line = self._reclassify(entry, date or entry.date, entry.hours if hours is None else hours)
            billing_type, rate, is_billable = line.billing_type, line.rate, line.is_billable

        self.db.update_time_entry(
            entry_id,
            date=date,
            hours=hours,
            billing_type=billing_type,
            hourly_rate=rate,
            is_billable=is_billable,
            description=description,
        )
        self.events.emit(make_event(TIME_ENTRY_UPDATED, entry_id, actor=acting_user))
        return self.get_time_entry(entry_id)

    def _get_mutable_entry(self, entry_id: str) -> TimeEntry:
        entry = self.get_time_entry(entry_id)
        if entry.is_exported:
            raise errors.ConflictError(errors.entry_already_exported(entry_id), [entry_id])
        if entry.export_batch_id is not None:
            raise errors.ConflictError(
                errors.entry_in_batch(entry_id, entry.export_batch_id), [entry_id]
            )
        return entry

    def _reclassify(self, entry: TimeEntry, new_date: date, new_hours: Decimal):
        if entry.agreement_id is None:
            raise errors.ValidationError(f"Time entry {entry.id} has no agreement to bill against")

        draft = TimeEntryDraft(
            customer_id=entry.customer_id,
            date=new_date,
            hours=new_hours,
            assignment_id=entry.assignment_id,
            is_internal=not entry.is_billable and entry.billing_type == BillingType.NONE,
        )
        agreement = self.resolve_agreement(draft, entry.agreement_id)

        # Keep explicit extra-billable choices
        override = (
            agreement.type == AgreementType.TIMEBANK and entry.billing_type == BillingType.OVERTIME
        ) or (agreement.type == AgreementType.FIXED and entry.billing_type == BillingType.HOURLY)

        prior_status = None
        if agreement.type == AgreementType.TIMEBANK:
            start, end = period_window(agreement.period, new_date)
            others = [
                e
                for e in self.db.list_time_entries(
                    customer_id=agreement.customer_id,
                    agreement_id=agreement.id,
                    start_date=start,
                    end_date=end,
                )
                if e.id != entry.id
            ]
            prior_status = compute_status(agreement, others, new_date)

        classification = classify(draft, agreement, prior_status, override)
        if len(classification.lines) > 1:
            raise errors.ValidationError(
                f"Changing time entry {entry.id} would cross the time-bank balance "
                f"({classification.excess_hours} hours over); delete and record it again"
            )
        return classification.lines[0]

    def delete_time_entry(self, entry_id: str, acting_user: Optional[str] = None) -> None:
        """Delete a time entry that is not in a billing batch.

        Raises:
            NotFoundError: If the entry doesn't exist
            ConflictError: If the entry is batched or exported
        """
        entry = self._get_mutable_entry(entry_id)
        self.db.delete_time_entry(entry_id)
        self.events.emit(make_event(TIME_ENTRY_DELETED, entry_id, actor=acting_user))
