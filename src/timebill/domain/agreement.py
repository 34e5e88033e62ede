"""Agreement domain service."""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

import structlog

from timebill.database.base import Database
from timebill.domain import errors
from timebill.domain.entities import (
    Agreement,
    AgreementPeriod,
    AgreementType,
)
from timebill.domain.events import (
    AGREEMENT_CREATED,
    AGREEMENT_TERMINATED,
    BillingEventSink,
    LoggingEventSink,
    make_event,
)

logger = structlog.get_logger(__name__)


def validate_agreement_terms(
    type: AgreementType,
    hourly_rate: Decimal,
    valid_from: date,
    overtime_rate: Optional[Decimal] = None,
    included_hours: Optional[Decimal] = None,
    fixed_amount: Optional[Decimal] = None,
    period: Optional[AgreementPeriod] = None,
    valid_to: Optional[date] = None,
) -> None:
    """Check the fields an agreement of ``type`` requires.

    Raises:
        ValidationError: If a required field is missing or a value is out of range
    """
    if hourly_rate is None or hourly_rate < 0:
        raise errors.ValidationError("Hourly rate must be zero or positive")
    for name, value in (
        ("Overtime rate", overtime_rate),
        ("Included hours", included_hours),
        ("Fixed amount", fixed_amount),
    ):
        if value is not None and value < 0:
            raise errors.ValidationError(f"{name} cannot be negative")

    if valid_to is not None and valid_to < valid_from:
        raise errors.ValidationError(
            f"Agreement cannot end ({valid_to}) before it starts ({valid_from})"
        )

    if type == AgreementType.TIMEBANK:
        missing = [
            name
            for name, value in (
                ("overtime rate", overtime_rate),
                ("included hours", included_hours),
                ("period", period),
            )
            if value is None
        ]
        if missing:
            raise errors.ValidationError(
                f"Time-bank agreements require {', '.join(missing)}"
            )
    elif type == AgreementType.FIXED and period is not None and included_hours is None:
        raise errors.ValidationError("Fixed agreements with a period require included hours")


class AgreementService:
    """Service for managing customer agreements."""

    def __init__(self, db: Database, events: Optional[BillingEventSink] = None):
        """Initialize agreement service.

        Args:
            db: Database instance
            events: Sink for billing events (default: structured log)
        """
        self.db = db
        self.events = events or LoggingEventSink()

    def create_agreement(
        self,
        customer_id: str,
        type: AgreementType | str,
        hourly_rate: Decimal,
        valid_from: date,
        overtime_rate: Optional[Decimal] = None,
        included_hours: Optional[Decimal] = None,
        fixed_amount: Optional[Decimal] = None,
        period: Optional[AgreementPeriod | str] = None,
        valid_to: Optional[date] = None,
        next_indexation: Optional[date] = None,
        replace_active: bool = False,
    ) -> str:
        """Create the customer's active agreement.

        Args:
            customer_id: Customer ID
            type: hourly, timebank or fixed
            hourly_rate: Rate for hourly billing and extra work
            valid_from: First day the agreement applies
            overtime_rate: Rate beyond the time bank (required for timebank)
            included_hours: Hours in the time bank per period (required for timebank)
            fixed_amount: Periodic amount of a fixed agreement
            period: monthly or yearly (required for timebank)
            valid_to: Optional last day the agreement applies
            next_indexation: Optional date of the next price indexation
            replace_active: Terminate the current active agreement instead of
                failing when one exists

        Returns:
            Agreement ID

        Raises:
            NotFoundError: If the customer doesn't exist
            ValidationError: If required fields are missing or invalid
            ConflictError: If the customer already has an active agreement
                and replace_active is False
        """
        try:
            agreement_type = AgreementType(type)
            agreement_period = AgreementPeriod(period) if period is not None else None
        except ValueError as e:
            raise errors.ValidationError(str(e))

        if self.db.get_customer(customer_id) is None:
            raise errors.NotFoundError(errors.customer_not_found(customer_id))

        validate_agreement_terms(
            agreement_type,
            hourly_rate,
            valid_from,
            overtime_rate=overtime_rate,
            included_hours=included_hours,
            fixed_amount=fixed_amount,
            period=agreement_period,
            valid_to=valid_to,
        )

        replaces = None
        active = self.db.list_agreements(customer_id=customer_id, active_only=True)
        if active:
            current = active[0]
            if not replace_active:
                raise errors.ConflictError(
                    f"Customer {customer_id} already has an active agreement ({current.id})",
                    [current.id],
                )
            # The old agreement ends the day before the new one starts
            replaces = (current.id, max(current.valid_from, valid_from - timedelta(days=1)))

        agreement_id = self.db.create_agreement(
            customer_id=customer_id,
            type=agreement_type,
            hourly_rate=hourly_rate,
            valid_from=valid_from,
            overtime_rate=overtime_rate,
            included_hours=included_hours,
            fixed_amount=fixed_amount,
            period=agreement_period,
            valid_to=valid_to,
            next_indexation=next_indexation,
            replaces=replaces,
        )
        logger.info(
            "agreement_created",
            agreement_id=agreement_id,
            customer_id=customer_id,
            type=agreement_type.value,
            replaced=replaces[0] if replaces else None,
        )
        if replaces is not None:
            self.events.emit(make_event(AGREEMENT_TERMINATED, replaces[0], valid_to=replaces[1]))
        self.events.emit(
            make_event(
                AGREEMENT_CREATED,
                agreement_id,
                customer_id=customer_id,
                type=agreement_type.value,
            )
        )
        return agreement_id

    def get_agreement(self, agreement_id: str) -> Agreement:
        """Get agreement by ID.

        Raises:
            NotFoundError: If the agreement doesn't exist
        """
        agreement = self.db.get_agreement(agreement_id)
        if agreement is None:
            raise errors.NotFoundError(errors.agreement_not_found(agreement_id))
        return agreement

    def get_active_agreement(self, customer_id: str) -> Optional[Agreement]:
        """Get the customer's active agreement, if any."""
        active = self.db.list_agreements(customer_id=customer_id, active_only=True)
        return active[0] if active else None

    def list_agreements(self, customer_id: Optional[str] = None) -> list[Agreement]:
        """List agreements, optionally for one customer."""
        return self.db.list_agreements(customer_id=customer_id)

    def terminate_agreement(self, agreement_id: str, valid_to: Optional[date] = None) -> None:
        """Terminate an active agreement.

        Args:
            agreement_id: Agreement ID
            valid_to: Last day the agreement applies (default: today)

        Raises:
            NotFoundError: If the agreement doesn't exist
            ConflictError: If the agreement is already terminated
            ValidationError: If valid_to precedes valid_from
        """
        agreement = self.get_agreement(agreement_id)
        if not agreement.is_active:
            raise errors.ConflictError(
                f"Agreement {agreement_id} is already terminated", [agreement_id]
            )

        end = valid_to or date.today()
        if end < agreement.valid_from:
            raise errors.ValidationError(
                f"Agreement cannot end ({end}) before it starts ({agreement.valid_from})"
            )

        self.db.terminate_agreement(agreement_id, end)
        logger.info("agreement_terminated", agreement_id=agreement_id, valid_to=str(end))
        self.events.emit(make_event(AGREEMENT_TERMINATED, agreement_id, valid_to=end))

    def indexation_due(
        self, agreement_id: str, today: Optional[date] = None, days_threshold: int = 7
    ) -> bool:
        """Return True if the agreement's next price indexation is within ``days_threshold`` days."""
        agreement = self.get_agreement(agreement_id)
        return is_indexation_due(agreement, today or date.today(), days_threshold)


def is_indexation_due(agreement: Agreement, today: date, days_threshold: int = 7) -> bool:
    """Return True if ``agreement.next_indexation`` falls in [today, today + days_threshold]."""
    if agreement.next_indexation is None:
        return False
    days_left = (agreement.next_indexation - today).days
    return 0 <= days_left <= days_threshold
