"""Domain model entities for timebill.

These are pure data classes representing billing concepts, independent of
database schema. Services and calculations work on these; the database layer
maps its rows onto them.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional


class AgreementType(str, Enum):
    """Contract type of a customer agreement."""

    HOURLY = "hourly"
    TIMEBANK = "timebank"
    FIXED = "fixed"


class AgreementPeriod(str, Enum):
    """Window in which time-bank hours are measured and reset."""

    MONTHLY = "monthly"
    YEARLY = "yearly"


class AgreementStatus(str, Enum):
    ACTIVE = "active"
    TERMINATED = "terminated"


class BillingType(str, Enum):
    """How a time entry is billed."""

    HOURLY = "hourly"
    TIMEBANK = "timebank"
    OVERTIME = "overtime"
    NONE = "none"


class BatchStatus(str, Enum):
    """Billing batch lifecycle states, in order."""

    DRAFT = "draft"
    REVIEW = "review"
    EXPORTED = "exported"
    LOCKED = "locked"


# Buckets that count towards a customer's billable hours
BILLABLE_BUCKETS = (BillingType.TIMEBANK, BillingType.OVERTIME, BillingType.HOURLY)


@dataclass(frozen=True)
class Customer:
    """Customer reference record."""

    id: str
    customer_number: str
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Assignment:
    """Assignment (case) reference record."""

    id: str
    customer_id: str
    assignment_number: str
    title: str
    created_at: datetime


@dataclass(frozen=True)
class Agreement:
    """Customer billing contract."""

    id: str
    customer_id: str
    type: AgreementType
    hourly_rate: Decimal
    valid_from: date
    status: AgreementStatus = AgreementStatus.ACTIVE
    overtime_rate: Optional[Decimal] = None
    included_hours: Optional[Decimal] = None
    fixed_amount: Optional[Decimal] = None
    period: Optional[AgreementPeriod] = None
    valid_to: Optional[date] = None
    next_indexation: Optional[date] = None
    ledger_version: int = 0
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == AgreementStatus.ACTIVE

    def covers(self, day: date) -> bool:
        """Return True if the agreement's validity range contains ``day``."""
        if day < self.valid_from:
            return False
        return self.valid_to is None or day <= self.valid_to


@dataclass(frozen=True)
class TimeEntry:
    """Recorded billable (or internal) work."""

    id: str
    customer_id: str
    date: date
    hours: Decimal
    billing_type: BillingType
    hourly_rate: Decimal
    is_billable: bool
    is_exported: bool = False
    export_batch_id: Optional[str] = None
    assignment_id: Optional[str] = None
    agreement_id: Optional[str] = None
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def amount(self) -> Decimal:
        return self.hours * self.hourly_rate


@dataclass(frozen=True)
class TimeEntryDraft:
    """A time entry that has not been classified or persisted yet."""

    customer_id: str
    date: date
    hours: Decimal
    assignment_id: Optional[str] = None
    description: Optional[str] = None
    is_internal: bool = False


@dataclass(frozen=True)
class TimeBankStatus:
    """Derived time-bank consumption for one period window."""

    agreement_id: str
    period_start: date
    period_end: date
    included_hours: Decimal
    hours_used: Decimal
    hours_remaining: Decimal
    overtime_hours: Decimal
    percent_used: Decimal
    is_overtime: bool


@dataclass(frozen=True)
class BillingSplit:
    """One persisted row produced by classifying an entry."""

    hours: Decimal
    billing_type: BillingType
    rate: Decimal

    @property
    def amount(self) -> Decimal:
        return self.hours * self.rate

    @property
    def is_billable(self) -> bool:
        return self.billing_type != BillingType.NONE


@dataclass(frozen=True)
class Classification:
    """Result of classifying a time entry against an agreement.

    ``lines`` holds one row, or two when a time-bank entry crosses the
    remaining balance. ``excess_hours`` is the part that spills over into
    overtime and must be confirmed by the user before it is recorded.
    """

    billing_type: BillingType
    rate: Decimal
    is_billable: bool
    excess_hours: Decimal
    lines: tuple[BillingSplit, ...]

    @property
    def total_amount(self) -> Decimal:
        return sum((line.amount for line in self.lines), Decimal("0"))

    @property
    def requires_confirmation(self) -> bool:
        return self.excess_hours > 0


@dataclass(frozen=True)
class RecordedTimeEntry:
    """Entries persisted for one recorded piece of work."""

    entry_ids: tuple[str, ...]
    classification: Classification


@dataclass(frozen=True)
class BillingBatch:
    """Frozen, exportable group of time entries for one customer/period."""

    id: str
    batch_id: str
    customer_id: str
    period_year: int
    period_month: int
    status: BatchStatus
    total_amount: Decimal
    exported_at: Optional[datetime] = None
    exported_by: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class BatchDetailEntry:
    """Time entry of a batch together with its assignment, if any."""

    entry: TimeEntry
    assignment: Optional[Assignment] = None


@dataclass(frozen=True)
class BatchDetail:
    batch: BillingBatch
    customer: Optional[Customer]
    entries: tuple[BatchDetailEntry, ...]


@dataclass
class BillingSummary:
    """Per-customer totals of unexported billable time for one month."""

    customer_id: str
    customer_name: str
    customer_number: str
    total_hours: Decimal = Decimal("0")
    timebank_hours: Decimal = Decimal("0")
    overtime_hours: Decimal = Decimal("0")
    hourly_hours: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    entries: list[TimeEntry] = field(default_factory=list)


@dataclass(frozen=True)
class BillingEvent:
    """Something that happened to billing state, for audit-style consumers."""

    name: str
    subject_id: str
    occurred_at: datetime
    actor: Optional[str] = None
    payload: Mapping[str, Any] = field(default_factory=dict)
