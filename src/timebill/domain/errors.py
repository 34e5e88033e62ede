"""Shared domain error messages and error types."""

from typing import Iterable, Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as double-batching or status regression."""

    def __init__(self, message: str, conflicting_ids: Iterable[str] = ()):
        super().__init__(message)
        self.conflicting_ids = tuple(conflicting_ids)


class StaleLedgerError(ConflictError):
    """An agreement's ledger changed between reading and writing it."""


class PersistenceError(DomainError):
    """The underlying data store call failed.

    The original exception is chained as ``__cause__``.
    """


class OvertimeConfirmationRequired(ValidationError):
    """Recording an entry would spill into overtime without confirmation."""

    def __init__(self, message: str, classification=None):
        super().__init__(message)
        self.classification = classification


def customer_not_found(customer_id: str) -> str:
    """Return message for missing customer."""
    return f"Customer {customer_id} not found"


def assignment_not_found(assignment_id: str) -> str:
    """Return message for missing assignment."""
    return f"Assignment {assignment_id} not found"


def agreement_not_found(agreement_id: str) -> str:
    """Return message for missing agreement."""
    return f"Agreement {agreement_id} not found"


def no_active_agreement(customer_id: str) -> str:
    """Return message when a customer has no active agreement."""
    return f"Customer {customer_id} has no active agreement"


def time_entry_not_found(entry_id: str) -> str:
    """Return message for missing time entry."""
    return f"Time entry {entry_id} not found"


def batch_not_found(batch_id: str) -> str:
    """Return message for missing billing batch."""
    return f"Billing batch {batch_id} not found"


def entry_already_exported(entry_id: str) -> str:
    """Return message when an exported entry is about to be mutated."""
    return f"Time entry {entry_id} is exported and locked for invoicing"


def entries_already_batched(entry_ids: Iterable[str]) -> str:
    """Return message for entries that already belong to a batch."""
    ids = sorted(entry_ids)
    noun = "entry" if len(ids) == 1 else "entries"
    return f"Time {noun} already batched: {', '.join(ids)}"


def overtime_warning(excess_hours, overtime_rate: Optional[object] = None) -> str:
    """Return the confirmation message for an entry crossing into overtime."""
    message = f"{excess_hours} hours will be billed as overtime"
    if overtime_rate is not None:
        message += f" at {overtime_rate}/h"
    return message


def entry_in_batch(entry_id: str, batch_id: str) -> str:
    """Return message when a batched entry is about to be mutated."""
    return f"Time entry {entry_id} belongs to billing batch {batch_id} and cannot change"
