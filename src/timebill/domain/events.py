"""Billing event sinks.

Services report what they changed through a sink passed in at construction;
audit logging and similar consumers implement the same interface.
"""

from abc import ABC, abstractmethod
from datetime import datetime, UTC
from typing import Any, Optional

import structlog

from timebill.domain.entities import BillingEvent

logger = structlog.get_logger(__name__)

AGREEMENT_CREATED = "agreement.created"
AGREEMENT_TERMINATED = "agreement.terminated"
TIME_ENTRY_RECORDED = "time_entry.recorded"
TIME_ENTRY_UPDATED = "time_entry.updated"
TIME_ENTRY_DELETED = "time_entry.deleted"
BATCH_CREATED = "batch.created"
BATCH_STATUS_CHANGED = "batch.status_changed"


class BillingEventSink(ABC):
    """Receives billing events after the change has been committed."""

    @abstractmethod
    def emit(self, event: BillingEvent) -> None:
        pass


class LoggingEventSink(BillingEventSink):
    """Writes every event to the structured log."""

    def emit(self, event: BillingEvent) -> None:
        logger.info(
            event.name,
            subject_id=event.subject_id,
            actor=event.actor,
            **{key: str(value) for key, value in event.payload.items()},
        )


class RecordingEventSink(BillingEventSink):
    """Keeps events in memory, e.g. for previews and tests."""

    def __init__(self):
        self.events: list[BillingEvent] = []

    def emit(self, event: BillingEvent) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [event.name for event in self.events]


def make_event(name: str, subject_id: str, actor: Optional[str] = None, **payload: Any) -> BillingEvent:
    """Build an event stamped with the current UTC time."""
    return BillingEvent(
        name=name,
        subject_id=subject_id,
        occurred_at=datetime.now(UTC),
        actor=actor,
        payload=payload,
    )
