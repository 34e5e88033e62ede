"""Tests for billing events and logging setup."""

import logging
from datetime import UTC

from timebill.domain.events import LoggingEventSink, RecordingEventSink, make_event
from timebill.logging import setup_logging


def test_make_event():
    event = make_event("batch.created", "b1", actor="anna", total_amount=100)

    assert event.name == "batch.created"
    assert event.subject_id == "b1"
    assert event.actor == "anna"
    assert event.payload == {"total_amount": 100}
    assert event.occurred_at.tzinfo == UTC


def test_recording_sink_keeps_order():
    sink = RecordingEventSink()
    sink.emit(make_event("a", "1"))
    sink.emit(make_event("b", "2"))

    assert sink.names() == ["a", "b"]
    assert [e.subject_id for e in sink.events] == ["1", "2"]


def test_logging_sink_accepts_events():
    LoggingEventSink().emit(make_event("agreement.created", "a1", type="hourly"))


def test_setup_logging_level_from_environment(monkeypatch):
    monkeypatch.setenv("TIMEBILL_LOG_LEVEL", "debug")
    setup_logging()
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("error")
    assert logging.getLogger().level == logging.ERROR

    monkeypatch.delenv("TIMEBILL_LOG_LEVEL")
    setup_logging()
    assert logging.getLogger().level == logging.WARNING
