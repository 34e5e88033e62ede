"""SQLAlchemy models for timebill database."""

import uuid
from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Customer(Base):
    """Customer model."""

    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=_new_id)
    customer_number = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    agreements = relationship("Agreement", back_populates="customer")
    assignments = relationship("Assignment", back_populates="customer")


class Assignment(Base):
    """Assignment (case) model."""

    __tablename__ = "assignments"

    id = Column(String(36), primary_key=True, default=_new_id)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False)
    assignment_number = Column(String, unique=True, nullable=False)
    title = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    customer = relationship("Customer", back_populates="assignments")


class Agreement(Base):
    """Customer billing agreement model."""

    __tablename__ = "agreements"

    id = Column(String(36), primary_key=True, default=_new_id)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False)
    type = Column(String, nullable=False)
    status = Column(String, default="active", nullable=False)
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    overtime_rate = Column(Numeric(10, 2), nullable=True)
    included_hours = Column(Numeric(8, 2), nullable=True)
    fixed_amount = Column(Numeric(12, 2), nullable=True)
    period = Column(String, nullable=True)
    valid_from = Column(Date, nullable=False)
    valid_to = Column(Date, nullable=True)
    next_indexation = Column(Date, nullable=True)
    # Bumped on every classified write against this agreement
    ledger_version = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (Index("ix_agreements_customer_status", "customer_id", "status"),)

    # Relationships
    customer = relationship("Customer", back_populates="agreements")


class TimeEntry(Base):
    """Time entry model."""

    __tablename__ = "time_entries"

    id = Column(String(36), primary_key=True, default=_new_id)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False)
    assignment_id = Column(String(36), ForeignKey("assignments.id"), nullable=True)
    agreement_id = Column(String(36), ForeignKey("agreements.id"), nullable=True)
    date = Column(Date, nullable=False)
    hours = Column(Numeric(8, 2), nullable=False)
    billing_type = Column(String, nullable=False)
    hourly_rate = Column(Numeric(10, 2), default=0, nullable=False)
    is_billable = Column(Boolean, default=True, nullable=False)
    is_exported = Column(Boolean, default=False, nullable=False)
    export_batch_id = Column(String(36), ForeignKey("billing_batches.id"), nullable=True)
    description = Column(String, nullable=True)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_time_entries_customer_date", "customer_id", "date"),
        Index("ix_time_entries_batch", "export_batch_id"),
    )

    # Relationships
    assignment = relationship("Assignment")
    batch = relationship("BillingBatch", back_populates="entries")


class BillingBatch(Base):
    """Billing batch model."""

    __tablename__ = "billing_batches"

    id = Column(String(36), primary_key=True, default=_new_id)
    batch_id = Column(String, unique=True, nullable=False)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False)
    period_year = Column(Integer, nullable=False)
    period_month = Column(Integer, nullable=False)
    status = Column(String, default="draft", nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    exported_at = Column(DateTime, nullable=True)
    exported_by = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    customer = relationship("Customer")
    entries = relationship("TimeEntry", back_populates="batch")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
