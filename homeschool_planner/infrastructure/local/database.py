"""
SQLite database configuration and ORM models.

This module defines the SQLAlchemy ORM models and database initialization.
Times of day are stored as "HH:MM" strings, weekdays as ISO numbers (1=Monday).
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from homeschool_planner.core.config import get_settings


def utcnow() -> datetime:
    """Naive UTC timestamp for DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class ChildORM(Base):
    """Child ORM model."""

    __tablename__ = "children"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name = Column(String(200), nullable=False)
    weekly_budget_minutes = Column(Integer, nullable=False, default=900)
    per_day_budget_minutes = Column(JSON, nullable=True, default=dict)
    timezone = Column(String(64), nullable=False, default="UTC")
    max_sessions_per_day = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class TopicORM(Base):
    """Topic ORM model (read model fed by the curriculum subsystem)."""

    __tablename__ = "topics"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name = Column(String(300), nullable=False)
    estimated_minutes = Column(Integer, nullable=False, default=30)
    subject = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=utcnow)


class SessionORM(Base):
    """Learning session ORM model."""

    __tablename__ = "learning_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    child_id = Column(String(36), nullable=False, index=True)
    topic_id = Column(String(36), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="BACKLOG", index=True)
    commitment_type = Column(String(20), nullable=True)
    scheduled_day_of_week = Column(Integer, nullable=True)
    scheduled_date = Column(Date, nullable=True)
    scheduled_start_time = Column(String(5), nullable=True)
    scheduled_end_time = Column(String(5), nullable=True)
    estimated_minutes = Column(Integer, nullable=False, default=30)
    notes = Column(Text, nullable=True)
    evidence_notes = Column(Text, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    skip_reason = Column(Text, nullable=True)
    skip_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class CatchUpEntryORM(Base):
    """Catch-up queue entry ORM model. One row per skipped session."""

    __tablename__ = "catch_up_entries"
    __table_args__ = (UniqueConstraint("session_id", name="uq_catch_up_session"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    session_id = Column(String(36), nullable=False)
    child_id = Column(String(36), nullable=False, index=True)
    topic_id = Column(String(36), nullable=False)
    estimated_minutes = Column(Integer, nullable=False)
    skip_date = Column(Date, nullable=False)
    skip_reason = Column(Text, nullable=False)
    priority = Column(Integer, nullable=False, default=2)
    original_day_of_week = Column(Integer, nullable=True)
    original_start_time = Column(String(5), nullable=True)
    original_end_time = Column(String(5), nullable=True)
    created_at = Column(DateTime, default=utcnow)


class TimeBlockORM(Base):
    """Weekly fixed commitment ORM model."""

    __tablename__ = "time_blocks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    child_id = Column(String(36), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    label = Column(String(200), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ImportedEventORM(Base):
    """Imported calendar event ORM model."""

    __tablename__ = "imported_events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    child_id = Column(String(36), nullable=False, index=True)
    summary = Column(String(500), nullable=False, default="")
    location = Column(String(500), nullable=True)
    uid = Column(String(500), nullable=True)
    dtstart = Column(String(40), nullable=False)
    dtend = Column(String(40), nullable=True)
    frequency = Column(String(20), nullable=True)
    interval = Column(Integer, nullable=False, default=1)
    count = Column(Integer, nullable=True)
    until = Column(String(40), nullable=True)
    timezone = Column(String(64), nullable=False, default="UTC")
    recurrence_error = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


# ===========================================
# Database Session Management
# ===========================================


def get_engine():
    """Get async engine instance."""
    settings = get_settings()
    return create_async_engine(settings.DATABASE_URL, echo=False)


def get_session_factory():
    """Get async session factory."""
    engine = get_engine()
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    """Initialize database tables."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
