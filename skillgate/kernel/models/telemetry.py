"""
Append-only telemetry tables for the local durable store.

Rows are written once; the only later change is stamping ``synced_at`` when
the collector accepts a row. Insertion order is the autoincrement ``seq``
column, which is the order reads and sync replay follow.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from skillgate.kernel.models.base import Base, RecordedAtMixin


class EventBucket(str, Enum):
    """Per-user buckets raw events are filed under."""

    INTERACTIONS = "interactions"
    ACTIONS = "actions"
    EXPORTS = "exports"
    SESSIONS = "sessions"


class TelemetryEventRecord(Base, RecordedAtMixin):
    """One raw interaction/action/export/session/visit event."""

    __tablename__ = "telemetry_events"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[uuid.UUID] = mapped_column(Uuid(), nullable=False, unique=True)

    namespace: Mapped[str] = mapped_column(String(100), nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    bucket: Mapped[str] = mapped_column(String(20), nullable=False)
    event_type: Mapped[str] = mapped_column(String(20), nullable=False)
    component: Mapped[str] = mapped_column(String(100), nullable=False)

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    # Full validated event, re-parsed on read
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # Set once the collector has accepted the event; NULL means not yet synced
    synced_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_telemetry_events_user", "namespace", "user_id", "seq"),
        Index("ix_telemetry_events_unsynced", "namespace", "synced_at"),
    )

    def __repr__(self) -> str:
        return f"<TelemetryEventRecord {self.event_type} {self.user_id}:{self.event_id}>"


class ToolSequenceRecord(Base, RecordedAtMixin):
    """An active-tool change for one user."""

    __tablename__ = "tool_sequence_entries"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entry_id: Mapped[uuid.UUID] = mapped_column(Uuid(), nullable=False, unique=True)

    namespace: Mapped[str] = mapped_column(String(100), nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    tool: Mapped[str] = mapped_column(String(100), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    synced_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_tool_sequence_user", "namespace", "user_id", "seq"),
        Index("ix_tool_sequence_unsynced", "namespace", "synced_at"),
    )

    def __repr__(self) -> str:
        return f"<ToolSequenceRecord {self.user_id}:{self.tool}>"


class SkillAssessmentRecord(Base, RecordedAtMixin):
    """Historical skill scores, one row per assessment run."""

    __tablename__ = "skill_assessments"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    namespace: Mapped[str] = mapped_column(String(100), nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)

    customer_analysis: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    value_communication: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    executive_readiness: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    overall: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    assessed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_skill_assessments_user", "namespace", "user_id", "seq"),
    )

    def __repr__(self) -> str:
        return f"<SkillAssessmentRecord {self.user_id} overall={self.overall}>"
