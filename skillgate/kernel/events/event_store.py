"""
Telemetry store: the local durable, append-only event log.

Every recorded event is committed before ``append`` returns, so a read in the
same process always sees it. Telemetry is best-effort: storage faults are
logged and absorbed, never raised to the caller.

Stored rows are decoded one at a time: a row whose payload or timestamp no
longer parses is skipped without hiding the rest of the history. Rows the
collector has not yet accepted keep ``synced_at`` unset and are replayed by
``pending_sync`` after a restart.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Sequence, Union

from pydantic import BaseModel, ValidationError
from sqlalchemy import String, Text, delete, desc, select, type_coerce, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from skillgate.kernel.events.event_types import (
    ActionEvent,
    BaseTelemetryEvent,
    ExportEvent,
    SessionEvent,
    TelemetryEvent,
    ToolSequenceEntry,
    telemetry_event_adapter,
)
from skillgate.kernel.models.telemetry import (
    EventBucket,
    SkillAssessmentRecord,
    TelemetryEventRecord,
    ToolSequenceRecord,
)
from skillgate.logging_config import get_logger

logger = get_logger(__name__)

STORE_ERRORS = (SQLAlchemyError, OSError)
# Raised by drivers and type processors on values they cannot decode
DECODE_ERRORS = (ValueError, TypeError)

SyncItem = Union[TelemetryEvent, ToolSequenceEntry]


@dataclass
class UserTelemetry:
    """Raw telemetry slice for one user, in insertion order."""

    interactions: List[TelemetryEvent] = field(default_factory=list)
    actions: List[ActionEvent] = field(default_factory=list)
    exports: List[ExportEvent] = field(default_factory=list)
    sessions: List[SessionEvent] = field(default_factory=list)
    tool_sequence: List[ToolSequenceEntry] = field(default_factory=list)

    @property
    def event_count(self) -> int:
        return len(self.interactions) + len(self.actions) + len(self.exports) + len(self.sessions)

    def add(self, event: TelemetryEvent) -> None:
        if event.bucket == EventBucket.INTERACTIONS:
            self.interactions.append(event)
        elif event.bucket == EventBucket.ACTIONS:
            self.actions.append(event)
        elif event.bucket == EventBucket.EXPORTS:
            self.exports.append(event)
        else:
            self.sessions.append(event)


@dataclass
class StoredAssessment:
    """One historical assessment row."""

    customer_analysis: int
    value_communication: int
    executive_readiness: int
    overall: int
    assessed_at: datetime


def _as_uuid(value: Any) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


def _as_datetime(value: Any) -> datetime:
    return value if isinstance(value, datetime) else datetime.fromisoformat(str(value))


def _decode_event(raw_payload: Any) -> Optional[TelemetryEvent]:
    try:
        payload = json.loads(raw_payload) if isinstance(raw_payload, (str, bytes)) else raw_payload
        return telemetry_event_adapter.validate_python(payload)
    except (ValidationError, ValueError, TypeError):
        return None


def _decode_tool(row: Any) -> Optional[ToolSequenceEntry]:
    try:
        return ToolSequenceEntry(
            id=_as_uuid(row.entry_id),
            user_id=row.user_id,
            tool=row.tool,
            timestamp=_as_datetime(row.occurred_at),
        )
    except (ValidationError, ValueError, TypeError):
        return None


class TelemetryStore:
    """
    Per-installation durable store with nested per-user buckets.

    Usage:
        store = TelemetryStore(session_maker, namespace="skillgate.behavioral")
        await store.append(event)
        telemetry = await store.read("user-123")
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession], namespace: str):
        self.session_maker = session_maker
        self.namespace = namespace

    async def append(self, event: TelemetryEvent) -> bool:
        """
        Append a validated event to its user's bucket.

        Returns False when the write did not happen (duplicate id or storage
        fault); the caller is never interrupted.
        """
        record = TelemetryEventRecord(
            event_id=event.id,
            namespace=self.namespace,
            user_id=event.user_id,
            bucket=event.bucket.value,
            event_type=event.type,
            component=event.component,
            occurred_at=event.timestamp,
            payload=event.model_dump(mode="json"),
        )
        return await self._write(record, kind="event", item_id=str(event.id))

    async def append_tool(self, entry: ToolSequenceEntry) -> bool:
        """Append an active-tool change to the user's tool sequence."""
        record = ToolSequenceRecord(
            entry_id=entry.id,
            namespace=self.namespace,
            user_id=entry.user_id,
            tool=entry.tool,
            occurred_at=entry.timestamp,
        )
        return await self._write(record, kind="tool_sequence", item_id=str(entry.id))

    async def read(self, user_id: str) -> UserTelemetry:
        """
        Return the full raw slice for a user.

        Unknown users and unreadable storage both yield empty containers.
        Rows that no longer decode are skipped.
        """
        try:
            event_rows, tool_rows = await self._select_raw(
                TelemetryEventRecord.user_id == user_id,
                ToolSequenceRecord.user_id == user_id,
            )
        except STORE_ERRORS + DECODE_ERRORS as exc:
            logger.warning("Telemetry store unreadable, using empty history: %s", exc)
            return UserTelemetry()

        telemetry = UserTelemetry()
        skipped = 0
        for raw_payload in event_rows:
            event = _decode_event(raw_payload)
            if event is None:
                skipped += 1
                continue
            telemetry.add(event)

        for row in tool_rows:
            entry = _decode_tool(row)
            if entry is None:
                skipped += 1
                continue
            telemetry.tool_sequence.append(entry)

        if skipped:
            logger.warning("Skipped corrupt telemetry rows", extra={"skipped": skipped})
        return telemetry

    async def pending_sync(self) -> List[SyncItem]:
        """
        Everything the collector has not yet accepted, across all users.

        Events come first in insertion order, then tool changes in insertion
        order. Rows that no longer decode are left out.
        """
        try:
            event_rows, tool_rows = await self._select_raw(
                TelemetryEventRecord.synced_at.is_(None),
                ToolSequenceRecord.synced_at.is_(None),
            )
        except STORE_ERRORS + DECODE_ERRORS as exc:
            logger.warning("Cannot read unsynced telemetry: %s", exc)
            return []

        pending: List[SyncItem] = []
        for raw_payload in event_rows:
            event = _decode_event(raw_payload)
            if event is not None:
                pending.append(event)
        for row in tool_rows:
            entry = _decode_tool(row)
            if entry is not None:
                pending.append(entry)
        return pending

    async def mark_delivered(self, items: Sequence[BaseModel], delivered_at: datetime) -> bool:
        """Stamp ``synced_at`` on the stored rows behind a delivered batch."""
        event_ids = [item.id for item in items if isinstance(item, BaseTelemetryEvent)]
        tool_ids = [item.id for item in items if isinstance(item, ToolSequenceEntry)]
        if not event_ids and not tool_ids:
            return True

        try:
            async with self.session_maker() as session:
                if event_ids:
                    await session.execute(
                        update(TelemetryEventRecord)
                        .where(
                            TelemetryEventRecord.namespace == self.namespace,
                            TelemetryEventRecord.event_id.in_(event_ids),
                        )
                        .values(synced_at=delivered_at)
                    )
                if tool_ids:
                    await session.execute(
                        update(ToolSequenceRecord)
                        .where(
                            ToolSequenceRecord.namespace == self.namespace,
                            ToolSequenceRecord.entry_id.in_(tool_ids),
                        )
                        .values(synced_at=delivered_at)
                    )
                await session.commit()
        except STORE_ERRORS as exc:
            logger.warning("Could not record delivered batch: %s", exc, extra={"batch_size": len(items)})
            return False
        return True

    async def prune(self, cutoff: datetime) -> int:
        """Delete bucket events that occurred at or before ``cutoff``. Tool sequences are kept."""
        try:
            async with self.session_maker() as session:
                result = await session.execute(
                    delete(TelemetryEventRecord).where(
                        TelemetryEventRecord.namespace == self.namespace,
                        TelemetryEventRecord.occurred_at <= cutoff,
                    )
                )
                await session.commit()
        except STORE_ERRORS as exc:
            logger.warning("Telemetry prune failed: %s", exc)
            return 0
        removed = result.rowcount or 0
        if removed:
            logger.info("Pruned telemetry events", extra={"removed": removed})
        return removed

    async def append_assessment(
        self,
        user_id: str,
        customer_analysis: int,
        value_communication: int,
        executive_readiness: int,
        overall: int,
        assessed_at: datetime,
    ) -> bool:
        """Keep one assessment run in the user's history."""
        record = SkillAssessmentRecord(
            namespace=self.namespace,
            user_id=user_id,
            customer_analysis=customer_analysis,
            value_communication=value_communication,
            executive_readiness=executive_readiness,
            overall=overall,
            assessed_at=assessed_at,
        )
        return await self._write(record, kind="assessment", item_id=user_id)

    async def recent_assessments(self, user_id: str, limit: int = 2) -> List[StoredAssessment]:
        """Most recent assessments for a user, newest first."""
        query = (
            select(SkillAssessmentRecord)
            .where(
                SkillAssessmentRecord.namespace == self.namespace,
                SkillAssessmentRecord.user_id == user_id,
            )
            .order_by(desc(SkillAssessmentRecord.seq))
            .limit(limit)
        )
        try:
            async with self.session_maker() as session:
                rows = list((await session.execute(query)).scalars().all())
        except STORE_ERRORS + DECODE_ERRORS as exc:
            logger.warning("Assessment history unreadable: %s", exc)
            return []
        return [
            StoredAssessment(
                customer_analysis=row.customer_analysis,
                value_communication=row.value_communication,
                executive_readiness=row.executive_readiness,
                overall=row.overall,
                assessed_at=row.assessed_at,
            )
            for row in rows
        ]

    async def _select_raw(self, event_filter, tool_filter):
        """Payloads and tool rows with the decoding columns left as stored text."""
        events_q = (
            select(type_coerce(TelemetryEventRecord.payload, Text))
            .where(TelemetryEventRecord.namespace == self.namespace, event_filter)
            .order_by(TelemetryEventRecord.seq)
        )
        tools_q = (
            select(
                type_coerce(ToolSequenceRecord.entry_id, String).label("entry_id"),
                ToolSequenceRecord.user_id,
                ToolSequenceRecord.tool,
                type_coerce(ToolSequenceRecord.occurred_at, String).label("occurred_at"),
            )
            .where(ToolSequenceRecord.namespace == self.namespace, tool_filter)
            .order_by(ToolSequenceRecord.seq)
        )
        async with self.session_maker() as session:
            event_rows = list((await session.execute(events_q)).scalars().all())
            tool_rows = list((await session.execute(tools_q)).all())
        return event_rows, tool_rows

    async def _write(self, record: object, *, kind: str, item_id: Optional[str]) -> bool:
        try:
            async with self.session_maker() as session:
                session.add(record)
                await session.commit()
        except IntegrityError:
            logger.debug("Ignoring duplicate %s", kind, extra={"item_id": item_id})
            return False
        except STORE_ERRORS as exc:
            logger.warning("Telemetry write failed (%s): %s", kind, exc, extra={"item_id": item_id})
            return False
        return True
