"""
Telemetry Service - the recording boundary for raw user behavior.

Every accepted event is written to the local durable store first and only
then handed to the sync queue. Malformed events are dropped here and never
reach storage.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from skillgate.kernel.clock import Clock, ensure_utc
from skillgate.kernel.events.event_store import TelemetryStore, UserTelemetry
from skillgate.kernel.events.event_types import (
    ActionEvent,
    BaseTelemetryEvent,
    ExportEvent,
    InteractionEvent,
    SessionEvent,
    TelemetryEvent,
    ToolSequenceEntry,
    VisitEvent,
    parse_event,
)
from skillgate.logging_config import bind_user, get_logger
from skillgate.sync.sync_queue import SyncQueue

logger = get_logger(__name__)


@dataclass
class RecordResult:
    """Counts for a batch of raw events."""
    accepted: int = 0
    skipped: int = 0
    dropped: int = 0


class TelemetryService:
    """
    Captures user interactions, actions, exports, sessions, visits and tool
    changes.

    Usage:
        service = TelemetryService(store, clock, sync_queue=queue)
        await service.record_action("user-1", "cost_calculator", "variable_adjustment")
    """

    def __init__(
        self,
        store: TelemetryStore,
        clock: Clock,
        sync_queue: Optional[SyncQueue] = None,
        retention_days: int = 30,
    ):
        self.store = store
        self.clock = clock
        self.sync_queue = sync_queue
        self.retention_days = retention_days

    async def record(
        self, raw: Union[Mapping[str, Any], BaseTelemetryEvent]
    ) -> Optional[TelemetryEvent]:
        """
        Validate and record one raw event.

        Returns the recorded event, or None when it was malformed or could
        not be written.
        """
        event = parse_event(raw)
        if event is None:
            logger.debug("Dropped malformed telemetry event")
            return None

        with bind_user(event.user_id):
            stored = await self.store.append(event)
            if not stored:
                return None
            if self.sync_queue is not None:
                self.sync_queue.enqueue(event)
            logger.debug(
                "Recorded telemetry event",
                extra={"event_type": event.type, "component": event.component},
            )
        return event

    async def record_many(self, raws: Iterable[Mapping[str, Any]]) -> RecordResult:
        """Record a batch in order; malformed entries are counted, not raised."""
        result = RecordResult()
        for raw in raws:
            event = parse_event(raw)
            if event is None:
                result.dropped += 1
                continue
            if await self.record(event) is None:
                result.skipped += 1
            else:
                result.accepted += 1
        if result.dropped:
            logger.info("Dropped malformed telemetry events", extra={"dropped": result.dropped})
        return result

    async def record_interaction(
        self,
        user_id: str,
        component: str,
        duration_ms: int = 0,
        section: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[TelemetryEvent]:
        return await self._record_built(
            InteractionEvent,
            user_id=user_id,
            component=component,
            duration_ms=duration_ms,
            section=section,
            metadata=metadata or {},
        )

    async def record_visit(self, user_id: str, component: str) -> Optional[TelemetryEvent]:
        return await self._record_built(VisitEvent, user_id=user_id, component=component)

    async def record_action(
        self,
        user_id: str,
        component: str,
        action_type: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[TelemetryEvent]:
        return await self._record_built(
            ActionEvent,
            user_id=user_id,
            component=component,
            action_type=action_type,
            metadata=metadata or {},
        )

    async def record_export(
        self,
        user_id: str,
        component: str,
        export_format: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[TelemetryEvent]:
        """Record an export; ``component`` is the tool the export came from."""
        return await self._record_built(
            ExportEvent,
            user_id=user_id,
            component=component,
            export_format=export_format,
            metadata=metadata or {},
        )

    async def record_session(
        self, user_id: str, component: str, duration_ms: int
    ) -> Optional[TelemetryEvent]:
        return await self._record_built(
            SessionEvent, user_id=user_id, component=component, duration_ms=duration_ms
        )

    async def record_tool_use(
        self, user_id: str, tool: str, timestamp: Optional[datetime] = None
    ) -> Optional[ToolSequenceEntry]:
        """Append an active-tool change to the user's tool sequence."""
        try:
            entry = ToolSequenceEntry(
                user_id=user_id,
                tool=tool,
                timestamp=ensure_utc(timestamp) if timestamp else self.clock.now(),
            )
        except ValidationError:
            logger.debug("Dropped malformed tool change")
            return None
        with bind_user(user_id):
            if not await self.store.append_tool(entry):
                return None
            if self.sync_queue is not None:
                self.sync_queue.enqueue(entry)
        return entry

    async def read(self, user_id: str) -> UserTelemetry:
        return await self.store.read(user_id)

    async def prune(self, max_age: Optional[timedelta] = None) -> int:
        """Drop events older than the retention window (default ``retention_days``)."""
        max_age = max_age if max_age is not None else timedelta(days=self.retention_days)
        return await self.store.prune(self.clock.now() - max_age)

    def set_online(self, online: bool) -> None:
        if self.sync_queue is not None:
            self.sync_queue.set_online(online)

    async def _record_built(self, model, **fields) -> Optional[TelemetryEvent]:
        try:
            event = model(timestamp=self.clock.now(), **fields)
        except ValidationError:
            logger.debug("Dropped malformed %s event", model.__name__)
            return None
        return await self.record(event)
