"""
Pytest fixtures for SkillGate tests.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, List, Optional, Sequence

import pytest
import pytest_asyncio
from pydantic import BaseModel

from skillgate.config import Settings
from skillgate.context import EngagementContext, build_context
from skillgate.database import build_engine, build_session_maker, close_db, init_db
from skillgate.kernel.events.event_store import TelemetryStore
from skillgate.kernel.events.event_types import (
    ActionEvent,
    ExportEvent,
    InteractionEvent,
    SessionEvent,
    ToolSequenceEntry,
    VisitEvent,
)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_NAMESPACE = "skillgate.test"
START = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = START):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


class ScriptedTransport:
    """
    Collector stand-in.

    ``outcomes`` is consumed one entry per send: an exception instance is
    raised, anything else counts as success. Once exhausted, sends succeed.
    """

    def __init__(self, outcomes: Optional[Sequence[object]] = None):
        self.outcomes = list(outcomes or [])
        self.attempts: List[List[BaseModel]] = []
        self.batches: List[List[BaseModel]] = []
        self.reachable = True
        self.probes = 0
        self.gate: Optional[asyncio.Event] = None

    async def send(self, items: Sequence[BaseModel]) -> None:
        self.attempts.append(list(items))
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if isinstance(outcome, Exception):
            raise outcome
        self.batches.append(list(items))

    async def probe(self) -> bool:
        self.probes += 1
        return self.reachable

    @property
    def delivered(self) -> List[BaseModel]:
        return [item for batch in self.batches for item in batch]


class EventFactory:
    """Builds raw events for one user on the fake clock's timeline."""

    def __init__(self, clock: FakeClock, user_id: str = "user-1"):
        self.clock = clock
        self.user_id = user_id

    def _ts(self, at: Optional[datetime]) -> datetime:
        return at if at is not None else self.clock.now()

    def interaction(self, component, duration_ms=0, section=None, at=None, user_id=None):
        return InteractionEvent(
            user_id=user_id or self.user_id,
            component=component,
            duration_ms=duration_ms,
            section=section,
            timestamp=self._ts(at),
        )

    def visit(self, component, at=None, user_id=None):
        return VisitEvent(user_id=user_id or self.user_id, component=component, timestamp=self._ts(at))

    def action(self, component, action_type, at=None, user_id=None):
        return ActionEvent(
            user_id=user_id or self.user_id,
            component=component,
            action_type=action_type,
            timestamp=self._ts(at),
        )

    def export(self, component, export_format, at=None, user_id=None):
        return ExportEvent(
            user_id=user_id or self.user_id,
            component=component,
            export_format=export_format,
            timestamp=self._ts(at),
        )

    def session(self, component, duration_ms, at=None, user_id=None):
        return SessionEvent(
            user_id=user_id or self.user_id,
            component=component,
            duration_ms=duration_ms,
            timestamp=self._ts(at),
        )

    def tool(self, tool, at=None, user_id=None):
        return ToolSequenceEntry(user_id=user_id or self.user_id, tool=tool, timestamp=self._ts(at))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def events(clock: FakeClock) -> EventFactory:
    return EventFactory(clock)


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        database_url=TEST_DATABASE_URL,
        telemetry_namespace=TEST_NAMESPACE,
        collector_url=None,
        sync_batch_size=10,
        sync_flush_interval_seconds=30.0,
        sync_poll_interval_seconds=0.01,
        capabilities_file=None,
    )


@pytest_asyncio.fixture
async def store() -> AsyncGenerator[TelemetryStore, None]:
    """Telemetry store over a fresh in-memory database."""
    engine = build_engine(TEST_DATABASE_URL)
    await init_db(engine)
    yield TelemetryStore(build_session_maker(engine), namespace=TEST_NAMESPACE)
    await close_db(engine)


@pytest_asyncio.fixture
async def ctx(
    test_settings: Settings,
    clock: FakeClock,
    transport: ScriptedTransport,
) -> AsyncGenerator[EngagementContext, None]:
    """Fully wired context with a fake clock and scripted collector (loop not started)."""
    context = await build_context(test_settings, clock=clock, transport=transport)
    yield context
    await context.close()


@pytest.fixture
def make_transport():
    """Factory for collectors with scripted outcomes."""
    return ScriptedTransport
