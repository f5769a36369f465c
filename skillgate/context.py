"""
Engagement context - one explicitly wired set of components per process.

Built once at startup (by the API lifespan or an in-process caller) and passed
by reference; nothing here is a module-level singleton.

Usage:
    ctx = await build_context(get_settings())
    await ctx.start()
    await ctx.telemetry.record_visit("user-1", "icp_analysis")
    report = await ctx.competency.assess("user-1")
    await ctx.close()
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from skillgate.config import Settings
from skillgate.database import build_session_maker, close_db, open_engine
from skillgate.engines.gating.capability import GatedCapability
from skillgate.engines.gating.catalog import load_capabilities
from skillgate.engines.gating.gating_engine import GatingEngine
from skillgate.kernel.clock import Clock, SystemClock
from skillgate.kernel.events.event_store import TelemetryStore
from skillgate.logging_config import get_logger
from skillgate.services.competency_service import CompetencyService
from skillgate.services.telemetry_service import TelemetryService
from skillgate.sync.sync_queue import SyncQueue
from skillgate.sync.transport import CollectorTransport, HttpCollectorTransport

logger = get_logger(__name__)


@dataclass
class EngagementContext:
    """Owns the clock, store, transport, sync queue, gating engine and services."""

    settings: Settings
    clock: Clock
    engine: AsyncEngine
    session_maker: async_sessionmaker[AsyncSession]
    store: TelemetryStore
    gating: GatingEngine
    capabilities: Sequence[GatedCapability]
    telemetry: TelemetryService
    competency: CompetencyService
    transport: Optional[CollectorTransport] = None
    sync_queue: Optional[SyncQueue] = None
    _started: bool = field(default=False, repr=False)

    @property
    def sync_enabled(self) -> bool:
        return self.sync_queue is not None

    async def start(self) -> None:
        """
        Start background sync, if a collector is configured.

        Telemetry a previous run stored but never got accepted by the collector
        is queued again first.
        """
        if self.sync_queue is not None and not self._started:
            self.sync_queue.restore(await self.store.pending_sync())
            self.sync_queue.start()
        self._started = True

    async def close(self) -> None:
        """Stop sync and release connections. Queued items remain in the local store."""
        if self.sync_queue is not None:
            await self.sync_queue.stop()
        if isinstance(self.transport, HttpCollectorTransport):
            await self.transport.aclose()
        await close_db(self.engine)
        self._started = False
        logger.info("Engagement context closed")


async def build_context(
    settings: Settings,
    *,
    clock: Optional[Clock] = None,
    transport: Optional[CollectorTransport] = None,
    capabilities: Optional[Sequence[GatedCapability]] = None,
) -> EngagementContext:
    """
    Wire every component from settings.

    ``clock``, ``transport`` and ``capabilities`` may be injected; otherwise the
    wall clock, an HTTP transport (only when ``collector_url`` is set) and the
    configured catalog are used. Raises ``CapabilityConfigError`` for a bad
    catalog file.
    """
    clock = clock or SystemClock()
    if capabilities is None:
        capabilities = load_capabilities(settings.capabilities_file)

    engine = await open_engine(settings.database_url, echo=settings.debug)
    session_maker = build_session_maker(engine)
    store = TelemetryStore(session_maker, namespace=settings.telemetry_namespace)

    if transport is None and settings.collector_url:
        transport = HttpCollectorTransport(
            settings.collector_url,
            timeout=settings.collector_timeout_seconds,
        )

    sync_queue = None
    if transport is not None:
        sync_queue = SyncQueue(
            transport,
            clock,
            batch_size=settings.sync_batch_size,
            flush_interval=settings.sync_flush_interval_seconds,
            max_backoff=settings.sync_max_backoff_seconds,
            probe_interval=settings.sync_probe_interval_seconds,
            poll_interval=settings.sync_poll_interval_seconds,
            on_delivered=store.mark_delivered,
        )
    else:
        logger.info("No collector configured, telemetry stays local")

    gating = GatingEngine(
        progressive_ratio=settings.gating_progressive_ratio,
        adaptive_ratio=settings.gating_adaptive_ratio,
        collaborative_ratio=settings.gating_collaborative_ratio,
    )

    telemetry = TelemetryService(
        store,
        clock,
        sync_queue=sync_queue,
        retention_days=settings.retention_days,
    )
    competency = CompetencyService(
        store,
        gating,
        capabilities,
        clock,
        sync_queue=sync_queue,
    )

    return EngagementContext(
        settings=settings,
        clock=clock,
        engine=engine,
        session_maker=session_maker,
        store=store,
        gating=gating,
        capabilities=capabilities,
        telemetry=telemetry,
        competency=competency,
        transport=transport,
        sync_queue=sync_queue,
    )
