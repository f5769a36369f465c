"""
Sync queue -- batches captured telemetry and flushes it to the collector.

The queue is an explicit state machine:

    IDLE ──enqueue──▶ ACCUMULATING ──trigger──▶ FLUSHING
      ▲                    ▲                       │
      └──── success, empty ┴──── failure / more ───┘

Flush triggers:
- size: queue length reaches ``batch_size``; while retrying it is held back
  until the current backoff delay has passed
- timer: ``flush_interval`` since the first un-flushed item, or the backoff
  delay ``min(flush_interval * 2^(n-1), max_backoff)`` after n failures
- reconnect: going back online flushes immediately

Timers are evaluated by ``tick()`` against an injected clock, so tests drive
time explicitly; ``start()`` runs a background loop that ticks on an interval.
Delivery is at-least-once and FIFO within a batch. The queue itself lives in
memory; ``on_delivered`` lets the local store mark accepted rows, and
``restore`` re-queues whatever was still unsynced when the process stopped.
"""

import asyncio
import contextlib
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Iterable, List, Optional, Set

from pydantic import BaseModel

from skillgate.kernel.clock import Clock
from skillgate.logging_config import get_logger
from skillgate.sync.transport import CollectorTransport, CollectorUnreachable, TransportError

logger = get_logger(__name__)

DeliveredHook = Callable[[List[BaseModel], datetime], Awaitable[object]]


class SyncState(str, Enum):
    """Lifecycle of the in-memory queue."""

    IDLE = "idle"
    ACCUMULATING = "accumulating"
    FLUSHING = "flushing"


@dataclass(frozen=True)
class SyncStatus:
    """Point-in-time view of the queue."""

    state: SyncState
    online: bool
    queued: int
    retry_count: int
    next_delay_seconds: float
    delivered_batches: int
    delivered_items: int
    last_success_at: Optional[datetime]
    last_error: Optional[str]


class SyncQueue:
    """
    In-memory outbound queue for telemetry.

    ``enqueue`` never blocks and never awaits delivery; events are already
    durable in the local store before they get here.
    """

    def __init__(
        self,
        transport: CollectorTransport,
        clock: Clock,
        *,
        batch_size: int = 10,
        flush_interval: float = 30.0,
        max_backoff: float = 300.0,
        probe_interval: float = 15.0,
        poll_interval: float = 1.0,
        online: bool = True,
        on_delivered: Optional[DeliveredHook] = None,
    ):
        self.transport = transport
        self.clock = clock
        self.on_delivered = on_delivered
        self.batch_size = max(1, batch_size)
        self.flush_interval = flush_interval
        self.max_backoff = max_backoff
        self.probe_interval = probe_interval
        self.poll_interval = poll_interval

        self._items: List[BaseModel] = []
        self._state = SyncState.IDLE
        self._online = online
        self._retry_count = 0

        self._first_enqueued_at: Optional[datetime] = None
        self._last_attempt_at: Optional[datetime] = None
        self._last_probe_at: Optional[datetime] = None
        self._last_success_at: Optional[datetime] = None
        self._last_error: Optional[str] = None

        self._delivered_batches = 0
        self._delivered_items = 0

        self._pending: Set[asyncio.Task] = set()
        self._loop_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def online(self) -> bool:
        return self._online

    @property
    def retry_count(self) -> int:
        return self._retry_count

    def __len__(self) -> int:
        return len(self._items)

    def next_delay(self) -> float:
        """Seconds the timer waits before the next attempt."""
        if self._retry_count == 0:
            return self.flush_interval
        return min(self.flush_interval * (2 ** (self._retry_count - 1)), self.max_backoff)

    @property
    def status(self) -> SyncStatus:
        return SyncStatus(
            state=self._state,
            online=self._online,
            queued=len(self._items),
            retry_count=self._retry_count,
            next_delay_seconds=self.next_delay(),
            delivered_batches=self._delivered_batches,
            delivered_items=self._delivered_items,
            last_success_at=self._last_success_at,
            last_error=self._last_error,
        )

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def enqueue(self, item: BaseModel) -> None:
        """Append an item; may schedule a size-triggered flush."""
        if self._first_enqueued_at is None:
            self._first_enqueued_at = self.clock.now()
        self._items.append(item)

        if self._state == SyncState.IDLE:
            self._state = SyncState.ACCUMULATING

        if self._size_trigger_due():
            self._schedule_flush()

    def restore(self, items: Iterable[BaseModel]) -> int:
        """
        Re-queue items left unsynced by a previous run.

        Items whose id is already queued are skipped. Returns how many were
        added.
        """
        queued_ids = {getattr(item, "id", None) for item in self._items}
        restored = 0
        for item in items:
            item_id = getattr(item, "id", None)
            if item_id is not None and item_id in queued_ids:
                continue
            queued_ids.add(item_id)
            self._items.append(item)
            restored += 1

        if restored:
            if self._first_enqueued_at is None:
                self._first_enqueued_at = self.clock.now()
            if self._state == SyncState.IDLE:
                self._state = SyncState.ACCUMULATING
            logger.info("Restored unsynced telemetry", extra={"restored": restored})
            if self._size_trigger_due():
                self._schedule_flush()
        return restored

    def set_online(self, online: bool) -> None:
        """Report connectivity. Coming back online flushes immediately."""
        if online == self._online:
            return
        self._online = online
        if online:
            logger.info("Collector back online", extra={"queued": len(self._items)})
            if self._items:
                self._schedule_flush()
        else:
            logger.info("Collector offline, holding telemetry locally", extra={"queued": len(self._items)})

    # ------------------------------------------------------------------
    # Flushing
    # ------------------------------------------------------------------

    async def flush(self) -> bool:
        """
        Send everything queued as one batch.

        Returns True when a batch was delivered. On failure the batch is put
        back in front of anything enqueued meanwhile.
        """
        if not self._online or not self._items or self._state == SyncState.FLUSHING:
            return False

        batch = self._items
        first_enqueued_at = self._first_enqueued_at
        self._items = []
        self._first_enqueued_at = None
        self._state = SyncState.FLUSHING
        self._last_attempt_at = self.clock.now()

        try:
            await self.transport.send(batch)
        except asyncio.CancelledError:
            self._requeue(batch, first_enqueued_at)
            raise
        except CollectorUnreachable as exc:
            self._requeue(batch, first_enqueued_at)
            self._record_failure(str(exc))
            self._online = False
            self._last_probe_at = self.clock.now()
            logger.warning("Collector unreachable, going offline: %s", exc, extra={"queued": len(self._items)})
            return False
        except TransportError as exc:
            self._requeue(batch, first_enqueued_at)
            self._record_failure(str(exc))
            logger.warning(
                "Telemetry batch rejected, will retry: %s",
                exc,
                extra={"queued": len(self._items), "retry_count": self._retry_count},
            )
            return False
        except Exception as exc:
            self._requeue(batch, first_enqueued_at)
            self._record_failure(repr(exc))
            logger.exception("Unexpected transport failure, will retry")
            return False

        self._retry_count = 0
        self._last_error = None
        self._last_success_at = self.clock.now()
        self._delivered_batches += 1
        self._delivered_items += len(batch)
        self._state = SyncState.ACCUMULATING if self._items else SyncState.IDLE
        logger.info("Flushed telemetry batch", extra={"batch_size": len(batch)})

        if self.on_delivered is not None:
            try:
                await self.on_delivered(batch, self._last_success_at)
            except Exception:
                # The batch stays unmarked and is sent again after a restart
                logger.exception("Delivered hook failed", extra={"batch_size": len(batch)})
        return True

    async def tick(self) -> bool:
        """Evaluate timer, size and probe triggers against the clock."""
        if self._state == SyncState.FLUSHING:
            return False

        now = self.clock.now()
        if not self._online:
            if self._last_probe_at is None or self._elapsed(self._last_probe_at, now) >= self.probe_interval:
                self._last_probe_at = now
                if await self.transport.probe():
                    self.set_online(True)
                    await self.wait_idle()
                    return True
            return False

        if not self._items:
            return False
        if self._size_trigger_due() or self._timer_due(now):
            return await self.flush()
        return False

    async def wait_idle(self) -> None:
        """Wait for scheduled flushes to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Background loop
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self._run(), name="skillgate-sync")
            logger.info("Sync loop started")

    async def stop(self) -> None:
        """Cancel the loop and in-flight flushes; queued items stay queued."""
        tasks = list(self._pending)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
            self._loop_task = None
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._pending.clear()
        if self._state == SyncState.FLUSHING:
            self._state = SyncState.ACCUMULATING if self._items else SyncState.IDLE
        logger.info("Sync loop stopped", extra={"queued": len(self._items)})

    async def _run(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception:
                logger.exception("Sync tick failed")
            await asyncio.sleep(self.poll_interval)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _size_trigger_due(self) -> bool:
        if not self._online or self._state == SyncState.FLUSHING:
            return False
        if len(self._items) < self.batch_size:
            return False
        return self._retry_count == 0 or self._backoff_elapsed(self.clock.now())

    def _backoff_elapsed(self, now: datetime) -> bool:
        if self._last_attempt_at is None:
            return True
        return self._elapsed(self._last_attempt_at, now) >= self.next_delay()

    def _timer_due(self, now: datetime) -> bool:
        if self._retry_count > 0:
            anchor = self._last_attempt_at
        else:
            anchor = self._first_enqueued_at
        if anchor is None:
            return True
        return self._elapsed(anchor, now) >= self.next_delay()

    def _schedule_flush(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet; the next tick picks the items up.
            return
        task = loop.create_task(self.flush())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _requeue(self, batch: List[BaseModel], first_enqueued_at: Optional[datetime]) -> None:
        self._items = batch + self._items
        if first_enqueued_at is not None:
            self._first_enqueued_at = first_enqueued_at
        self._state = SyncState.ACCUMULATING

    def _record_failure(self, message: str) -> None:
        self._retry_count += 1
        self._last_error = message

    @staticmethod
    def _elapsed(since: datetime, now: datetime) -> float:
        return (now - since).total_seconds()
