"""
Telemetry endpoints - record events and tool changes, report connectivity,
inspect sync and apply retention.
"""

from datetime import timedelta

from fastapi import APIRouter, HTTPException, status

from skillgate.api.deps import Context, Telemetry
from skillgate.schemas.telemetry import (
    ConnectivityRequest,
    EventBatchRequest,
    EventBatchResponse,
    PruneRequest,
    PruneResponse,
    SyncStatusResponse,
    ToolChangeRequest,
    ToolChangeResponse,
)

router = APIRouter()


def _sync_status(ctx) -> SyncStatusResponse:
    if ctx.sync_queue is None:
        return SyncStatusResponse(enabled=False)
    current = ctx.sync_queue.status
    return SyncStatusResponse(
        enabled=True,
        state=current.state,
        online=current.online,
        queued=current.queued,
        retry_count=current.retry_count,
        next_delay_seconds=current.next_delay_seconds,
        delivered_batches=current.delivered_batches,
        delivered_items=current.delivered_items,
        last_success_at=current.last_success_at,
        last_error=current.last_error,
    )


@router.post("/events", response_model=EventBatchResponse, status_code=status.HTTP_202_ACCEPTED)
async def record_events(body: EventBatchRequest, telemetry: Telemetry):
    """Record raw events in order. Malformed ones are dropped and counted."""
    result = await telemetry.record_many(body.events)
    return EventBatchResponse(
        accepted=result.accepted,
        skipped=result.skipped,
        dropped=result.dropped,
    )


@router.post("/tools", response_model=ToolChangeResponse, status_code=status.HTTP_201_CREATED)
async def record_tool_change(body: ToolChangeRequest, telemetry: Telemetry):
    """Append an active-tool change to the user's tool sequence."""
    entry = await telemetry.record_tool_use(body.user_id, body.tool, timestamp=body.timestamp)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Tool change could not be stored",
        )
    return ToolChangeResponse(
        id=entry.id,
        user_id=entry.user_id,
        tool=entry.tool,
        timestamp=entry.timestamp,
    )


@router.put("/connectivity", response_model=SyncStatusResponse)
async def report_connectivity(body: ConnectivityRequest, ctx: Context):
    """UI-reported online/offline state. Going online flushes queued telemetry."""
    ctx.telemetry.set_online(body.online)
    return _sync_status(ctx)


@router.get("/sync", response_model=SyncStatusResponse)
async def get_sync_status(ctx: Context):
    return _sync_status(ctx)


@router.post("/prune", response_model=PruneResponse)
async def prune_events(body: PruneRequest, ctx: Context):
    """Delete bucket events older than the retention window."""
    days = body.max_age_days if body.max_age_days is not None else ctx.settings.retention_days
    removed = await ctx.telemetry.prune(timedelta(days=days))
    return PruneResponse(removed=removed, max_age_days=days)
