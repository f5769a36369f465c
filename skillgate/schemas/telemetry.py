"""
Pydantic schemas for the telemetry API.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from skillgate.sync.sync_queue import SyncState


class EventBatchRequest(BaseModel):
    """Raw events from the UI layer. Each entry is validated individually."""

    events: List[Dict[str, Any]] = Field(default_factory=list, max_length=500)


class EventBatchResponse(BaseModel):
    accepted: int
    skipped: int
    dropped: int


class ToolChangeRequest(BaseModel):
    """The user switched to ``tool``."""

    user_id: str = Field(min_length=1, max_length=255)
    tool: str = Field(min_length=1, max_length=100)
    timestamp: Optional[datetime] = None


class ToolChangeResponse(BaseModel):
    id: uuid.UUID
    user_id: str
    tool: str
    timestamp: datetime


class ConnectivityRequest(BaseModel):
    online: bool


class SyncStatusResponse(BaseModel):
    """Sync queue status; ``enabled`` is false when no collector is configured."""

    enabled: bool
    state: Optional[SyncState] = None
    online: bool = False
    queued: int = 0
    retry_count: int = 0
    next_delay_seconds: Optional[float] = None
    delivered_batches: int = 0
    delivered_items: int = 0
    last_success_at: Optional[datetime] = None
    last_error: Optional[str] = None


class PruneRequest(BaseModel):
    """Override the configured retention window for this run."""

    max_age_days: Optional[int] = Field(default=None, ge=0)


class PruneResponse(BaseModel):
    removed: int
    max_age_days: int
