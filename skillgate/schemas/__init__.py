"""
Pydantic schemas for API request/response validation.
"""

from skillgate.schemas.common import ErrorResponse, HealthResponse
from skillgate.schemas.competency import CapabilitiesResponse, CapabilityDecisionResponse
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

__all__ = [
    # Common
    "ErrorResponse",
    "HealthResponse",
    # Telemetry
    "EventBatchRequest",
    "EventBatchResponse",
    "ToolChangeRequest",
    "ToolChangeResponse",
    "ConnectivityRequest",
    "SyncStatusResponse",
    "PruneRequest",
    "PruneResponse",
    # Competency
    "CapabilitiesResponse",
    "CapabilityDecisionResponse",
]
