"""
Outbound sync of local telemetry to the remote collector.
"""

from skillgate.sync.sync_queue import SyncQueue, SyncState, SyncStatus
from skillgate.sync.transport import (
    CollectorTransport,
    CollectorUnreachable,
    HttpCollectorTransport,
    TransportError,
)

__all__ = [
    "SyncQueue",
    "SyncState",
    "SyncStatus",
    "CollectorTransport",
    "HttpCollectorTransport",
    "TransportError",
    "CollectorUnreachable",
]
