"""
Kernel Layer

Foundations every engine builds on:
- Append-only telemetry store (per-installation namespace, per-user rows)
- Raw event definitions (closed tagged union)
- Clock abstraction for timers and timestamps
"""

from skillgate.kernel.clock import Clock, SystemClock
from skillgate.kernel.events import TelemetryStore, UserTelemetry

__all__ = [
    "Clock",
    "SystemClock",
    "TelemetryStore",
    "UserTelemetry",
]
