"""
Telemetry event capture.

Validated raw events and the append-only store they are recorded into.
"""

from skillgate.kernel.events.event_store import StoredAssessment, TelemetryStore, UserTelemetry
from skillgate.kernel.events.event_types import (
    ActionEvent,
    ActionType,
    BaseTelemetryEvent,
    Component,
    EventKind,
    ExportEvent,
    InteractionEvent,
    SessionEvent,
    TelemetryEvent,
    ToolSequenceEntry,
    VisitEvent,
    parse_event,
)

__all__ = [
    "TelemetryStore",
    "UserTelemetry",
    "StoredAssessment",
    "BaseTelemetryEvent",
    "InteractionEvent",
    "VisitEvent",
    "ActionEvent",
    "ExportEvent",
    "SessionEvent",
    "TelemetryEvent",
    "ToolSequenceEntry",
    "EventKind",
    "Component",
    "ActionType",
    "parse_event",
]
