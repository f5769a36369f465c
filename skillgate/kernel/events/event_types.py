"""
Telemetry event definitions using Pydantic for validation.

Raw events form a closed tagged union keyed on ``type``; each variant carries
only the fields the profile assembler reads. Anything that fails validation is
dropped at the recording boundary.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from skillgate.kernel.clock import ensure_utc
from skillgate.kernel.models.telemetry import EventBucket


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventKind(str, Enum):
    """Kinds of raw telemetry events."""

    INTERACTION = "interaction"
    VISIT = "visit"
    ACTION = "action"
    EXPORT = "export"
    SESSION = "session"


class Component(str, Enum):
    """Tracked tools, one per scored domain."""

    ICP_ANALYSIS = "icp_analysis"
    COST_CALCULATOR = "cost_calculator"
    BUSINESS_CASE = "business_case"


class ActionType(str, Enum):
    """Action names the assessment rubrics read."""

    BUYER_PERSONA_CLICK = "buyer_persona_click"
    CUSTOMIZATION = "customization"
    VARIABLE_ADJUSTMENT = "variable_adjustment"
    EDGE_CASE_TESTING = "edge_case_testing"
    STAKEHOLDER_VIEW_SWITCH = "stakeholder_view_switch"
    CONTENT_CUSTOMIZATION = "content_customization"
    AUTO_POPULATION_ACCEPT = "auto_population_accept"


class BaseTelemetryEvent(BaseModel):
    """Fields shared by every raw event."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    user_id: str = Field(min_length=1, max_length=255)
    component: str = Field(min_length=1, max_length=100)
    timestamp: datetime = Field(default_factory=_utcnow)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def bucket(self) -> EventBucket:
        return BUCKET_FOR_KIND[EventKind(self.type)]  # type: ignore[attr-defined]


class InteractionEvent(BaseTelemetryEvent):
    """Time spent on a component, optionally inside a named section."""

    type: Literal["interaction"] = "interaction"
    duration_ms: int = Field(default=0, ge=0)
    section: Optional[str] = None


class VisitEvent(BaseTelemetryEvent):
    """A (return) visit to a component."""

    type: Literal["visit"] = "visit"


class ActionEvent(BaseTelemetryEvent):
    """A discrete user action on a component."""

    type: Literal["action"] = "action"
    action_type: str = Field(min_length=1, max_length=100)


class ExportEvent(BaseTelemetryEvent):
    """An export from a component; ``component`` is the export's context."""

    type: Literal["export"] = "export"
    export_format: str = Field(min_length=1, max_length=50)


class SessionEvent(BaseTelemetryEvent):
    """A completed working session on a component."""

    type: Literal["session"] = "session"
    duration_ms: int = Field(default=0, ge=0)


TelemetryEvent = Annotated[
    Union[InteractionEvent, VisitEvent, ActionEvent, ExportEvent, SessionEvent],
    Field(discriminator="type"),
]

BUCKET_FOR_KIND: Dict[EventKind, EventBucket] = {
    EventKind.INTERACTION: EventBucket.INTERACTIONS,
    EventKind.VISIT: EventBucket.INTERACTIONS,
    EventKind.ACTION: EventBucket.ACTIONS,
    EventKind.EXPORT: EventBucket.EXPORTS,
    EventKind.SESSION: EventBucket.SESSIONS,
}

telemetry_event_adapter: TypeAdapter[TelemetryEvent] = TypeAdapter(TelemetryEvent)


class ToolSequenceEntry(BaseModel):
    """The active tool changed to ``tool`` at ``timestamp``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: Literal["tool_sequence"] = "tool_sequence"
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    user_id: str = Field(min_length=1, max_length=255)
    tool: str = Field(min_length=1, max_length=100)
    timestamp: datetime = Field(default_factory=_utcnow)

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)


def parse_event(raw: Union[Mapping[str, Any], BaseTelemetryEvent]) -> Optional[TelemetryEvent]:
    """
    Validate a raw event.

    Returns None for anything malformed; callers drop it rather than let a
    bad shape reach the durable store.
    """
    if isinstance(raw, BaseTelemetryEvent):
        return raw  # type: ignore[return-value]
    try:
        return telemetry_event_adapter.validate_python(raw)
    except ValidationError:
        return None
