"""
Kernel Data Models

SQLAlchemy models for the local durable telemetry store.
"""

from skillgate.kernel.models.base import Base, RecordedAtMixin
from skillgate.kernel.models.telemetry import (
    EventBucket,
    SkillAssessmentRecord,
    TelemetryEventRecord,
    ToolSequenceRecord,
)

__all__ = [
    "Base",
    "RecordedAtMixin",
    "EventBucket",
    "TelemetryEventRecord",
    "ToolSequenceRecord",
    "SkillAssessmentRecord",
]
