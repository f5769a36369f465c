"""
Service layer used by the API and by in-process callers.
"""

from skillgate.services.competency_service import CapabilityOverview, CompetencyService
from skillgate.services.telemetry_service import RecordResult, TelemetryService

__all__ = [
    "TelemetryService",
    "RecordResult",
    "CompetencyService",
    "CapabilityOverview",
]
