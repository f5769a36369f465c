"""
Behavior profile models.

A profile is derived data: it is recomputed from the raw telemetry on every
read and never stored. Every field has a zero/false default, and a section
built from a partial or malformed mapping falls back field by field to those
defaults instead of failing.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class ProfileSection(BaseModel):
    """Base for profile sections: tolerant, immutable, zero by default."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("*", mode="wrap")
    @classmethod
    def _fallback_to_default(cls, value: Any, handler, info):
        try:
            return handler(value)
        except ValidationError:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)


class CustomerAnalysisBehavior(ProfileSection):
    """How the user works the ICP analysis tool."""

    review_time_ms: int = Field(default=0, ge=0)
    buyer_persona_clicks: int = Field(default=0, ge=0)
    pain_point_section_time_ms: int = Field(default=0, ge=0)
    exported_summary: bool = False
    return_visits: int = Field(default=0, ge=0)
    customized_criteria: bool = False


class ValueCommunicationBehavior(ProfileSection):
    """How the user works the cost calculator."""

    variable_adjustments: int = Field(default=0, ge=0)
    methodology_review_time_ms: int = Field(default=0, ge=0)
    exported_charts: bool = False
    edge_case_testing: bool = False
    session_count: int = Field(default=0, ge=0)
    integrated_with_business_case: bool = False


class ExecutiveReadinessBehavior(ProfileSection):
    """How the user works the business case builder."""

    stakeholder_view_switches: int = Field(default=0, ge=0)
    content_customization: bool = False
    multiple_format_exports: bool = False
    auto_population_utilization: bool = False
    return_access: int = Field(default=0, ge=0)
    strategic_export_timing: bool = False


class OverallMetrics(ProfileSection):
    total_sessions: int = Field(default=0, ge=0)
    total_exports: int = Field(default=0, ge=0)
    tool_sequence_length: int = Field(default=0, ge=0)
    average_session_duration_ms: float = Field(default=0.0, ge=0)
    last_activity_ms: int = Field(default=0, ge=0)


class BehaviorProfile(ProfileSection):
    """Structured summary of one user's raw telemetry."""

    customer_analysis: CustomerAnalysisBehavior = Field(default_factory=CustomerAnalysisBehavior)
    value_communication: ValueCommunicationBehavior = Field(default_factory=ValueCommunicationBehavior)
    executive_readiness: ExecutiveReadinessBehavior = Field(default_factory=ExecutiveReadinessBehavior)
    overall_metrics: OverallMetrics = Field(default_factory=OverallMetrics)

    @classmethod
    def empty(cls) -> "BehaviorProfile":
        return cls()
