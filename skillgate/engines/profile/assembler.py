"""
Behavior Profile Assembler - reduces raw telemetry into a BehaviorProfile.

Pure and deterministic: the same event lists always produce the same profile,
and appending events never decreases a counting field.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Sequence

from skillgate.engines.profile.behavior_profile import (
    BehaviorProfile,
    CustomerAnalysisBehavior,
    ExecutiveReadinessBehavior,
    OverallMetrics,
    ValueCommunicationBehavior,
)
from skillgate.kernel.clock import to_epoch_ms
from skillgate.kernel.events.event_store import UserTelemetry
from skillgate.kernel.events.event_types import (
    ActionEvent,
    ActionType,
    Component,
    ExportEvent,
    InteractionEvent,
    SessionEvent,
    TelemetryEvent,
    ToolSequenceEntry,
)

# Adjacent tool switches and pre-export tool usage must fall inside this window
INTEGRATION_WINDOW = timedelta(hours=1)
STRATEGIC_TOOL_COUNT = 2

CHART_EXPORT_FORMATS = frozenset({"chart", "summary_chart"})

PAIN_POINTS_SECTION = "pain_points"
METHODOLOGY_SECTION = "methodology"


class BehaviorProfileAssembler:
    """
    Builds behavior profiles from a user's raw event history.

    Each domain reads only its own component's events; exports are matched
    to a domain by the component they were exported from.
    """

    @classmethod
    def assemble(
        cls,
        interactions: Sequence[TelemetryEvent],
        actions: Sequence[ActionEvent],
        exports: Sequence[ExportEvent],
        sessions: Sequence[SessionEvent],
        tool_sequence: Sequence[ToolSequenceEntry],
    ) -> BehaviorProfile:
        if not (interactions or actions or exports or sessions or tool_sequence):
            return BehaviorProfile.empty()

        return BehaviorProfile(
            customer_analysis=cls._customer_analysis(interactions, actions, exports),
            value_communication=cls._value_communication(
                interactions, actions, exports, sessions, tool_sequence
            ),
            executive_readiness=cls._executive_readiness(
                interactions, actions, exports, tool_sequence
            ),
            overall_metrics=cls._overall_metrics(
                interactions, actions, exports, sessions, tool_sequence
            ),
        )

    @classmethod
    def from_telemetry(cls, telemetry: UserTelemetry) -> BehaviorProfile:
        return cls.assemble(
            telemetry.interactions,
            telemetry.actions,
            telemetry.exports,
            telemetry.sessions,
            telemetry.tool_sequence,
        )

    # ------------------------------------------------------------------
    # Domains
    # ------------------------------------------------------------------

    @classmethod
    def _customer_analysis(cls, interactions, actions, exports) -> CustomerAnalysisBehavior:
        component = Component.ICP_ANALYSIS.value
        own_interactions = _for_component(interactions, component)
        own_actions = _for_component(actions, component)

        return CustomerAnalysisBehavior(
            review_time_ms=total_time(own_interactions),
            buyer_persona_clicks=_count_actions(own_actions, ActionType.BUYER_PERSONA_CLICK),
            pain_point_section_time_ms=section_time(own_interactions, PAIN_POINTS_SECTION),
            exported_summary=bool(_for_component(exports, component)),
            return_visits=_count_visits(own_interactions),
            customized_criteria=_count_actions(own_actions, ActionType.CUSTOMIZATION) > 0,
        )

    @classmethod
    def _value_communication(
        cls, interactions, actions, exports, sessions, tool_sequence
    ) -> ValueCommunicationBehavior:
        component = Component.COST_CALCULATOR.value
        own_interactions = _for_component(interactions, component)
        own_actions = _for_component(actions, component)
        own_exports = _for_component(exports, component)

        return ValueCommunicationBehavior(
            variable_adjustments=_count_actions(own_actions, ActionType.VARIABLE_ADJUSTMENT),
            methodology_review_time_ms=section_time(own_interactions, METHODOLOGY_SECTION),
            exported_charts=any(e.export_format in CHART_EXPORT_FORMATS for e in own_exports),
            edge_case_testing=_count_actions(own_actions, ActionType.EDGE_CASE_TESTING) > 0,
            session_count=len(_for_component(sessions, component)),
            integrated_with_business_case=tool_integration(
                tool_sequence, Component.COST_CALCULATOR.value, Component.BUSINESS_CASE.value
            ),
        )

    @classmethod
    def _executive_readiness(
        cls, interactions, actions, exports, tool_sequence
    ) -> ExecutiveReadinessBehavior:
        component = Component.BUSINESS_CASE.value
        own_interactions = _for_component(interactions, component)
        own_actions = _for_component(actions, component)
        own_exports = _for_component(exports, component)

        return ExecutiveReadinessBehavior(
            stakeholder_view_switches=_count_actions(own_actions, ActionType.STAKEHOLDER_VIEW_SWITCH),
            content_customization=_count_actions(own_actions, ActionType.CONTENT_CUSTOMIZATION) > 0,
            multiple_format_exports=len({e.export_format for e in own_exports}) > 1,
            auto_population_utilization=_count_actions(own_actions, ActionType.AUTO_POPULATION_ACCEPT) > 0,
            return_access=_count_visits(own_interactions),
            strategic_export_timing=strategic_export_timing(own_exports, tool_sequence),
        )

    @classmethod
    def _overall_metrics(cls, interactions, actions, exports, sessions, tool_sequence) -> OverallMetrics:
        timestamps = [
            e.timestamp for bucket in (interactions, actions, exports, sessions) for e in bucket
        ]
        return OverallMetrics(
            total_sessions=len(sessions),
            total_exports=len(exports),
            tool_sequence_length=len(tool_sequence),
            average_session_duration_ms=average_session_duration(sessions),
            last_activity_ms=max((to_epoch_ms(ts) for ts in timestamps), default=0),
        )


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------


def total_time(interactions: Iterable[TelemetryEvent]) -> int:
    """Sum of interaction durations; visits count as zero."""
    return sum(getattr(i, "duration_ms", 0) for i in interactions)


def section_time(interactions: Iterable[TelemetryEvent], section: str) -> int:
    return sum(
        i.duration_ms
        for i in interactions
        if isinstance(i, InteractionEvent) and i.section == section
    )


def average_session_duration(sessions: Sequence[SessionEvent]) -> float:
    if not sessions:
        return 0.0
    return sum(s.duration_ms for s in sessions) / len(sessions)


def tool_integration(tool_sequence: Sequence[ToolSequenceEntry], first: str, second: str) -> bool:
    """True if ``second`` directly followed ``first`` within the integration window."""
    for current, following in zip(tool_sequence, tool_sequence[1:]):
        if current.tool == first and following.tool == second:
            if following.timestamp - current.timestamp <= INTEGRATION_WINDOW:
                return True
    return False


def strategic_export_timing(
    exports: Sequence[ExportEvent], tool_sequence: Sequence[ToolSequenceEntry]
) -> bool:
    """True if some export was preceded by several tool switches in the last hour."""
    for export in exports:
        recent = _entries_before(tool_sequence, export.timestamp)
        if len(recent) >= STRATEGIC_TOOL_COUNT:
            return True
    return False


def _entries_before(tool_sequence: Sequence[ToolSequenceEntry], moment: datetime) -> List[ToolSequenceEntry]:
    return [
        entry
        for entry in tool_sequence
        if entry.timestamp < moment and moment - entry.timestamp <= INTEGRATION_WINDOW
    ]


def _for_component(events, component: str) -> list:
    return [e for e in events if e.component == component]


def _count_actions(actions: Iterable[ActionEvent], action_type: ActionType) -> int:
    return sum(1 for a in actions if a.action_type == action_type.value)


def _count_visits(interactions: Iterable[TelemetryEvent]) -> int:
    return sum(1 for i in interactions if i.type == "visit")


def assemble_profile(telemetry: UserTelemetry) -> BehaviorProfile:
    """Convenience wrapper for a store read."""
    return BehaviorProfileAssembler.from_telemetry(telemetry)
