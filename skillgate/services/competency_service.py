"""
Competency Service - profile, score and gate a user from their telemetry.

Everything here is derived: profiles and scores are recomputed from the local
store on every call. Only explicit assessment runs are kept as history.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from skillgate.engines.assessment.levels import CompetencyLevel
from skillgate.engines.assessment.skill_assessment import (
    CompetencyReport,
    SkillAssessmentEngine,
    SkillAssessmentSnapshot,
    SkillScores,
)
from skillgate.engines.gating.capability import AccessDecision, GatedCapability
from skillgate.engines.gating.gating_engine import DEFAULT_RECOMMENDATION_LIMIT, GatingEngine
from skillgate.engines.profile.assembler import assemble_profile
from skillgate.engines.profile.behavior_profile import BehaviorProfile
from skillgate.kernel.clock import Clock
from skillgate.kernel.events.event_store import StoredAssessment, TelemetryStore
from skillgate.logging_config import bind_user, get_logger
from skillgate.sync.sync_queue import SyncQueue

logger = get_logger(__name__)


@dataclass
class CapabilityOverview:
    """Every catalog decision for a user, plus what to unlock next."""
    scores: SkillScores
    level: CompetencyLevel
    decisions: List[AccessDecision] = field(default_factory=list)
    recommendations: List[AccessDecision] = field(default_factory=list)


def _scores_from_history(row: StoredAssessment) -> SkillScores:
    return SkillScores(
        customer_analysis=row.customer_analysis,
        value_communication=row.value_communication,
        executive_readiness=row.executive_readiness,
        overall=row.overall,
        last_assessment=row.assessed_at,
    )


class CompetencyService:
    """
    Ties the store, the assessment engine and the gating engine together
    for one installation.
    """

    def __init__(
        self,
        store: TelemetryStore,
        gating: GatingEngine,
        capabilities: Sequence[GatedCapability],
        clock: Clock,
        sync_queue: Optional[SyncQueue] = None,
    ):
        self.store = store
        self.gating = gating
        self.clock = clock
        self.sync_queue = sync_queue
        self._capabilities: Dict[str, GatedCapability] = {c.id: c for c in capabilities}

    @property
    def capabilities(self) -> List[GatedCapability]:
        return list(self._capabilities.values())

    def get_capability(self, capability_id: str) -> Optional[GatedCapability]:
        return self._capabilities.get(capability_id)

    async def profile(self, user_id: str) -> BehaviorProfile:
        telemetry = await self.store.read(user_id)
        return assemble_profile(telemetry)

    async def current_scores(self, user_id: str) -> SkillScores:
        """Fresh scores from the full local history; nothing is recorded."""
        profile = await self.profile(user_id)
        return SkillAssessmentEngine.assess(profile, assessed_at=self.clock.now())

    async def assess(self, user_id: str) -> CompetencyReport:
        """
        Run and record an assessment.

        Velocity and the time-to-next-level estimate compare against the most
        recent earlier run, if there is one.
        """
        with bind_user(user_id):
            scores = await self.current_scores(user_id)

            history = await self.store.recent_assessments(user_id, limit=1)
            previous = _scores_from_history(history[0]) if history else None

            await self.store.append_assessment(
                user_id,
                customer_analysis=scores.customer_analysis,
                value_communication=scores.value_communication,
                executive_readiness=scores.executive_readiness,
                overall=scores.overall,
                assessed_at=scores.last_assessment,
            )

            report = SkillAssessmentEngine.build_report(user_id, scores, previous)
            if self.sync_queue is not None:
                self.sync_queue.enqueue(
                    SkillAssessmentSnapshot(user_id=user_id, scores=scores, level=report.level)
                )

            logger.info(
                "Assessment recorded",
                extra={"overall": scores.overall, "level": report.level.value},
            )
        return report

    async def check_access(self, user_id: str, capability_id: str) -> Optional[AccessDecision]:
        """Decision for one capability; None when the id is not in the catalog."""
        capability = self.get_capability(capability_id)
        if capability is None:
            return None
        scores = await self.current_scores(user_id)
        return self.gating.evaluate(capability, scores)

    async def access_overview(
        self, user_id: str, limit: int = DEFAULT_RECOMMENDATION_LIMIT
    ) -> CapabilityOverview:
        scores = await self.current_scores(user_id)
        capabilities = self.capabilities
        return CapabilityOverview(
            scores=scores,
            level=scores.level,
            decisions=self.gating.evaluate_all(capabilities, scores),
            recommendations=self.gating.recommend(capabilities, scores, limit=limit),
        )
