"""
Feature Gating Engine - decides which capabilities a user can see.

Strategies:
- strict / time_based: every requirement met
- progressive: every critical requirement met, and at least 70% of the
  non-critical ones (vacuously true when there are none)
- adaptive: met weight / total weight >= 75%
- collaborative: met requirements / all requirements >= 60%

A capability with no requirements (or zero total weight under adaptive) is
always granted. Evaluation never raises.
"""

from typing import Iterable, List, Sequence

from skillgate.engines.assessment.levels import LEVEL_FLOOR, level_for_score
from skillgate.engines.assessment.skill_assessment import SkillScores
from skillgate.engines.gating.capability import (
    AccessDecision,
    GatedCapability,
    GatingStrategy,
    Requirement,
)


PROGRESSIVE_NON_CRITICAL_RATIO = 0.70
ADAPTIVE_WEIGHT_RATIO = 0.75
COLLABORATIVE_MET_RATIO = 0.60

DEFAULT_RECOMMENDATION_LIMIT = 5


class GatingEngine:
    """
    Evaluates capabilities against skill scores.

    Ratios default to the product constants and can be overridden from settings.
    """

    def __init__(
        self,
        progressive_ratio: float = PROGRESSIVE_NON_CRITICAL_RATIO,
        adaptive_ratio: float = ADAPTIVE_WEIGHT_RATIO,
        collaborative_ratio: float = COLLABORATIVE_MET_RATIO,
    ):
        self.progressive_ratio = progressive_ratio
        self.adaptive_ratio = adaptive_ratio
        self.collaborative_ratio = collaborative_ratio

    @staticmethod
    def meets(requirement: Requirement, scores: SkillScores) -> bool:
        """Level rank and raw score of the target skill must both reach the minimum."""
        score = scores.score_for(requirement.target_skill)
        level = level_for_score(score)
        return level.rank >= requirement.min_level.rank and score >= requirement.min_score

    @staticmethod
    def gap(requirement: Requirement, scores: SkillScores) -> int:
        """Points still missing before ``requirement`` is met."""
        target = max(requirement.min_score, LEVEL_FLOOR[requirement.min_level])
        return max(0, target - scores.score_for(requirement.target_skill))

    def evaluate(self, capability: GatedCapability, scores: SkillScores) -> AccessDecision:
        requirements = capability.requirements
        met = [r for r in requirements if self.meets(r, scores)]
        unmet = [r for r in requirements if not self.meets(r, scores)]

        granted = self._granted(capability.strategy, requirements, met, unmet)
        return AccessDecision(
            capability_id=capability.id,
            granted=granted,
            strategy=capability.strategy,
            unmet_requirements=unmet,
            score_gap=sum(self.gap(r, scores) for r in unmet),
        )

    def evaluate_all(
        self, capabilities: Iterable[GatedCapability], scores: SkillScores
    ) -> List[AccessDecision]:
        return [self.evaluate(capability, scores) for capability in capabilities]

    def recommend(
        self,
        capabilities: Iterable[GatedCapability],
        scores: SkillScores,
        limit: int = DEFAULT_RECOMMENDATION_LIMIT,
    ) -> List[AccessDecision]:
        """Locked capabilities closest to unlocking, nearest first."""
        locked = [d for d in self.evaluate_all(capabilities, scores) if not d.granted]
        locked.sort(key=lambda d: (d.score_gap, len(d.unmet_requirements)))
        return locked[: max(0, limit)]

    def _granted(
        self,
        strategy: GatingStrategy,
        requirements: Sequence[Requirement],
        met: Sequence[Requirement],
        unmet: Sequence[Requirement],
    ) -> bool:
        if not requirements:
            return True

        if strategy == GatingStrategy.PROGRESSIVE:
            if any(r.critical for r in unmet):
                return False
            non_critical = [r for r in requirements if not r.critical]
            if not non_critical:
                return True
            met_non_critical = sum(1 for r in met if not r.critical)
            return met_non_critical / len(non_critical) >= self.progressive_ratio

        if strategy == GatingStrategy.ADAPTIVE:
            total_weight = sum(r.weight for r in requirements)
            if total_weight <= 0:
                return True
            met_weight = sum(r.weight for r in met)
            return met_weight / total_weight >= self.adaptive_ratio

        if strategy == GatingStrategy.COLLABORATIVE:
            return len(met) / len(requirements) >= self.collaborative_ratio

        # strict, time_based
        return not unmet
