"""
Skill Assessment Engine - converts behavior profiles into competency scores.

Scores:
- Three domain scores in [0, 100], each from a fixed rubric
- overall = round(mean(domains)), half-up

Derived:
- Competency level from a score (foundation / developing / proficient / advanced)
- Progress velocity between two assessments (points per day)
- Days to the next level at the current velocity
- Development areas with a priority for every domain below proficient
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from skillgate.engines.assessment.levels import (
    NEXT_LEVEL_THRESHOLD,
    PROFICIENT_THRESHOLD,
    CompetencyLevel,
    level_for_score,
    next_level,
)
from skillgate.engines.assessment.rubrics import (
    CUSTOMER_ANALYSIS_RUBRIC,
    EXECUTIVE_READINESS_RUBRIC,
    VALUE_COMMUNICATION_RUBRIC,
)
from skillgate.engines.profile.behavior_profile import BehaviorProfile
from skillgate.kernel.clock import ensure_utc

SECONDS_PER_DAY = 86_400

# Executive readiness below proficient is never critical
EXECUTIVE_HIGH_PRIORITY_BELOW = 50


class SkillDomain(str, Enum):
    """Scored domains, plus the aggregate."""
    CUSTOMER_ANALYSIS = "customer_analysis"
    VALUE_COMMUNICATION = "value_communication"
    EXECUTIVE_READINESS = "executive_readiness"
    OVERALL = "overall"


DOMAINS = (
    SkillDomain.CUSTOMER_ANALYSIS,
    SkillDomain.VALUE_COMMUNICATION,
    SkillDomain.EXECUTIVE_READINESS,
)


class SkillScores(BaseModel):
    """One assessment run."""

    model_config = ConfigDict(frozen=True)

    customer_analysis: int = Field(default=0, ge=0, le=100)
    value_communication: int = Field(default=0, ge=0, le=100)
    executive_readiness: int = Field(default=0, ge=0, le=100)
    overall: int = Field(default=0, ge=0, le=100)
    last_assessment: datetime

    def score_for(self, domain: SkillDomain) -> int:
        return getattr(self, SkillDomain(domain).value)

    def level_for(self, domain: SkillDomain) -> CompetencyLevel:
        return level_for_score(self.score_for(domain))

    @property
    def level(self) -> CompetencyLevel:
        return level_for_score(self.overall)


class SkillAssessmentSnapshot(BaseModel):
    """Assessment result as shipped to the collector."""

    model_config = ConfigDict(frozen=True)

    type: Literal["skill_assessment"] = "skill_assessment"
    user_id: str
    scores: SkillScores
    level: CompetencyLevel


class ProgressVelocity(BaseModel):
    """Points per day between two assessments."""

    model_config = ConfigDict(frozen=True)

    customer_analysis: float
    value_communication: float
    executive_readiness: float
    overall: float
    days_between: float


class DevelopmentPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


class DevelopmentArea(BaseModel):
    model_config = ConfigDict(frozen=True)

    domain: SkillDomain
    score: int
    level: CompetencyLevel
    priority: DevelopmentPriority


class CompetencyReport(BaseModel):
    """Result of an assessment run for one user."""

    user_id: str
    scores: SkillScores
    level: CompetencyLevel
    next_level: Optional[CompetencyLevel] = None
    velocity: Optional[ProgressVelocity] = None
    days_to_next_level: Optional[int] = None
    development_areas: List[DevelopmentArea] = Field(default_factory=list)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class SkillAssessmentEngine:
    """
    Scores behavior profiles.

    Every method is pure and total: partial or malformed profiles fall back to
    zero/false per field, and nothing here raises to the caller.
    """

    @classmethod
    def assess(
        cls,
        profile: Union[BehaviorProfile, Mapping[str, Any], None],
        assessed_at: Optional[datetime] = None,
    ) -> SkillScores:
        """Score a profile; ``assessed_at`` defaults to now (UTC)."""
        profile = cls._coerce_profile(profile)

        customer_analysis = CUSTOMER_ANALYSIS_RUBRIC.score(profile.customer_analysis)
        value_communication = VALUE_COMMUNICATION_RUBRIC.score(profile.value_communication)
        executive_readiness = EXECUTIVE_READINESS_RUBRIC.score(profile.executive_readiness)
        overall = round_half_up((customer_analysis + value_communication + executive_readiness) / 3)

        return SkillScores(
            customer_analysis=customer_analysis,
            value_communication=value_communication,
            executive_readiness=executive_readiness,
            overall=overall,
            last_assessment=ensure_utc(assessed_at) if assessed_at else datetime.now(timezone.utc),
        )

    @classmethod
    def determine_level(cls, scores: SkillScores) -> CompetencyLevel:
        return level_for_score(scores.overall)

    @classmethod
    def calculate_velocity(
        cls,
        current: SkillScores,
        previous: Optional[SkillScores],
    ) -> Optional[ProgressVelocity]:
        """Velocity from ``previous`` to ``current``; None when the timestamps match."""
        if previous is None:
            return None

        seconds = (ensure_utc(current.last_assessment) - ensure_utc(previous.last_assessment)).total_seconds()
        days = seconds / SECONDS_PER_DAY
        if days == 0:
            return None

        return ProgressVelocity(
            customer_analysis=(current.customer_analysis - previous.customer_analysis) / days,
            value_communication=(current.value_communication - previous.value_communication) / days,
            executive_readiness=(current.executive_readiness - previous.executive_readiness) / days,
            overall=(current.overall - previous.overall) / days,
            days_between=days,
        )

    @classmethod
    def predict_days_to_next_level(
        cls,
        scores: SkillScores,
        velocity: Optional[ProgressVelocity],
    ) -> Optional[int]:
        """Whole days until the next rung at the current pace, at least 1."""
        if velocity is None or velocity.overall <= 0:
            return None

        target = NEXT_LEVEL_THRESHOLD[cls.determine_level(scores)]
        if scores.overall >= target:
            return None

        days = math.ceil((target - scores.overall) / velocity.overall)
        return max(days, 1)

    @classmethod
    def development_areas(cls, scores: SkillScores) -> List[DevelopmentArea]:
        """Domains below proficient, with how urgently each needs work."""
        areas = []
        for domain in DOMAINS:
            score = scores.score_for(domain)
            if score >= PROFICIENT_THRESHOLD:
                continue
            areas.append(
                DevelopmentArea(
                    domain=domain,
                    score=score,
                    level=level_for_score(score),
                    priority=cls._priority(domain, score),
                )
            )
        return areas

    @classmethod
    def build_report(
        cls,
        user_id: str,
        scores: SkillScores,
        previous: Optional[SkillScores] = None,
    ) -> CompetencyReport:
        level = cls.determine_level(scores)
        velocity = cls.calculate_velocity(scores, previous)
        return CompetencyReport(
            user_id=user_id,
            scores=scores,
            level=level,
            next_level=next_level(level),
            velocity=velocity,
            days_to_next_level=cls.predict_days_to_next_level(scores, velocity),
            development_areas=cls.development_areas(scores),
        )

    @staticmethod
    def _priority(domain: SkillDomain, score: int) -> DevelopmentPriority:
        if domain == SkillDomain.EXECUTIVE_READINESS:
            if score < EXECUTIVE_HIGH_PRIORITY_BELOW:
                return DevelopmentPriority.HIGH
            return DevelopmentPriority.MEDIUM
        if score < NEXT_LEVEL_THRESHOLD[CompetencyLevel.FOUNDATION]:
            return DevelopmentPriority.CRITICAL
        return DevelopmentPriority.HIGH

    @staticmethod
    def _coerce_profile(profile: Union[BehaviorProfile, Mapping[str, Any], None]) -> BehaviorProfile:
        if isinstance(profile, BehaviorProfile):
            return profile
        if not isinstance(profile, Mapping):
            return BehaviorProfile.empty()
        try:
            return BehaviorProfile.model_validate(dict(profile))
        except ValidationError:
            return BehaviorProfile.empty()
