"""
Gated capability declarations and access decisions.
"""

from enum import Enum
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from skillgate.engines.assessment.levels import CompetencyLevel
from skillgate.engines.assessment.skill_assessment import SkillDomain


class GatingStrategy(str, Enum):
    """How a capability's requirements combine into a decision."""
    STRICT = "strict"                # every requirement
    PROGRESSIVE = "progressive"      # every critical one, most of the rest
    ADAPTIVE = "adaptive"            # enough requirement weight
    COLLABORATIVE = "collaborative"  # enough requirements by count
    TIME_BASED = "time_based"        # every requirement

    @classmethod
    def coerce(cls, value: Any) -> "GatingStrategy":
        """Unknown strategies fall back to strict."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.STRICT


class Requirement(BaseModel):
    """One competency condition on a capability."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    target_skill: SkillDomain
    min_level: CompetencyLevel = CompetencyLevel.FOUNDATION
    min_score: int = Field(default=0, ge=0, le=100)
    weight: float = Field(default=1.0, ge=0.0, le=1.0)
    critical: bool = False
    description: str = ""


class GatedCapability(BaseModel):
    """A feature that is only exposed once its requirements are satisfied."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    requirements: List[Requirement] = Field(default_factory=list)
    strategy: GatingStrategy = GatingStrategy.STRICT

    @field_validator("strategy", mode="before")
    @classmethod
    def _known_strategy(cls, value: Any) -> GatingStrategy:
        return GatingStrategy.coerce(value)


class AccessDecision(BaseModel):
    """Outcome of evaluating one capability against a user's scores. Never persisted."""

    model_config = ConfigDict(frozen=True)

    capability_id: str
    granted: bool
    strategy: GatingStrategy
    unmet_requirements: List[Requirement] = Field(default_factory=list)
    score_gap: int = 0
