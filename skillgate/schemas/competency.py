"""
Pydantic schemas for profile, assessment and capability endpoints.
"""

from typing import List

from pydantic import BaseModel

from skillgate.engines.assessment.levels import CompetencyLevel
from skillgate.engines.assessment.skill_assessment import SkillScores
from skillgate.engines.gating.capability import AccessDecision


class CapabilityDecisionResponse(BaseModel):
    """Access decision for one capability."""

    name: str
    decision: AccessDecision


class CapabilitiesResponse(BaseModel):
    """Every catalog decision for a user, and the capabilities closest to unlocking."""

    user_id: str
    scores: SkillScores
    level: CompetencyLevel
    capabilities: List[CapabilityDecisionResponse]
    recommendations: List[AccessDecision] = []
