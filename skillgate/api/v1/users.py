"""
User competency endpoints - behavior profile, assessments, capability access.
"""

from fastapi import APIRouter, HTTPException, Query, status

from skillgate.api.deps import Competency
from skillgate.engines.assessment.skill_assessment import CompetencyReport
from skillgate.engines.gating.capability import AccessDecision
from skillgate.engines.gating.gating_engine import DEFAULT_RECOMMENDATION_LIMIT
from skillgate.engines.profile.behavior_profile import BehaviorProfile
from skillgate.schemas.competency import CapabilitiesResponse, CapabilityDecisionResponse

router = APIRouter()


@router.get("/{user_id}/profile", response_model=BehaviorProfile)
async def get_profile(user_id: str, competency: Competency):
    """Current behavior profile, recomputed from the full local history."""
    return await competency.profile(user_id)


@router.post(
    "/{user_id}/assessments",
    response_model=CompetencyReport,
    status_code=status.HTTP_201_CREATED,
)
async def run_assessment(user_id: str, competency: Competency):
    """Score the user, record the run and report level, velocity and development areas."""
    return await competency.assess(user_id)


@router.get("/{user_id}/capabilities", response_model=CapabilitiesResponse)
async def list_capabilities(
    user_id: str,
    competency: Competency,
    limit: int = Query(DEFAULT_RECOMMENDATION_LIMIT, ge=0, le=50),
):
    """Decisions for every catalog capability plus what to unlock next."""
    overview = await competency.access_overview(user_id, limit=limit)
    names = {c.id: c.name for c in competency.capabilities}
    return CapabilitiesResponse(
        user_id=user_id,
        scores=overview.scores,
        level=overview.level,
        capabilities=[
            CapabilityDecisionResponse(name=names[d.capability_id], decision=d)
            for d in overview.decisions
        ],
        recommendations=overview.recommendations,
    )


@router.get("/{user_id}/capabilities/{capability_id}", response_model=AccessDecision)
async def check_capability(user_id: str, capability_id: str, competency: Competency):
    decision = await competency.check_access(user_id, capability_id)
    if decision is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown capability: {capability_id}",
        )
    return decision
