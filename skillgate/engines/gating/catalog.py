"""
Capability catalog: the product's default gated features and the JSON loader
for installation-specific catalogs.

Catalog problems are configuration errors and surface here, at load time;
the gating engine itself only ever sees validated declarations.
"""

import json
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from pydantic import TypeAdapter, ValidationError

from skillgate.engines.assessment.levels import level_for_score
from skillgate.engines.assessment.skill_assessment import SkillDomain
from skillgate.engines.gating.capability import GatedCapability, GatingStrategy, Requirement
from skillgate.logging_config import get_logger

logger = get_logger(__name__)


class CapabilityConfigError(Exception):
    """A capability catalog could not be read or is invalid."""


def _requirement(capability_id: str, skill: SkillDomain, min_score: int) -> Requirement:
    return Requirement(
        id=f"{capability_id}.{skill.value}",
        target_skill=skill,
        min_level=level_for_score(min_score),
        min_score=min_score,
        weight=1.0,
        critical=True,
        description=f"{skill.value.replace('_', ' ')} score of at least {min_score}",
    )


def _capability(
    capability_id: str,
    name: str,
    *minimums: Tuple[SkillDomain, int],
) -> GatedCapability:
    return GatedCapability(
        id=capability_id,
        name=name,
        requirements=[_requirement(capability_id, skill, score) for skill, score in minimums],
        strategy=GatingStrategy.STRICT,
    )


DEFAULT_CAPABILITIES: Tuple[GatedCapability, ...] = (
    # Basic advanced features
    _capability("advanced_customization", "Advanced Customization", (SkillDomain.OVERALL, 50)),
    _capability("analytics_dashboard", "Analytics Dashboard", (SkillDomain.CUSTOMER_ANALYSIS, 60)),
    _capability("export_automation", "Export Automation", (SkillDomain.VALUE_COMMUNICATION, 60)),
    _capability("stakeholder_mapping", "Stakeholder Mapping", (SkillDomain.EXECUTIVE_READINESS, 60)),
    # Intermediate features
    _capability(
        "competitive_intelligence",
        "Competitive Intelligence",
        (SkillDomain.OVERALL, 70),
        (SkillDomain.CUSTOMER_ANALYSIS, 75),
    ),
    _capability(
        "advanced_financial_modeling",
        "Advanced Financial Modeling",
        (SkillDomain.VALUE_COMMUNICATION, 75),
    ),
    _capability(
        "executive_presentation_builder",
        "Executive Presentation Builder",
        (SkillDomain.EXECUTIVE_READINESS, 75),
    ),
    # Advanced features
    _capability("market_data", "Market Data", (SkillDomain.OVERALL, 85)),
    _capability(
        "strategic_insights",
        "Strategic Insights",
        (SkillDomain.OVERALL, 80),
        (SkillDomain.EXECUTIVE_READINESS, 85),
    ),
    _capability("revenue_intelligence_mastery", "Revenue Intelligence Mastery", (SkillDomain.OVERALL, 90)),
)

_catalog_adapter = TypeAdapter(List[GatedCapability])


def parse_capabilities(raw: Union[list, dict]) -> List[GatedCapability]:
    """
    Validate a decoded catalog.

    Accepts either a bare list of capabilities or ``{"capabilities": [...]}``.
    """
    if isinstance(raw, dict):
        raw = raw.get("capabilities")
    if not isinstance(raw, list):
        raise CapabilityConfigError("catalog must be a list of capabilities")

    try:
        capabilities = _catalog_adapter.validate_python(raw)
    except ValidationError as exc:
        raise CapabilityConfigError(f"invalid capability catalog: {exc}") from exc

    seen = set()
    for capability in capabilities:
        if capability.id in seen:
            raise CapabilityConfigError(f"duplicate capability id: {capability.id}")
        seen.add(capability.id)
    return capabilities


def load_capabilities(path: Optional[Union[str, Path]] = None) -> Sequence[GatedCapability]:
    """Load a JSON catalog, or the built-in defaults when no path is given."""
    if path is None:
        return DEFAULT_CAPABILITIES

    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise CapabilityConfigError(f"cannot read capability catalog {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise CapabilityConfigError(f"capability catalog {path} is not valid JSON: {exc}") from exc

    capabilities = tuple(parse_capabilities(raw))
    logger.info("Loaded capability catalog", extra={"path": str(path), "count": len(capabilities)})
    return capabilities
