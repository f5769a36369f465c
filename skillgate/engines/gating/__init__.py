"""
Gating Engine - progressive capability unlocks driven by competency scores.
"""

from skillgate.engines.gating.capability import (
    AccessDecision,
    GatedCapability,
    GatingStrategy,
    Requirement,
)
from skillgate.engines.gating.catalog import (
    DEFAULT_CAPABILITIES,
    CapabilityConfigError,
    load_capabilities,
    parse_capabilities,
)
from skillgate.engines.gating.gating_engine import (
    ADAPTIVE_WEIGHT_RATIO,
    COLLABORATIVE_MET_RATIO,
    PROGRESSIVE_NON_CRITICAL_RATIO,
    GatingEngine,
)

__all__ = [
    "AccessDecision",
    "GatedCapability",
    "GatingStrategy",
    "Requirement",
    "DEFAULT_CAPABILITIES",
    "CapabilityConfigError",
    "load_capabilities",
    "parse_capabilities",
    "GatingEngine",
    "PROGRESSIVE_NON_CRITICAL_RATIO",
    "ADAPTIVE_WEIGHT_RATIO",
    "COLLABORATIVE_MET_RATIO",
]
