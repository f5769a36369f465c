"""
Profile Engine - reduces raw telemetry into behavioral profiles.

Domains:
- Customer analysis (ICP analysis tool)
- Value communication (cost calculator)
- Executive readiness (business case builder)
"""

from skillgate.engines.profile.assembler import BehaviorProfileAssembler, assemble_profile
from skillgate.engines.profile.behavior_profile import (
    BehaviorProfile,
    CustomerAnalysisBehavior,
    ExecutiveReadinessBehavior,
    OverallMetrics,
    ValueCommunicationBehavior,
)

__all__ = [
    "BehaviorProfileAssembler",
    "assemble_profile",
    "BehaviorProfile",
    "CustomerAnalysisBehavior",
    "ValueCommunicationBehavior",
    "ExecutiveReadinessBehavior",
    "OverallMetrics",
]
