"""
SkillGate - behavioral telemetry and competency-gating engine.
"""

__version__ = "1.0.0"
