"""
Assessment Engine - rubric scoring, competency levels and progress tracking.

Levels:
- foundation: overall < 40
- developing: overall < 70
- proficient: overall < 85
- advanced: everything above
"""

from skillgate.engines.assessment.levels import LEVEL_FLOOR, CompetencyLevel, level_for_score, next_level
from skillgate.engines.assessment.rubrics import Rubric, RubricRule
from skillgate.engines.assessment.skill_assessment import (
    CompetencyReport,
    DevelopmentArea,
    DevelopmentPriority,
    ProgressVelocity,
    SkillAssessmentEngine,
    SkillAssessmentSnapshot,
    SkillDomain,
    SkillScores,
)

__all__ = [
    "CompetencyLevel",
    "LEVEL_FLOOR",
    "level_for_score",
    "next_level",
    "Rubric",
    "RubricRule",
    "SkillAssessmentEngine",
    "SkillAssessmentSnapshot",
    "SkillDomain",
    "SkillScores",
    "ProgressVelocity",
    "CompetencyReport",
    "DevelopmentArea",
    "DevelopmentPriority",
]
