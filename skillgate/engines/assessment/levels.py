"""
Competency levels derived from a 0-100 score.
"""

from enum import Enum
from typing import Dict, Optional


class CompetencyLevel(str, Enum):
    """Ordered competency ladder."""
    FOUNDATION = "foundation"
    DEVELOPING = "developing"
    PROFICIENT = "proficient"
    ADVANCED = "advanced"

    @property
    def rank(self) -> int:
        return LEVEL_RANK[self]


LEVEL_RANK: Dict[CompetencyLevel, int] = {
    CompetencyLevel.FOUNDATION: 0,
    CompetencyLevel.DEVELOPING: 1,
    CompetencyLevel.PROFICIENT: 2,
    CompetencyLevel.ADVANCED: 3,
}

# Upper (exclusive) bound of each rung below advanced
DEVELOPING_THRESHOLD = 40
PROFICIENT_THRESHOLD = 70
ADVANCED_THRESHOLD = 85
MASTERY_SCORE = 100

# Score that moves a user off their current rung
NEXT_LEVEL_THRESHOLD: Dict[CompetencyLevel, int] = {
    CompetencyLevel.FOUNDATION: DEVELOPING_THRESHOLD,
    CompetencyLevel.DEVELOPING: PROFICIENT_THRESHOLD,
    CompetencyLevel.PROFICIENT: ADVANCED_THRESHOLD,
    CompetencyLevel.ADVANCED: MASTERY_SCORE,
}


def level_for_score(score: float) -> CompetencyLevel:
    """Total over all numbers; scores below 0 are foundation, above 100 advanced."""
    if score < DEVELOPING_THRESHOLD:
        return CompetencyLevel.FOUNDATION
    if score < PROFICIENT_THRESHOLD:
        return CompetencyLevel.DEVELOPING
    if score < ADVANCED_THRESHOLD:
        return CompetencyLevel.PROFICIENT
    return CompetencyLevel.ADVANCED


def next_level(level: CompetencyLevel) -> Optional[CompetencyLevel]:
    ladder = list(CompetencyLevel)
    index = ladder.index(level)
    if index + 1 < len(ladder):
        return ladder[index + 1]
    return None


# Lowest score that reaches each rung
LEVEL_FLOOR: Dict[CompetencyLevel, int] = {
    CompetencyLevel.FOUNDATION: 0,
    CompetencyLevel.DEVELOPING: DEVELOPING_THRESHOLD,
    CompetencyLevel.PROFICIENT: PROFICIENT_THRESHOLD,
    CompetencyLevel.ADVANCED: ADVANCED_THRESHOLD,
}
