"""
Scoring rubrics for the three competency domains.

Each rubric is a list of independent rules grouped into buckets whose
budgets sum to 100. A rule either awards points when a counter strictly
exceeds a threshold, or when a flag is set.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from pydantic import BaseModel


@dataclass(frozen=True)
class RubricRule:
    """One scoring rule over a profile section field."""
    field: str
    points: int
    bucket: str
    threshold: Optional[int] = None  # None means the field is a flag

    def awarded(self, section: BaseModel) -> int:
        value = getattr(section, self.field, None)
        if self.threshold is None:
            met = value is True
        else:
            met = isinstance(value, (int, float)) and not isinstance(value, bool) and value > self.threshold
        return self.points if met else 0


@dataclass(frozen=True)
class Rubric:
    domain: str
    rules: Sequence[RubricRule]

    def score(self, section: BaseModel) -> int:
        total = sum(rule.awarded(section) for rule in self.rules)
        return max(0, min(total, 100))

    def budget(self, bucket: str) -> int:
        return sum(rule.points for rule in self.rules if rule.bucket == bucket)


CUSTOMER_ANALYSIS_RUBRIC = Rubric(
    domain="customer_analysis",
    rules=(
        # Systematic research
        RubricRule("review_time_ms", 20, "systematic_research", threshold=180_000),
        RubricRule("buyer_persona_clicks", 15, "systematic_research", threshold=5),
        RubricRule("pain_point_section_time_ms", 15, "systematic_research", threshold=60_000),
        # Implementation readiness
        RubricRule("exported_summary", 20, "implementation_readiness"),
        RubricRule("return_visits", 15, "implementation_readiness", threshold=2),
        # Advanced usage
        RubricRule("customized_criteria", 15, "advanced_usage"),
    ),
)

VALUE_COMMUNICATION_RUBRIC = Rubric(
    domain="value_communication",
    rules=(
        # Analytical sophistication
        RubricRule("variable_adjustments", 15, "analytical_sophistication", threshold=5),
        RubricRule("methodology_review_time_ms", 15, "analytical_sophistication", threshold=120_000),
        RubricRule("edge_case_testing", 20, "analytical_sophistication"),
        # Presentation readiness
        RubricRule("exported_charts", 20, "presentation_readiness"),
        RubricRule("session_count", 15, "presentation_readiness", threshold=3),
        # Integration
        RubricRule("integrated_with_business_case", 15, "integration"),
    ),
)

EXECUTIVE_READINESS_RUBRIC = Rubric(
    domain="executive_readiness",
    rules=(
        # Multi-stakeholder awareness
        RubricRule("stakeholder_view_switches", 20, "stakeholder_awareness", threshold=3),
        RubricRule("content_customization", 15, "stakeholder_awareness"),
        RubricRule("multiple_format_exports", 15, "stakeholder_awareness"),
        # Execution sophistication
        RubricRule("auto_population_utilization", 20, "execution_sophistication"),
        RubricRule("return_access", 15, "execution_sophistication", threshold=2),
        # Strategic timing
        RubricRule("strategic_export_timing", 15, "strategic_timing"),
    ),
)
