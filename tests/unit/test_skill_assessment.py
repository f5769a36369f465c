"""
Unit tests for skill assessment: rubrics, levels, velocity and ETA.
"""

from datetime import timedelta

import pytest

from skillgate.engines.assessment import (
    CompetencyLevel,
    DevelopmentPriority,
    SkillAssessmentEngine,
    SkillDomain,
    SkillScores,
    level_for_score,
    next_level,
)
from skillgate.engines.assessment.rubrics import (
    CUSTOMER_ANALYSIS_RUBRIC,
    EXECUTIVE_READINESS_RUBRIC,
    VALUE_COMMUNICATION_RUBRIC,
)
from skillgate.engines.profile import BehaviorProfile

FULL_PROFILE = {
    "customer_analysis": {
        "review_time_ms": 200_000,
        "buyer_persona_clicks": 6,
        "pain_point_section_time_ms": 70_000,
        "exported_summary": True,
        "return_visits": 3,
        "customized_criteria": True,
    },
    "value_communication": {
        "variable_adjustments": 6,
        "methodology_review_time_ms": 130_000,
        "exported_charts": True,
        "edge_case_testing": True,
        "session_count": 4,
        "integrated_with_business_case": True,
    },
    "executive_readiness": {
        "stakeholder_view_switches": 4,
        "content_customization": True,
        "multiple_format_exports": True,
        "auto_population_utilization": True,
        "return_access": 3,
        "strategic_export_timing": True,
    },
}


def scores(clock, ca=0, vc=0, er=0, overall=None, days=0):
    if overall is None:
        overall = round((ca + vc + er) / 3)
    return SkillScores(
        customer_analysis=ca,
        value_communication=vc,
        executive_readiness=er,
        overall=overall,
        last_assessment=clock.now() + timedelta(days=days),
    )


class TestRubrics:
    @pytest.mark.parametrize(
        "rubric", [CUSTOMER_ANALYSIS_RUBRIC, VALUE_COMMUNICATION_RUBRIC, EXECUTIVE_READINESS_RUBRIC]
    )
    def test_points_sum_to_one_hundred(self, rubric):
        assert sum(rule.points for rule in rubric.rules) == 100
        buckets = {rule.bucket for rule in rubric.rules}
        assert sum(rubric.budget(bucket) for bucket in buckets) == 100

    def test_full_profile_scores_maximum(self, clock):
        result = SkillAssessmentEngine.assess(FULL_PROFILE, assessed_at=clock.now())
        assert result.customer_analysis == 100
        assert result.value_communication == 100
        assert result.executive_readiness == 100
        assert result.overall == 100
        assert result.last_assessment == clock.now()

    def test_empty_profile_scores_zero(self, clock):
        result = SkillAssessmentEngine.assess(BehaviorProfile.empty(), assessed_at=clock.now())
        assert (result.customer_analysis, result.value_communication, result.executive_readiness) == (0, 0, 0)
        assert result.overall == 0

    def test_thresholds_are_strict(self, clock):
        profile = {
            "customer_analysis": {
                "review_time_ms": 180_000,
                "buyer_persona_clicks": 5,
                "pain_point_section_time_ms": 60_001,
                "return_visits": 2,
            }
        }
        result = SkillAssessmentEngine.assess(profile, assessed_at=clock.now())
        assert result.customer_analysis == 15

    def test_partial_profile(self, clock):
        profile = {
            "customer_analysis": {"exported_summary": True, "return_visits": 3},
            "value_communication": {"edge_case_testing": True},
            "executive_readiness": {"stakeholder_view_switches": 4, "auto_population_utilization": True},
        }
        result = SkillAssessmentEngine.assess(profile, assessed_at=clock.now())
        assert result.customer_analysis == 35
        assert result.value_communication == 20
        assert result.executive_readiness == 40
        # (35 + 20 + 40) / 3 = 31.67
        assert result.overall == 32

    def test_overall_is_rounded_mean(self, clock):
        profile = {
            "customer_analysis": {"review_time_ms": 200_000, "buyer_persona_clicks": 6},
            "value_communication": {"exported_charts": True, "session_count": 4},
            "executive_readiness": {"strategic_export_timing": True},
        }
        result = SkillAssessmentEngine.assess(profile, assessed_at=clock.now())
        # (35 + 35 + 15) / 3 = 28.33
        assert result.overall == 28

        del profile["value_communication"]
        result = SkillAssessmentEngine.assess(profile, assessed_at=clock.now())
        # (35 + 0 + 15) / 3 = 16.67
        assert result.overall == 17

    @pytest.mark.parametrize("profile", [None, "profile", 42, {"customer_analysis": None}, {"overall_metrics": []}])
    def test_malformed_profiles_score_without_raising(self, profile, clock):
        result = SkillAssessmentEngine.assess(profile, assessed_at=clock.now())
        assert result.overall == 0

    def test_wrong_typed_flag_is_not_awarded(self, clock):
        profile = {"value_communication": {"edge_case_testing": "yes please", "variable_adjustments": 9}}
        result = SkillAssessmentEngine.assess(profile, assessed_at=clock.now())
        assert result.value_communication == 15


class TestLevels:
    @pytest.mark.parametrize(
        "score, level",
        [
            (0, CompetencyLevel.FOUNDATION),
            (39, CompetencyLevel.FOUNDATION),
            (40, CompetencyLevel.DEVELOPING),
            (69, CompetencyLevel.DEVELOPING),
            (70, CompetencyLevel.PROFICIENT),
            (84, CompetencyLevel.PROFICIENT),
            (85, CompetencyLevel.ADVANCED),
            (100, CompetencyLevel.ADVANCED),
        ],
    )
    def test_boundaries(self, score, level):
        assert level_for_score(score) == level

    def test_out_of_range_scores_still_map(self):
        assert level_for_score(-5) == CompetencyLevel.FOUNDATION
        assert level_for_score(120) == CompetencyLevel.ADVANCED

    def test_ladder(self):
        assert next_level(CompetencyLevel.FOUNDATION) == CompetencyLevel.DEVELOPING
        assert next_level(CompetencyLevel.ADVANCED) is None
        assert CompetencyLevel.PROFICIENT.rank > CompetencyLevel.DEVELOPING.rank

    def test_level_uses_overall(self, clock):
        result = scores(clock, ca=100, vc=100, er=0, overall=67)
        assert SkillAssessmentEngine.determine_level(result) == CompetencyLevel.DEVELOPING
        assert result.level_for(SkillDomain.CUSTOMER_ANALYSIS) == CompetencyLevel.ADVANCED


class TestVelocity:
    def test_points_per_day(self, clock):
        previous = scores(clock, ca=20, vc=10, er=0, overall=10)
        current = scores(clock, ca=40, vc=10, er=30, overall=27, days=2)

        velocity = SkillAssessmentEngine.calculate_velocity(current, previous)

        assert velocity.customer_analysis == 10.0
        assert velocity.value_communication == 0.0
        assert velocity.executive_readiness == 15.0
        assert velocity.overall == 8.5
        assert velocity.days_between == 2.0

    def test_same_timestamp_has_no_velocity(self, clock):
        previous = scores(clock, ca=20)
        current = scores(clock, ca=40)
        assert SkillAssessmentEngine.calculate_velocity(current, previous) is None

    def test_no_previous_has_no_velocity(self, clock):
        assert SkillAssessmentEngine.calculate_velocity(scores(clock), None) is None

    def test_regression_is_negative(self, clock):
        previous = scores(clock, ca=60, overall=20)
        current = scores(clock, ca=30, overall=10, days=1)
        velocity = SkillAssessmentEngine.calculate_velocity(current, previous)
        assert velocity.overall == -10.0


class TestDaysToNextLevel:
    def test_rounds_up_whole_days(self, clock):
        previous = scores(clock, overall=20)
        current = scores(clock, overall=32, days=4)
        velocity = SkillAssessmentEngine.calculate_velocity(current, previous)
        # 8 points to 40 at 3/day
        assert SkillAssessmentEngine.predict_days_to_next_level(current, velocity) == 3

    def test_at_least_one_day(self, clock):
        previous = scores(clock, overall=0)
        current = scores(clock, overall=39, days=1)
        velocity = SkillAssessmentEngine.calculate_velocity(current, previous)
        assert SkillAssessmentEngine.predict_days_to_next_level(current, velocity) == 1

    def test_advanced_targets_mastery(self, clock):
        previous = scores(clock, overall=80)
        current = scores(clock, overall=90, days=2)
        velocity = SkillAssessmentEngine.calculate_velocity(current, previous)
        assert SkillAssessmentEngine.predict_days_to_next_level(current, velocity) == 2

    def test_no_prediction_at_maximum(self, clock):
        previous = scores(clock, overall=90)
        current = scores(clock, overall=100, days=1)
        velocity = SkillAssessmentEngine.calculate_velocity(current, previous)
        assert SkillAssessmentEngine.predict_days_to_next_level(current, velocity) is None

    @pytest.mark.parametrize("before, after", [(30, 30), (30, 20)])
    def test_no_prediction_without_progress(self, clock, before, after):
        previous = scores(clock, overall=before)
        current = scores(clock, overall=after, days=1)
        velocity = SkillAssessmentEngine.calculate_velocity(current, previous)
        assert SkillAssessmentEngine.predict_days_to_next_level(current, velocity) is None

    def test_no_prediction_without_velocity(self, clock):
        assert SkillAssessmentEngine.predict_days_to_next_level(scores(clock), None) is None


class TestDevelopmentAreas:
    def test_priorities(self, clock):
        result = scores(clock, ca=30, vc=55, er=45)
        areas = {a.domain: a for a in SkillAssessmentEngine.development_areas(result)}

        assert areas[SkillDomain.CUSTOMER_ANALYSIS].priority == DevelopmentPriority.CRITICAL
        assert areas[SkillDomain.VALUE_COMMUNICATION].priority == DevelopmentPriority.HIGH
        assert areas[SkillDomain.EXECUTIVE_READINESS].priority == DevelopmentPriority.HIGH

    def test_executive_readiness_is_never_critical(self, clock):
        result = scores(clock, er=0)
        areas = {a.domain: a for a in SkillAssessmentEngine.development_areas(result)}
        assert areas[SkillDomain.EXECUTIVE_READINESS].priority == DevelopmentPriority.HIGH

        result = scores(clock, er=60)
        areas = {a.domain: a for a in SkillAssessmentEngine.development_areas(result)}
        assert areas[SkillDomain.EXECUTIVE_READINESS].priority == DevelopmentPriority.MEDIUM

    def test_proficient_domains_are_not_listed(self, clock):
        result = scores(clock, ca=70, vc=90, er=100)
        assert SkillAssessmentEngine.development_areas(result) == []


def test_report_combines_everything(clock):
    previous = scores(clock, ca=20, vc=20, er=20, overall=20)
    current = scores(clock, ca=50, vc=40, er=30, overall=40, days=4)

    report = SkillAssessmentEngine.build_report("user-1", current, previous)

    assert report.level == CompetencyLevel.DEVELOPING
    assert report.next_level == CompetencyLevel.PROFICIENT
    assert report.velocity.overall == 5.0
    assert report.days_to_next_level == 6
    assert [a.domain for a in report.development_areas] == [
        SkillDomain.CUSTOMER_ANALYSIS,
        SkillDomain.VALUE_COMMUNICATION,
        SkillDomain.EXECUTIVE_READINESS,
    ]
