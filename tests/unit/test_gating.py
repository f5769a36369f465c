"""
Unit tests for the feature gating engine.
"""

import pytest

from skillgate.engines.assessment import CompetencyLevel, SkillDomain, SkillScores
from skillgate.engines.gating import (
    GatedCapability,
    GatingEngine,
    GatingStrategy,
    Requirement,
)

CA = SkillDomain.CUSTOMER_ANALYSIS
VC = SkillDomain.VALUE_COMMUNICATION
ER = SkillDomain.EXECUTIVE_READINESS
OVERALL = SkillDomain.OVERALL


@pytest.fixture
def engine() -> GatingEngine:
    return GatingEngine()


@pytest.fixture
def make_scores(clock):
    def _make(ca=0, vc=0, er=0, overall=0):
        return SkillScores(
            customer_analysis=ca,
            value_communication=vc,
            executive_readiness=er,
            overall=overall,
            last_assessment=clock.now(),
        )
    return _make


def req(req_id, skill=CA, min_score=0, critical=False, weight=1.0, min_level=CompetencyLevel.FOUNDATION):
    return Requirement(
        id=req_id,
        target_skill=skill,
        min_score=min_score,
        min_level=min_level,
        critical=critical,
        weight=weight,
    )


def capability(strategy, *requirements, cap_id="feature"):
    return GatedCapability(id=cap_id, name=cap_id.title(), requirements=list(requirements), strategy=strategy)


class TestRequirementChecks:
    def test_score_and_level_must_both_be_reached(self, make_scores):
        requirement = req("r", min_score=60, min_level=CompetencyLevel.PROFICIENT)
        assert GatingEngine.meets(requirement, make_scores(ca=65)) is False
        assert GatingEngine.meets(requirement, make_scores(ca=70)) is True

    def test_gap_uses_higher_of_score_and_level_floor(self, make_scores):
        requirement = req("r", min_score=60, min_level=CompetencyLevel.PROFICIENT)
        assert GatingEngine.gap(requirement, make_scores(ca=65)) == 5
        assert GatingEngine.gap(requirement, make_scores(ca=90)) == 0

    def test_overall_can_be_targeted(self, make_scores):
        requirement = req("r", skill=OVERALL, min_score=50)
        assert GatingEngine.meets(requirement, make_scores(ca=100, overall=49)) is False
        assert GatingEngine.meets(requirement, make_scores(overall=50)) is True


class TestStrict:
    @pytest.mark.parametrize("strategy", [GatingStrategy.STRICT, GatingStrategy.TIME_BASED])
    def test_all_requirements_needed(self, engine, make_scores, strategy):
        cap = capability(strategy, req("a", CA, 60), req("b", VC, 60))

        assert engine.evaluate(cap, make_scores(ca=60, vc=60)).granted is True

        decision = engine.evaluate(cap, make_scores(ca=60, vc=50))
        assert decision.granted is False
        assert [r.id for r in decision.unmet_requirements] == ["b"]
        assert decision.score_gap == 10
        assert decision.strategy == strategy


class TestNoRequirements:
    @pytest.mark.parametrize("strategy", list(GatingStrategy))
    def test_always_granted(self, engine, make_scores, strategy):
        decision = engine.evaluate(capability(strategy), make_scores())
        assert decision.granted is True
        assert decision.unmet_requirements == []
        assert decision.score_gap == 0


class TestProgressive:
    def test_unmet_critical_requirement_denies(self, engine, make_scores):
        cap = capability(
            GatingStrategy.PROGRESSIVE,
            req("core", VC, 80, critical=True),
            req("a", CA, 10),
            req("b", CA, 10),
        )
        assert engine.evaluate(cap, make_scores(ca=50, vc=70)).granted is False

    def test_one_of_three_non_critical_is_not_enough(self, engine, make_scores):
        cap = capability(
            GatingStrategy.PROGRESSIVE,
            req("core", CA, 10, critical=True),
            req("a", CA, 10),
            req("b", VC, 50),
            req("c", ER, 50),
        )
        decision = engine.evaluate(cap, make_scores(ca=20))
        assert decision.granted is False
        assert {r.id for r in decision.unmet_requirements} == {"b", "c"}

    def test_seventy_percent_of_non_critical_is_enough(self, engine, make_scores):
        met = [req(f"m{i}", CA, 10) for i in range(7)]
        unmet = [req(f"u{i}", VC, 90) for i in range(3)]
        cap = capability(GatingStrategy.PROGRESSIVE, *met, *unmet)
        assert engine.evaluate(cap, make_scores(ca=20)).granted is True

    def test_only_critical_requirements(self, engine, make_scores):
        cap = capability(GatingStrategy.PROGRESSIVE, req("core", CA, 10, critical=True))
        assert engine.evaluate(cap, make_scores(ca=10)).granted is True
        assert engine.evaluate(cap, make_scores(ca=9)).granted is False


class TestAdaptive:
    def test_weight_threshold(self, engine, make_scores):
        cap = capability(
            GatingStrategy.ADAPTIVE,
            req("a", CA, 10, weight=0.5),
            req("b", VC, 10, weight=0.25),
            req("c", ER, 10, weight=0.25),
        )
        assert engine.evaluate(cap, make_scores(ca=10, vc=10)).granted is True
        assert engine.evaluate(cap, make_scores(ca=10)).granted is False
        assert engine.evaluate(cap, make_scores(vc=10, er=10)).granted is False

    def test_zero_total_weight_is_granted(self, engine, make_scores):
        cap = capability(GatingStrategy.ADAPTIVE, req("a", CA, 90, weight=0.0), req("b", VC, 90, weight=0.0))
        decision = engine.evaluate(cap, make_scores())
        assert decision.granted is True
        assert len(decision.unmet_requirements) == 2


class TestCollaborative:
    def test_three_of_five_is_enough(self, engine, make_scores):
        cap = capability(
            GatingStrategy.COLLABORATIVE,
            req("a", CA, 10),
            req("b", CA, 20),
            req("c", CA, 30),
            req("d", CA, 40),
            req("e", CA, 50),
        )
        assert engine.evaluate(cap, make_scores(ca=30)).granted is True
        assert engine.evaluate(cap, make_scores(ca=29)).granted is False

    def test_criticality_is_ignored(self, engine, make_scores):
        cap = capability(
            GatingStrategy.COLLABORATIVE,
            req("a", CA, 10),
            req("b", CA, 10),
            req("core", VC, 90, critical=True),
        )
        assert engine.evaluate(cap, make_scores(ca=10)).granted is True


class TestStrategyParsing:
    def test_unknown_strategy_is_strict(self, engine, make_scores):
        cap = GatedCapability(
            id="feature",
            name="Feature",
            requirements=[req("a", CA, 10), req("b", VC, 10)],
            strategy="round_robin",
        )
        assert cap.strategy == GatingStrategy.STRICT
        assert engine.evaluate(cap, make_scores(ca=10)).granted is False

    def test_strategy_names_are_case_insensitive(self):
        cap = GatedCapability(id="feature", name="Feature", strategy="Progressive")
        assert cap.strategy == GatingStrategy.PROGRESSIVE

    def test_custom_ratio(self, make_scores):
        strict_collab = GatingEngine(collaborative_ratio=1.0)
        cap = capability(GatingStrategy.COLLABORATIVE, req("a", CA, 10), req("b", VC, 10))
        assert strict_collab.evaluate(cap, make_scores(ca=10)).granted is False


class TestRecommend:
    def test_locked_capabilities_nearest_first(self, engine, make_scores):
        capabilities = [
            capability(GatingStrategy.STRICT, req("far", CA, 80), cap_id="far"),
            capability(GatingStrategy.STRICT, req("two", CA, 52), req("two-b", VC, 53), cap_id="two_unmet"),
            capability(GatingStrategy.STRICT, req("near", CA, 55), cap_id="near"),
            capability(GatingStrategy.STRICT, req("open", CA, 10), cap_id="open"),
        ]
        scores = make_scores(ca=50, vc=50)

        recommended = engine.recommend(capabilities, scores)

        assert [d.capability_id for d in recommended] == ["near", "two_unmet", "far"]
        assert [d.score_gap for d in recommended] == [5, 5, 30]

    def test_limit(self, engine, make_scores):
        capabilities = [
            capability(GatingStrategy.STRICT, req(f"r{i}", CA, 60 + i), cap_id=f"cap{i}") for i in range(8)
        ]
        assert len(engine.recommend(capabilities, make_scores(), limit=3)) == 3
        assert engine.recommend(capabilities, make_scores(), limit=0) == []
