# app/tests/test_scoring.py
from app.enums import RiskLevel
from app.schemas import RiskFactor
from app.services.scoring import assess_order, fulfillment_probability, level_for, score_factors


def f(weight, name="x"):
    return RiskFactor(name=name, weight=weight, description=f"{name} {weight}")


def test_no_factors_scores_zero_low():
    a = score_factors([])
    assert a.score == 0
    assert a.level == RiskLevel.LOW
    assert a.factors == []


def test_threshold_boundaries():
    assert level_for(39) == RiskLevel.LOW
    assert level_for(40) == RiskLevel.MEDIUM
    assert level_for(69) == RiskLevel.MEDIUM
    assert level_for(70) == RiskLevel.HIGH
    assert level_for(100) == RiskLevel.HIGH


def test_score_is_clamped():
    assert score_factors([f(60), f(35), f(25)]).score == 100
    assert score_factors([f(10), f(-40)]).score == 0


def test_factors_kept_in_order():
    factors = [f(10, "a"), f(20, "b")]
    assert [x.name for x in score_factors(factors).factors] == ["a", "b"]


def test_probability_bounds():
    assert fulfillment_probability(0) == 95
    assert fulfillment_probability(100) == 5
    assert fulfillment_probability(30) == 70
    probs = [fulfillment_probability(s) for s in range(0, 101)]
    assert all(5 <= p <= 95 for p in probs)
    assert probs == sorted(probs, reverse=True)


def test_financing_and_silence_is_high(financing_stalled_order, now):
    a = assess_order(financing_stalled_order, now)
    assert a.score == 75
    assert a.level == RiskLevel.HIGH
    assert fulfillment_probability(a.score) <= 30


def test_assessment_is_deterministic(financing_stalled_order, now):
    first = assess_order(financing_stalled_order, now)
    second = assess_order(financing_stalled_order, now)
    assert first.model_dump() == second.model_dump()
