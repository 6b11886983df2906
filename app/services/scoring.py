# scoring.py
from __future__ import annotations
from datetime import datetime
from typing import List

from app.enums import RiskLevel
from app.rules.factors import DEFAULT_CONFIG, RiskConfig, extract_risk_factors
from app.schemas import OrderSnapshot, RiskAssessment, RiskFactor

# -----------------------------
# Fixed contract: dashboards and coaching benchmarks use the same bands
# -----------------------------
MIN_SCORE = 0
MAX_SCORE = 100
THRESHOLDS = {
    "high": 70,    # >= 70 → HIGH
    "medium": 40,  # >= 40 → MEDIUM, else LOW
}

# Never present an order as certain to complete or certain to fail
MIN_PROBABILITY = 5
MAX_PROBABILITY = 95

# -----------------------------
# Helpers
# -----------------------------
def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))

def level_for(score: int) -> RiskLevel:
    if score >= THRESHOLDS["high"]:
        return RiskLevel.HIGH
    if score >= THRESHOLDS["medium"]:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW

# -----------------------------
# Scorer
# -----------------------------
def score_factors(factors: List[RiskFactor]) -> RiskAssessment:
    """
    Sum of signed factor weights, clamped to 0..100.
    An empty factor list scores 0 / LOW.
    """
    raw = sum(f.weight for f in factors)
    score = int(clamp(raw, MIN_SCORE, MAX_SCORE))
    return RiskAssessment(score=score, level=level_for(score), factors=list(factors))

# -----------------------------
# Fulfillment estimate (inverse of risk, kept off the extremes)
# -----------------------------
def fulfillment_probability(score: int) -> int:
    return int(clamp(100 - score, MIN_PROBABILITY, MAX_PROBABILITY))

# -----------------------------
# Main entry
# -----------------------------
def assess_order(
    order: OrderSnapshot,
    now: datetime,
    config: RiskConfig = DEFAULT_CONFIG,
) -> RiskAssessment:
    """Extract factors for one order and score them. Pure given (order, now, config)."""
    return score_factors(extract_risk_factors(order, now, config))
