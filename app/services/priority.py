# app/services/priority.py
"""
Priority list generation.

Every active order is scored, the whole book is sorted and ranked, summary
and stats are computed over the whole book, and only then is the caller's
riskLevel filter and limit applied. Ranks are never renumbered after that.
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from app.config import settings
from app.enums import RiskLevel, TERMINAL_STATUSES
from app.repository import OrderRepository
from app.rules.actions import NO_ACTION, applicable_actions, plan_next_best_action
from app.rules.factors import DEFAULT_CONFIG, RiskConfig
from app.schemas import (
    NextBestAction, OrderRiskResponse, OrderSnapshot, PriorityItem, PrioritySnapshot,
    PriorityStats, PrioritySummary, RiskAssessment,
)
from app.services.scoring import assess_order, fulfillment_probability
from app.services.writeback import Deferrer, ScoreWriteback, run_detached
from app.utils.dates import end_of_day, local_now
from app.utils.logging import logger


class InvalidQueryError(ValueError):
    """Bad priority-list query parameter; reported to the caller as a client error."""


@dataclass
class PriorityQuery:
    salesperson_id: Optional[str] = None
    risk_level: Optional[RiskLevel] = None
    limit: int = settings.PRIORITY_DEFAULT_LIMIT


def parse_priority_query(
    salesperson_id: Optional[str] = None,
    risk_level: Optional[str] = None,
    limit: Optional[str] = None,
) -> PriorityQuery:
    level = None
    if risk_level:
        try:
            level = RiskLevel(risk_level)
        except ValueError:
            allowed = ", ".join(l.value for l in RiskLevel)
            raise InvalidQueryError(f"Invalid riskLevel: {risk_level!r}. Must be one of {allowed}")

    n = settings.PRIORITY_DEFAULT_LIMIT
    if limit is not None and limit.strip() != "":
        try:
            n = int(limit.strip())
        except ValueError:
            raise InvalidQueryError(f"Invalid limit: {limit!r}. Must be an integer")
    n = max(1, min(settings.PRIORITY_MAX_LIMIT, n))

    return PriorityQuery(salesperson_id=salesperson_id or None, risk_level=level, limit=n)


# -----------------------------
# Per-order pipeline
# -----------------------------
@dataclass
class ScoredOrder:
    order: OrderSnapshot          # enriched copy
    assessment: RiskAssessment
    action: NextBestAction


def score_order(order: OrderSnapshot, now: datetime, config: RiskConfig = DEFAULT_CONFIG) -> ScoredOrder:
    assessment = assess_order(order, now, config)
    probability = fulfillment_probability(assessment.score)
    action = plan_next_best_action(order, assessment)
    enriched = order.model_copy(update={
        "risk_score": assessment.score,
        "fulfillment_probability": probability,
    })
    return ScoredOrder(order=enriched, assessment=assessment, action=action)


def _sort_key(s: ScoredOrder):
    # risk desc, then value desc, then id for a total order
    return (-s.assessment.score, -(s.order.total_amount or 0.0), s.order.id)


def rank_orders(
    orders: Iterable[OrderSnapshot],
    now: datetime,
    config: RiskConfig = DEFAULT_CONFIG,
) -> List[PriorityItem]:
    scored: List[ScoredOrder] = []
    for order in orders:
        if order.status in TERMINAL_STATUSES:
            continue
        try:
            scored.append(score_order(order, now, config))
        except Exception:
            logger.exception("Excluding order %s from priority list: scoring failed", order.id)

    scored.sort(key=_sort_key)

    day = now.date().isoformat()
    expires_at = end_of_day(now)
    return [
        PriorityItem(
            id=f"priority-{s.order.id}-{day}",
            order_id=s.order.id,
            order=s.order,
            rank=rank,
            risk_score=s.assessment.score,
            risk_level=s.assessment.level,
            risk_factors=s.assessment.factors,
            next_best_action=s.action,
            generated_at=now,
            expires_at=expires_at,
        )
        for rank, s in enumerate(scored, start=1)
    ]


# -----------------------------
# Aggregates (always over the full ranked set)
# -----------------------------
def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))

def build_summary(items: List[PriorityItem]) -> PrioritySummary:
    return PrioritySummary(
        high_risk=sum(1 for i in items if i.risk_level == RiskLevel.HIGH),
        medium_risk=sum(1 for i in items if i.risk_level == RiskLevel.MEDIUM),
        low_risk=sum(1 for i in items if i.risk_level == RiskLevel.LOW),
        total_actions=sum(1 for i in items if i.next_best_action.action != NO_ACTION),
    )

def build_stats(items: List[PriorityItem]) -> PriorityStats:
    if not items:
        return PriorityStats()
    n = len(items)
    return PriorityStats(
        average_risk_score=_round_half_up(sum(i.risk_score for i in items) / n),
        average_fulfillment_probability=_round_half_up(
            sum(i.order.fulfillment_probability for i in items) / n
        ),
        total_order_value=sum(i.order.total_amount for i in items),
        at_risk_order_value=sum(
            i.order.total_amount for i in items if i.risk_level in (RiskLevel.HIGH, RiskLevel.MEDIUM)
        ),
    )


def build_priority_snapshot(
    orders: Iterable[OrderSnapshot],
    now: datetime,
    risk_level: Optional[RiskLevel] = None,
    limit: int = settings.PRIORITY_DEFAULT_LIMIT,
    config: RiskConfig = DEFAULT_CONFIG,
) -> Tuple[PrioritySnapshot, List[PriorityItem]]:
    """
    Returns (snapshot, ranked) where `ranked` is the full ranked book
    (what gets written back) and `snapshot.items` is the filtered slice.
    """
    ranked = rank_orders(orders, now, config)

    items = ranked
    if risk_level is not None:
        items = [i for i in items if i.risk_level == risk_level]
    items = items[:max(0, limit)]

    snapshot = PrioritySnapshot(
        date=now.date(),
        generated_at=now,
        summary=build_summary(ranked),
        stats=build_stats(ranked),
        items=items,
    )
    return snapshot, ranked


# -----------------------------
# Main entry
# -----------------------------
def generate_priority_snapshot(
    repo: OrderRepository,
    query: PriorityQuery,
    writeback: Optional[ScoreWriteback] = None,
    now: Optional[datetime] = None,
    config: RiskConfig = DEFAULT_CONFIG,
    defer: Optional[Deferrer] = None,
) -> PrioritySnapshot:
    """
    Read failures from the repository propagate; no partial snapshot is built.

    Writeback of the full ranked book is handed to `defer(fn, *args)` and never
    awaited. The API passes FastAPI's `BackgroundTasks.add_task`; other callers
    get a detached thread.
    """
    now = now or local_now()
    orders = repo.list_active_orders(query.salesperson_id)

    snapshot, ranked = build_priority_snapshot(orders, now, query.risk_level, query.limit, config)

    if writeback is not None:
        (defer or run_detached)(writeback.dispatch, ranked)

    logger.info(
        "Priority list generated: %d active, %d returned (high=%d medium=%d low=%d)",
        len(ranked), len(snapshot.items),
        snapshot.summary.high_risk, snapshot.summary.medium_risk, snapshot.summary.low_risk,
    )
    return snapshot


def evaluate_order(
    order: OrderSnapshot,
    now: Optional[datetime] = None,
    config: RiskConfig = DEFAULT_CONFIG,
) -> OrderRiskResponse:
    """Live risk view of a single order, including every action that applies."""
    now = now or local_now()
    s = score_order(order, now, config)
    return OrderRiskResponse(
        order_id=order.id,
        risk_score=s.assessment.score,
        risk_level=s.assessment.level,
        risk_factors=s.assessment.factors,
        fulfillment_probability=s.order.fulfillment_probability,
        next_best_action=s.action,
        applicable_actions=applicable_actions(order, s.assessment),
        evaluated_at=now,
    )
