# app/rules/factors.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from app.enums import ActivityType, FinancingStatus, OrderStatus, Sentiment
from app.schemas import ActivitySnapshot, OrderSnapshot, RiskFactor
from app.utils.dates import as_aware, hours_between, whole_days_between

# -----------------------------
# Factor names (stable, referenced by the action rules)
# -----------------------------
FINANCING_STALL = "financing_stall"
CONTACT_RECENCY = "contact_recency"
STAGE_DWELL = "stage_dwell"
DELIVERY_DELAY = "delivery_delay"
HIGH_VALUE = "high_value"
NEGATIVE_SENTIMENT = "negative_sentiment"

# Days a stage may hold an order before it counts as stuck
STAGE_SLA_DAYS: Dict[OrderStatus, int] = {
    OrderStatus.NEW: 2,
    OrderStatus.CONTACTED: 3,
    OrderStatus.TEST_DRIVE_SCHEDULED: 5,
    OrderStatus.TEST_DRIVE_DONE: 4,
    OrderStatus.NEGOTIATION: 5,
    OrderStatus.BOOKING_DONE: 7,
    OrderStatus.FINANCING_PENDING: 5,
    OrderStatus.FINANCING_APPROVED: 5,
    OrderStatus.READY_FOR_DELIVERY: 3,
}

ACTIVITY_LABELS: Dict[ActivityType, str] = {
    ActivityType.CALL_OUTBOUND: "outbound call",
    ActivityType.CALL_INBOUND: "inbound call",
    ActivityType.WHATSAPP_SENT: "WhatsApp message sent",
    ActivityType.WHATSAPP_RECEIVED: "WhatsApp message received",
    ActivityType.EMAIL_SENT: "email sent",
    ActivityType.EMAIL_RECEIVED: "email received",
    ActivityType.VISIT: "showroom visit",
    ActivityType.TEST_DRIVE: "test drive",
    ActivityType.STATUS_CHANGE: "status change",
    ActivityType.NOTE: "note",
}


@dataclass
class RiskConfig:
    """Tunable weights and thresholds. Defaults are a starting point, not business law."""
    # contact recency
    silence_threshold_days: int = 7
    missing_contact_days: int = 30      # no lastContactAt on record
    silence_base_weight: int = 12
    silence_weight_per_day: int = 3
    silence_max_weight: int = 35
    # financing stall (approval odds drop after day 3)
    financing_grace_hours: int = 48
    financing_stall_weight: int = 60
    # stage dwell
    stage_sla_days: Dict[OrderStatus, int] = field(default_factory=lambda: dict(STAGE_SLA_DAYS))
    stage_base_weight: int = 10
    stage_weight_per_day: int = 2
    stage_max_weight: int = 25
    # delivery delay
    delay_weight_per_day: int = 4
    delay_max_weight: int = 20
    # high value
    high_value_amount: float = 200000.0
    high_value_weight: int = 10
    # sentiment
    negative_sentiment_weight: int = 20


DEFAULT_CONFIG = RiskConfig()


# -----------------------------
# Helpers
# -----------------------------
def _days(n: int) -> str:
    return f"{n} day" if n == 1 else f"{n} days"

def _status_label(status: OrderStatus) -> str:
    return status.value.replace("_", " ").title()

def _latest(activities: List[ActivitySnapshot]) -> Optional[ActivitySnapshot]:
    return max(activities, key=lambda a: as_aware(a.performed_at), default=None)

def days_since_contact(order: OrderSnapshot, now: datetime, config: RiskConfig = DEFAULT_CONFIG) -> int:
    if order.last_contact_at is None:
        return config.missing_contact_days
    return whole_days_between(order.last_contact_at, now)

def stage_entered_at(order: OrderSnapshot) -> datetime:
    if order.status_changed_at is not None:
        return order.status_changed_at
    changes = [a for a in order.activities if a.type == ActivityType.STATUS_CHANGE]
    latest = _latest(changes)
    return latest.performed_at if latest else order.created_at

def latest_sentiment_activity(order: OrderSnapshot) -> Optional[ActivitySnapshot]:
    return _latest([a for a in order.activities if a.sentiment is not None])


# -----------------------------
# Factor families
# Each returns a RiskFactor when it fires, else None
# -----------------------------
def financing_stall(order: OrderSnapshot, now: datetime, config: RiskConfig) -> Optional[RiskFactor]:
    if order.financing_status != FinancingStatus.PENDING:
        return None
    since = order.financing_applied_at or order.updated_at
    if hours_between(since, now) <= config.financing_grace_hours:
        return None
    return RiskFactor(
        name=FINANCING_STALL,
        weight=config.financing_stall_weight,
        description=f"Financing pending {_days(whole_days_between(since, now))}",
    )

def contact_recency(order: OrderSnapshot, now: datetime, config: RiskConfig) -> Optional[RiskFactor]:
    days = days_since_contact(order, now, config)
    if days <= config.silence_threshold_days:
        return None
    over = days - config.silence_threshold_days
    weight = min(config.silence_max_weight,
                 config.silence_base_weight + config.silence_weight_per_day * over)
    if order.last_contact_at is None:
        description = f"No customer contact on record (treated as {_days(days)} silent)"
    else:
        description = f"No customer contact for {_days(days)}"
    return RiskFactor(name=CONTACT_RECENCY, weight=weight, description=description)

def stage_dwell(order: OrderSnapshot, now: datetime, config: RiskConfig) -> Optional[RiskFactor]:
    sla = config.stage_sla_days.get(order.status)
    if sla is None:
        return None
    days = whole_days_between(stage_entered_at(order), now)
    if days <= sla:
        return None
    weight = min(config.stage_max_weight,
                 config.stage_base_weight + config.stage_weight_per_day * (days - sla))
    return RiskFactor(
        name=STAGE_DWELL,
        weight=weight,
        description=f"Order has been in {_status_label(order.status)} for {_days(days)} (SLA {_days(sla)})",
    )

def delivery_delay(order: OrderSnapshot, now: datetime, config: RiskConfig) -> Optional[RiskFactor]:
    if order.expected_delivery_date is None:
        return None
    # partial days late do not count
    days = whole_days_between(order.expected_delivery_date, now)
    if days < 1:
        return None
    return RiskFactor(
        name=DELIVERY_DELAY,
        weight=min(config.delay_max_weight, config.delay_weight_per_day * days),
        description=f"Delivery is {_days(days)} past the promised date",
    )

def high_value(order: OrderSnapshot, now: datetime, config: RiskConfig) -> Optional[RiskFactor]:
    if (order.total_amount or 0) < config.high_value_amount:
        return None
    return RiskFactor(
        name=HIGH_VALUE,
        weight=config.high_value_weight,
        description=f"High-value order worth {order.total_amount:,.0f}",
    )

def negative_sentiment(order: OrderSnapshot, now: datetime, config: RiskConfig) -> Optional[RiskFactor]:
    latest = latest_sentiment_activity(order)
    if latest is None or latest.sentiment != Sentiment.NEGATIVE:
        return None
    label = ACTIVITY_LABELS.get(latest.type, "activity")
    return RiskFactor(
        name=NEGATIVE_SENTIMENT,
        weight=config.negative_sentiment_weight,
        description=f"Customer sentiment was negative on the last {label} ({latest.performed_at:%d %b %Y})",
    )


# Emission order is part of the output contract
FACTOR_FAMILIES = (
    financing_stall,
    contact_recency,
    stage_dwell,
    delivery_delay,
    high_value,
    negative_sentiment,
)

def extract_risk_factors(
    order: OrderSnapshot,
    now: datetime,
    config: RiskConfig = DEFAULT_CONFIG,
) -> List[RiskFactor]:
    factors: List[RiskFactor] = []
    for family in FACTOR_FAMILIES:
        f = family(order, now, config)
        if f is not None:
            factors.append(f)
    return factors
