# app/rules/actions.py
"""
Next-best-action rule table.

Rules are evaluated top to bottom and the first match wins, so the order of
NBA_RULES is the priority order. Each rule is a (predicate, builder) pair over
the order snapshot and its finalized risk assessment.
"""
from __future__ import annotations
from typing import Callable, List, NamedTuple, Optional

from app.enums import Channel, MESSAGE_CHANNELS, RiskLevel, Urgency
from app.rules.factors import (
    CONTACT_RECENCY, DELIVERY_DELAY, FINANCING_STALL, HIGH_VALUE, NEGATIVE_SENTIMENT, STAGE_DWELL,
)
from app.schemas import NextBestAction, OrderSnapshot, RiskAssessment

NO_ACTION = "No action required"
ON_TRACK_IMPACT = "Order is on track"

Predicate = Callable[[OrderSnapshot, RiskAssessment], bool]
Builder = Callable[[OrderSnapshot, RiskAssessment], NextBestAction]


class ActionRule(NamedTuple):
    id: str
    predicate: Predicate
    build: Builder


# -----------------------------
# Helpers
# -----------------------------
def _greeting(order: OrderSnapshot) -> str:
    if order.customer and order.customer.name:
        return f"Hi {order.customer.name.split()[0]},"
    return "Hi,"

def _vehicle(order: OrderSnapshot) -> str:
    if order.vehicle:
        return f"your {order.vehicle.make} {order.vehicle.model}"
    return "your new vehicle"

def _preferred_or(order: OrderSnapshot, fallback: Channel) -> Channel:
    ch = order.preferred_channel
    if ch is None or ch == Channel.SYSTEM:
        return fallback
    return ch

def _desc(assessment: RiskAssessment, name: str) -> str:
    f = assessment.factor(name)
    return f.description if f else ""

def _action(
    action: str,
    channel: Channel,
    urgency: Urgency,
    expected_impact: str,
    reasoning: str,
    message: Optional[str] = None,
) -> NextBestAction:
    return NextBestAction(
        action=action,
        channel=channel,
        urgency=urgency,
        suggested_message=message if channel in MESSAGE_CHANNELS else None,
        expected_impact=expected_impact,
        reasoning=reasoning,
    )


# -----------------------------
# Builders
# -----------------------------
def _financing_followup(order: OrderSnapshot, a: RiskAssessment) -> NextBestAction:
    return _action(
        "Follow up on financing",
        Channel.CALL,
        Urgency.NOW,
        "Approval probability drops 23% after day 3",
        f"{_desc(a, FINANCING_STALL)}. A call now can clear missing documents before the application goes cold.",
        f"{_greeting(order)} I'm following up on the financing application for {_vehicle(order)}. "
        f"Do you have a few minutes now to go over what the bank still needs?",
    )

def _re_engage(order: OrderSnapshot, a: RiskAssessment) -> NextBestAction:
    return _action(
        "Reach out to re-engage",
        Channel.CALL,
        Urgency.TODAY,
        "Re-engages the customer before they go cold",
        f"{_desc(a, CONTACT_RECENCY)} while the order is at HIGH risk (score {a.score}).",
        f"{_greeting(order)} it's been a little while since we spoke about {_vehicle(order)}, "
        f"and I wanted to check whether you have any questions I can answer today.",
    )

def _address_concern(order: OrderSnapshot, a: RiskAssessment) -> NextBestAction:
    channel = Channel.WHATSAPP if order.preferred_channel == Channel.WHATSAPP else Channel.CALL
    return _action(
        "Address customer concern",
        channel,
        Urgency.TODAY,
        "Prevents a dissatisfied customer from cancelling",
        f"{_desc(a, NEGATIVE_SENTIMENT)}. The concern should be heard personally before it turns into a cancellation.",
        f"{_greeting(order)} I understand things haven't gone as smoothly as you expected with {_vehicle(order)}, "
        f"and I'd like to personally make it right.",
    )

def _move_forward(order: OrderSnapshot, a: RiskAssessment) -> NextBestAction:
    return _action(
        "Move order forward",
        _preferred_or(order, Channel.WHATSAPP),
        Urgency.THIS_WEEK,
        "Keeps the deal moving to the next stage",
        f"{_desc(a, STAGE_DWELL)}, with {a.level.value} risk (score {a.score}).",
        f"{_greeting(order)} I'd like to help you with the next step for {_vehicle(order)}. "
        f"When would be a good time this week to take care of it together?",
    )

def _delivery_update(order: OrderSnapshot, a: RiskAssessment) -> NextBestAction:
    return _action(
        "Send proactive delivery update",
        Channel.WHATSAPP,
        Urgency.TODAY,
        "Reduces cancellation risk by 18%",
        f"{_desc(a, DELIVERY_DELAY)}. Telling the customer first keeps the delay from becoming a complaint.",
        f"{_greeting(order)} I wanted to give you an update on the delivery of {_vehicle(order)}. "
        f"We're working to get it ready as quickly as possible and I'll confirm the exact timing shortly.",
    )

def _check_in(order: OrderSnapshot, a: RiskAssessment) -> NextBestAction:
    return _action(
        "Check in with customer",
        _preferred_or(order, Channel.WHATSAPP),
        Urgency.THIS_WEEK,
        "Re-engages the customer before they go cold",
        f"{_desc(a, CONTACT_RECENCY)}.",
        f"{_greeting(order)} just checking in to see how everything is going with {_vehicle(order)}. "
        f"Is there anything I can help you with?",
    )

def _stage_nudge(order: OrderSnapshot, a: RiskAssessment) -> NextBestAction:
    return _action(
        "Nudge order to next stage",
        _preferred_or(order, Channel.WHATSAPP),
        Urgency.THIS_WEEK,
        "Keeps the deal moving to the next stage",
        f"{_desc(a, STAGE_DWELL)}.",
        f"{_greeting(order)} I wanted to check whether you're ready for the next step on {_vehicle(order)}.",
    )

def _premium_attention(order: OrderSnapshot, a: RiskAssessment) -> NextBestAction:
    return _action(
        "Give high-value order personal attention",
        Channel.CALL,
        Urgency.THIS_WEEK,
        "High-value customers expect premium service",
        f"{_desc(a, HIGH_VALUE)}.",
        f"{_greeting(order)} I wanted to personally make sure everything is going smoothly with {_vehicle(order)}.",
    )

def _on_track(order: OrderSnapshot, a: RiskAssessment) -> NextBestAction:
    return no_action(a)

def no_action(assessment: Optional[RiskAssessment] = None) -> NextBestAction:
    if assessment is not None and assessment.factors:
        reasoning = "Only minor signals present: " + "; ".join(f.description for f in assessment.factors) + "."
    else:
        reasoning = "No risk factors fired for this order."
    return _action(NO_ACTION, Channel.SYSTEM, Urgency.THIS_WEEK, ON_TRACK_IMPACT, reasoning)


# -----------------------------
# Rule table (highest priority first)
# -----------------------------
NBA_RULES: List[ActionRule] = [
    ActionRule(
        "financing-followup",
        lambda o, a: a.has(FINANCING_STALL),
        _financing_followup,
    ),
    ActionRule(
        "re-engage",
        lambda o, a: a.has(CONTACT_RECENCY) and a.level == RiskLevel.HIGH,
        _re_engage,
    ),
    ActionRule(
        "address-concern",
        lambda o, a: a.has(NEGATIVE_SENTIMENT),
        _address_concern,
    ),
    ActionRule(
        "move-forward",
        lambda o, a: a.has(STAGE_DWELL) and a.level in (RiskLevel.MEDIUM, RiskLevel.HIGH),
        _move_forward,
    ),
    ActionRule(
        "delivery-update",
        lambda o, a: a.has(DELIVERY_DELAY),
        _delivery_update,
    ),
    ActionRule(
        "check-in",
        lambda o, a: a.has(CONTACT_RECENCY),
        _check_in,
    ),
    ActionRule(
        "stage-nudge",
        lambda o, a: a.has(STAGE_DWELL),
        _stage_nudge,
    ),
    ActionRule(
        "premium-attention",
        lambda o, a: a.has(HIGH_VALUE),
        _premium_attention,
    ),
    ActionRule(
        "on-track",
        lambda o, a: not a.factors,
        _on_track,
    ),
]


def plan_next_best_action(
    order: OrderSnapshot,
    assessment: RiskAssessment,
    rules: List[ActionRule] = NBA_RULES,
) -> NextBestAction:
    for rule in rules:
        if rule.predicate(order, assessment):
            return rule.build(order, assessment)
    return no_action(assessment)

def applicable_actions(
    order: OrderSnapshot,
    assessment: RiskAssessment,
    rules: List[ActionRule] = NBA_RULES,
) -> List[NextBestAction]:
    """Every matching rule's action, in priority order (for display)."""
    return [rule.build(order, assessment) for rule in rules if rule.predicate(order, assessment)]
