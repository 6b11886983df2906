from __future__ import annotations
from datetime import date as Date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from .enums import (
    ActivityType, Channel, FinancingStatus, OrderStatus, RiskLevel, Sentiment, Urgency,
)


class CamelModel(BaseModel):
    # JSON out is camelCase; Python side stays snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _iso_ms(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds")


# ----------------------------
# Order snapshot (read-only input)
# ----------------------------
class CustomerSnapshot(CamelModel):
    id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    preferred_channel: Optional[Channel] = None

class VehicleSnapshot(CamelModel):
    id: str
    make: str
    model: str
    variant: Optional[str] = None
    year: Optional[int] = None

class SalespersonSnapshot(CamelModel):
    id: str
    name: str
    email: Optional[str] = None

class ActivitySnapshot(CamelModel):
    id: str
    type: ActivityType
    channel: Channel
    sentiment: Optional[Sentiment] = None
    summary: Optional[str] = None
    performed_at: datetime

class OrderSnapshot(CamelModel):
    id: str
    status: OrderStatus
    total_amount: float = 0.0
    booking_amount: Optional[float] = None
    financing_status: FinancingStatus = FinancingStatus.NOT_STARTED
    financing_applied_at: Optional[datetime] = None
    last_contact_at: Optional[datetime] = None
    status_changed_at: Optional[datetime] = None
    expected_delivery_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    activities: List[ActivitySnapshot] = Field(default_factory=list)
    customer: Optional[CustomerSnapshot] = None
    vehicle: Optional[VehicleSnapshot] = None
    salesperson: Optional[SalespersonSnapshot] = None

    # filled on an enriched copy by the ranker, never by the store
    risk_score: Optional[int] = None
    fulfillment_probability: Optional[int] = None

    @property
    def preferred_channel(self) -> Optional[Channel]:
        return self.customer.preferred_channel if self.customer else None


# ----------------------------
# Engine outputs
# ----------------------------
class RiskFactor(CamelModel):
    name: str
    weight: int
    description: str

class RiskAssessment(CamelModel):
    score: int = Field(ge=0, le=100)
    level: RiskLevel
    factors: List[RiskFactor] = Field(default_factory=list)

    def has(self, name: str) -> bool:
        return any(f.name == name for f in self.factors)

    def factor(self, name: str) -> Optional[RiskFactor]:
        return next((f for f in self.factors if f.name == name), None)

class NextBestAction(CamelModel):
    action: str
    channel: Channel
    urgency: Urgency
    suggested_message: Optional[str] = None
    expected_impact: str
    reasoning: str

class PriorityItem(CamelModel):
    id: str
    order_id: str
    order: OrderSnapshot
    rank: int = Field(ge=1)
    risk_score: int
    risk_level: RiskLevel
    risk_factors: List[RiskFactor]
    next_best_action: NextBestAction
    generated_at: datetime
    expires_at: datetime

    @field_serializer("generated_at", "expires_at")
    def serialize_timestamps(self, value: datetime) -> str:
        return _iso_ms(value)

class PrioritySummary(CamelModel):
    high_risk: int = 0
    medium_risk: int = 0
    low_risk: int = 0
    total_actions: int = 0

class PriorityStats(CamelModel):
    average_risk_score: int = 0
    average_fulfillment_probability: int = 100
    total_order_value: float = 0.0
    at_risk_order_value: float = 0.0

class PrioritySnapshot(CamelModel):
    date: Date
    generated_at: datetime
    summary: PrioritySummary
    stats: PriorityStats
    items: List[PriorityItem]

    @field_serializer("generated_at")
    def serialize_timestamps(self, value: datetime) -> str:
        return _iso_ms(value)


# ----------------------------
# Single-order risk view
# ----------------------------
class OrderRiskResponse(CamelModel):
    order_id: str
    risk_score: int
    risk_level: RiskLevel
    risk_factors: List[RiskFactor]
    fulfillment_probability: int
    next_best_action: NextBestAction
    applicable_actions: List[NextBestAction]
    evaluated_at: datetime

    @field_serializer("evaluated_at")
    def serialize_timestamps(self, value: datetime) -> str:
        return _iso_ms(value)
