# app/repository.py
from __future__ import annotations
from typing import Dict, List, Optional, Protocol

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from .enums import TERMINAL_STATUSES
from .models import Order
from .schemas import (
    ActivitySnapshot, CustomerSnapshot, OrderSnapshot, SalespersonSnapshot, VehicleSnapshot,
)
from .utils.logging import logger

# The only columns the priority engine may write
WRITEBACK_FIELDS = frozenset({"risk_score", "risk_level", "fulfillment_probability"})


class OrderRepository(Protocol):
    def list_active_orders(self, salesperson_id: Optional[str] = None) -> List[OrderSnapshot]: ...

    def get_order(self, order_id: str) -> Optional[OrderSnapshot]: ...

    def update_order_scores(self, order_id: str, fields: Dict[str, object]) -> bool: ...


def to_snapshot(row: Order) -> OrderSnapshot:
    c, v, s = row.customer, row.vehicle, row.salesperson
    return OrderSnapshot(
        id=row.id,
        status=row.status,
        total_amount=float(row.total_amount or 0),
        booking_amount=float(row.booking_amount) if row.booking_amount is not None else None,
        financing_status=row.financing_status,
        financing_applied_at=row.financing_applied_at,
        last_contact_at=row.last_contact_at,
        status_changed_at=row.status_changed_at,
        expected_delivery_date=row.expected_delivery_date,
        created_at=row.created_at,
        updated_at=row.updated_at,
        activities=[
            ActivitySnapshot(
                id=a.id, type=a.type, channel=a.channel, sentiment=a.sentiment,
                summary=a.summary, performed_at=a.performed_at,
            )
            for a in row.activities
        ],
        customer=CustomerSnapshot(
            id=c.id, name=c.name, phone=c.phone, email=c.email, preferred_channel=c.preferred_channel,
        ) if c else None,
        vehicle=VehicleSnapshot(
            id=v.id, make=v.make, model=v.model, variant=v.variant, year=v.year,
        ) if v else None,
        salesperson=SalespersonSnapshot(id=s.id, name=s.name, email=s.email) if s else None,
    )


class SqlOrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def _with_relations(self):
        return select(Order).options(
            selectinload(Order.customer),
            selectinload(Order.vehicle),
            selectinload(Order.salesperson),
            selectinload(Order.activities),
        )

    def list_active_orders(self, salesperson_id: Optional[str] = None) -> List[OrderSnapshot]:
        stmt = self._with_relations().where(
            Order.status.notin_([s.value for s in TERMINAL_STATUSES])
        )
        if salesperson_id:
            stmt = stmt.where(Order.salesperson_id == salesperson_id)
        rows = self.db.execute(stmt).scalars().all()

        snapshots: List[OrderSnapshot] = []
        for row in rows:
            try:
                snapshots.append(to_snapshot(row))
            except ValidationError as e:
                logger.warning("Skipping order %s: unusable snapshot (%s errors)", row.id, e.error_count())
        return snapshots

    def get_order(self, order_id: str) -> Optional[OrderSnapshot]:
        row = self.db.execute(
            self._with_relations().where(Order.id == order_id)
        ).scalar_one_or_none()
        return to_snapshot(row) if row else None

    def update_order_scores(self, order_id: str, fields: Dict[str, object]) -> bool:
        unknown = set(fields) - WRITEBACK_FIELDS
        if unknown:
            raise ValueError(f"Refusing to write non-score fields: {sorted(unknown)}")
        # keep updated_at as-is; it doubles as the financing-pending clock
        res = self.db.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(**fields, updated_at=Order.updated_at)
        )
        return res.rowcount > 0
