from __future__ import annotations
from decimal import Decimal
from typing import Optional, List
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String, Integer, DateTime, Numeric, ForeignKey, Text, func, Index
)
from .database import Base

# ----------------------------
# Sales staff
# ----------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(256), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, server_default="SALESPERSON")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

# ----------------------------
# Customers and vehicles
# ----------------------------
class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(32))
    email: Mapped[Optional[str]] = mapped_column(String(256))
    preferred_channel: Mapped[Optional[str]] = mapped_column(String(16))   # CALL|WHATSAPP|EMAIL|IN_PERSON
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

class Vehicle(Base):
    __tablename__ = "vehicles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    make: Mapped[str] = mapped_column(String(64), nullable=False)
    model: Mapped[str] = mapped_column(String(64), nullable=False)
    variant: Mapped[Optional[str]] = mapped_column(String(64))
    year: Mapped[Optional[int]] = mapped_column(Integer)

# ----------------------------
# Orders (status is owned by the sales workflow; risk columns by the engine)
# ----------------------------
class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    customer_id: Mapped[str] = mapped_column(ForeignKey("customers.id"), nullable=False)
    vehicle_id: Mapped[Optional[str]] = mapped_column(ForeignKey("vehicles.id"))
    salesperson_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"), index=True)

    status: Mapped[str] = mapped_column(String(32), nullable=False, server_default="NEW")
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, server_default="0")
    booking_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2))
    financing_status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="NOT_STARTED")
    financing_applied_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    last_contact_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    status_changed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    expected_delivery_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # derived triage fields, written back by the priority engine
    risk_score: Mapped[Optional[int]] = mapped_column(Integer)
    risk_level: Mapped[Optional[str]] = mapped_column(String(8))                 # LOW|MEDIUM|HIGH
    fulfillment_probability: Mapped[Optional[int]] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    customer: Mapped[Customer] = relationship()
    vehicle: Mapped[Optional[Vehicle]] = relationship()
    salesperson: Mapped[Optional[User]] = relationship()
    activities: Mapped[List["Activity"]] = relationship(
        back_populates="order", order_by=lambda: Activity.performed_at.desc()
    )

Index("ix_orders_status", Order.status)

# ----------------------------
# Activity history (calls, messages, visits, status changes)
# ----------------------------
class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    channel: Mapped[str] = mapped_column(String(16), nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text)
    sentiment: Mapped[Optional[str]] = mapped_column(String(16))                 # POSITIVE|NEUTRAL|NEGATIVE
    performed_by_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"))
    performed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    order: Mapped[Order] = relationship(back_populates="activities")
