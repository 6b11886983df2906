# app/tests/conftest.py
from datetime import datetime, timedelta, timezone

import pytest

from app.enums import ActivityType, Channel, FinancingStatus, OrderStatus, Sentiment
from app.schemas import ActivitySnapshot, CustomerSnapshot, OrderSnapshot, VehicleSnapshot

NOW = datetime(2026, 10, 18, 10, 0, tzinfo=timezone.utc)


def days_ago(n, hours=0):
    return NOW - timedelta(days=n, hours=hours)


class FakeOrderRepository:
    def __init__(self, orders=None, fail_with=None):
        self.orders = list(orders or [])
        self.fail_with = fail_with
        self.calls = []

    def list_active_orders(self, salesperson_id=None):
        self.calls.append(salesperson_id)
        if self.fail_with:
            raise self.fail_with
        return [o for o in self.orders
                if salesperson_id is None or (o.salesperson and o.salesperson.id == salesperson_id)]

    def get_order(self, order_id):
        if self.fail_with:
            raise self.fail_with
        return next((o for o in self.orders if o.id == order_id), None)

    def update_order_scores(self, order_id, fields):
        return True


class RecordingChannel:
    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def __call__(self, order_id, fields):
        if order_id in self.fail_for:
            raise ConnectionError("broker unavailable")
        self.sent.append((order_id, fields))


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_order():
    """Healthy baseline order; keyword overrides replace any field."""
    def _make(order_id="order-1", **overrides):
        data = dict(
            id=order_id,
            status=OrderStatus.BOOKING_DONE,
            total_amount=100000.0,
            financing_status=FinancingStatus.APPROVED,
            last_contact_at=days_ago(1),
            status_changed_at=days_ago(1),
            created_at=days_ago(7),
            updated_at=days_ago(1),
            activities=[],
            customer=CustomerSnapshot(id="cust-1", name="Sara Haddad", phone="+966500000000"),
            vehicle=VehicleSnapshot(id="veh-1", make="Toyota", model="Camry", year=2026),
        )
        data.update(overrides)
        return OrderSnapshot(**data)
    return _make


@pytest.fixture
def activity():
    def _make(activity_id="act-1", type=ActivityType.CALL_OUTBOUND, channel=Channel.CALL,
              sentiment=None, performed_at=None):
        return ActivitySnapshot(
            id=activity_id, type=type, channel=channel, sentiment=sentiment,
            performed_at=performed_at or days_ago(1),
        )
    return _make


@pytest.fixture
def financing_stalled_order(make_order):
    """Financing pending 4 days, silent 8 days, 150k."""
    return make_order(
        "order-fin",
        financing_status=FinancingStatus.PENDING,
        financing_applied_at=days_ago(4),
        last_contact_at=days_ago(8),
        total_amount=150000.0,
    )


@pytest.fixture
def order_book(make_order, activity, financing_stalled_order):
    """
    Six active orders with known scores:
      high-b 80, order-fin 75, medium-d 60, medium-c 43, calm-f 0 (95k), calm-e 0 (80k)
    """
    return [
        make_order("calm-e", total_amount=80000.0),
        make_order(
            "medium-c",
            status=OrderStatus.NEGOTIATION,
            status_changed_at=days_ago(20),
            last_contact_at=days_ago(9),
            total_amount=120000.0,
        ),
        financing_stalled_order,
        make_order(
            "high-b",
            status=OrderStatus.NEGOTIATION,
            status_changed_at=days_ago(20),
            last_contact_at=None,
            total_amount=90000.0,
            activities=[activity(sentiment=Sentiment.NEGATIVE, performed_at=days_ago(2))],
        ),
        make_order(
            "medium-d",
            financing_status=FinancingStatus.PENDING,
            financing_applied_at=days_ago(3),
            total_amount=50000.0,
        ),
        make_order("calm-f", total_amount=95000.0),
    ]


@pytest.fixture
def fake_repo(order_book):
    return FakeOrderRepository(order_book)


@pytest.fixture
def failing_repo():
    return FakeOrderRepository(fail_with=ConnectionError("order store unavailable"))


@pytest.fixture
def recording_channel():
    return RecordingChannel()


@pytest.fixture
def channel_factory():
    return RecordingChannel
