# app/tests/test_writeback.py
import threading
from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from app import database
from app.config import Settings
from app.models import Order, Vehicle
from app.repository import WRITEBACK_FIELDS, SqlOrderRepository
from app.schemas import OrderSnapshot, VehicleSnapshot
from app.services.priority import rank_orders
from app.services.writeback import ScoreWriteback, run_detached, score_fields
from app.workers import tasks


def test_score_fields_only(financing_stalled_order, now):
    item = rank_orders([financing_stalled_order], now)[0]
    assert score_fields(item) == {"risk_score": 75, "risk_level": "HIGH", "fulfillment_probability": 25}


def test_dispatch_continues_past_failures(order_book, now, channel_factory, caplog):
    channel = channel_factory(fail_for={"order-fin"})
    ranked = rank_orders(order_book, now)
    sent = ScoreWriteback(channel).dispatch(ranked)
    assert sent == 5
    assert "order-fin" not in [order_id for order_id, _ in channel.sent]
    assert "Could not enqueue score writeback for order order-fin" in caplog.text


def test_default_channel_is_celery():
    assert ScoreWriteback().channel is tasks.enqueue_score_update


def test_run_detached_uses_background_thread():
    seen = []
    done = threading.Event()

    def job(value):
        seen.append((value, threading.current_thread().name))
        done.set()

    run_detached(job, 42)
    assert done.wait(timeout=2)
    assert seen == [(42, "score-writeback")]


def test_publish_to_dead_broker_is_time_boxed():
    conf = tasks.celery.conf
    assert conf.task_publish_retry is False
    assert conf.broker_connection_timeout <= 1.0
    assert conf.broker_transport_options["max_retries"] == 1
    assert conf.broker_transport_options["socket_connect_timeout"] <= 1.0


# ---------- repository write path ----------

def test_every_order_column_feeds_the_engine():
    relations = {"customer_id", "vehicle_id", "salesperson_id"}
    used = set(OrderSnapshot.model_fields) | WRITEBACK_FIELDS | relations
    assert set(Order.__table__.columns.keys()) <= used
    assert set(Vehicle.__table__.columns.keys()) <= set(VehicleSnapshot.model_fields)


def test_settings_cover_only_engine_knobs():
    assert set(Settings.model_fields) == {
        "DATABASE_URL", "DB_ECHO", "REDIS_URL", "LOG_LEVEL", "TIMEZONE",
        "PRIORITY_DEFAULT_LIMIT", "PRIORITY_MAX_LIMIT", "WRITEBACK_ENABLED",
    }


def test_repository_refuses_non_score_fields():
    db = MagicMock()
    with pytest.raises(ValueError):
        SqlOrderRepository(db).update_order_scores("o1", {"risk_score": 10, "status": "CANCELLED"})
    db.execute.assert_not_called()


def test_repository_reports_missing_row():
    db = MagicMock()
    db.execute.return_value.rowcount = 0
    assert SqlOrderRepository(db).update_order_scores("nope", {"risk_score": 10}) is False
    db.execute.return_value.rowcount = 1
    assert SqlOrderRepository(db).update_order_scores("o1", {"risk_score": 10}) is True
    db.commit.assert_not_called()


def row(order_id, status, now):
    return SimpleNamespace(
        id=order_id, status=status, total_amount=100000, booking_amount=None,
        financing_status="APPROVED", financing_applied_at=None,
        last_contact_at=now - timedelta(days=1), status_changed_at=None, expected_delivery_date=None,
        created_at=now - timedelta(days=3), updated_at=now,
        activities=[], customer=None, vehicle=None, salesperson=None,
    )


def test_repository_skips_unusable_rows(now, caplog):
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = [
        row("good", "NEGOTIATION", now), row("bad", "NOT_A_STATUS", now),
    ]
    orders = SqlOrderRepository(db).list_active_orders()
    assert [o.id for o in orders] == ["good"]
    assert orders[0].total_amount == 100000.0
    assert "Skipping order bad" in caplog.text


# ---------- celery task ----------

class FakeSession:
    def __init__(self):
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def close(self):
        self.closed = True

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True


def patch_task(monkeypatch, result=True, error=None):
    session = FakeSession()
    writes = []

    class Repo:
        def __init__(self, db):
            assert db is session

        def update_order_scores(self, order_id, fields):
            if error:
                raise error
            writes.append((order_id, fields))
            return result

    monkeypatch.setattr(database, "get_sessionmaker", lambda: (lambda: session))
    monkeypatch.setattr(tasks, "SqlOrderRepository", Repo)
    return session, writes


def test_task_writes_and_commits(monkeypatch):
    session, writes = patch_task(monkeypatch)
    out = tasks.update_order_scores("o1", {"risk_score": 75, "risk_level": "HIGH"})
    assert out == {"ok": True, "order_id": "o1"}
    assert writes == [("o1", {"risk_score": 75, "risk_level": "HIGH"})]
    assert session.committed and session.closed


def test_task_failure_is_logged_not_raised(monkeypatch, caplog):
    session, _ = patch_task(monkeypatch, error=RuntimeError("db down"))
    out = tasks.update_order_scores("o1", {"risk_score": 75})
    assert out == {"ok": False, "order_id": "o1"}
    assert session.rolled_back and not session.committed
    assert "Score writeback failed for order o1" in caplog.text


def test_task_missing_order(monkeypatch, caplog):
    patch_task(monkeypatch, result=False)
    out = tasks.update_order_scores("gone", {"risk_score": 5})
    assert out["ok"] is False
    assert "matched no row" in caplog.text
