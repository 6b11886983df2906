# app/services/writeback.py
from __future__ import annotations
import threading
from typing import Any, Callable, Dict, Iterable

from app.schemas import PriorityItem
from app.utils.logging import logger
from app.workers.tasks import enqueue_score_update

TaskChannel = Callable[[str, Dict[str, object]], object]
# schedules fn(*args) to run after the caller has moved on
Deferrer = Callable[..., Any]


def run_detached(fn: Callable[..., Any], *args: Any) -> None:
    threading.Thread(target=fn, args=args, name="score-writeback", daemon=True).start()


def score_fields(item: PriorityItem) -> Dict[str, object]:
    return {
        "risk_score": item.risk_score,
        "risk_level": item.risk_level.value,
        "fulfillment_probability": item.order.fulfillment_probability,
    }


class ScoreWriteback:
    """
    Best-effort persistence of computed scores.

    Each order becomes one independent message on the task channel (Celery in
    production). Nothing here waits for, or reports, the outcome of a write;
    a failure to enqueue is logged and the remaining orders are still sent.
    """

    def __init__(self, channel: TaskChannel = enqueue_score_update):
        self.channel = channel

    def dispatch(self, items: Iterable[PriorityItem]) -> int:
        sent = 0
        for item in items:
            try:
                self.channel(item.order_id, score_fields(item))
                sent += 1
            except Exception:
                logger.exception("Could not enqueue score writeback for order %s", item.order_id)
        return sent
