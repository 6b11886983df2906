from typing import Dict

from celery import Celery

from ..config import settings
from ..database import session_scope
from ..repository import SqlOrderRepository
from ..utils.logging import logger

celery = Celery("dealerdesk", broker=settings.REDIS_URL, backend=settings.REDIS_URL)

celery.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    broker_connection_retry_on_startup=True,
    worker_prefetch_multiplier=1,
    # a failed enqueue is logged by the dispatcher, not retried inline
    task_publish_retry=False,
    # an unreachable broker fails a publish in about a second instead of hanging
    broker_connection_timeout=1.0,
    broker_transport_options={
        "max_retries": 1,
        "interval_start": 0,
        "interval_step": 0.2,
        "interval_max": 0.5,
        "socket_connect_timeout": 1.0,
        "socket_timeout": 2.0,
    },
)


# ---------- Celery task ----------
# No autoretry: the next priority-list generation recomputes and overwrites.
@celery.task(name="update_order_scores", ignore_result=True)
def update_order_scores(order_id: str, fields: Dict[str, object]):
    try:
        with session_scope() as db:
            ok = SqlOrderRepository(db).update_order_scores(order_id, fields)
    except Exception:
        logger.exception("Score writeback failed for order %s", order_id)
        return {"ok": False, "order_id": order_id}

    if not ok:
        logger.warning("Score writeback matched no row for order %s", order_id)
    else:
        logger.info("Order %s scores written (score=%s, level=%s)",
                    order_id, fields.get("risk_score"), fields.get("risk_level"))
    return {"ok": ok, "order_id": order_id}


def enqueue_score_update(order_id: str, fields: Dict[str, object]) -> None:
    # fire-and-forget Celery job
    update_order_scores.delay(order_id, fields)
