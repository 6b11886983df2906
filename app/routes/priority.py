from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..repository import OrderRepository, SqlOrderRepository
from ..schemas import OrderRiskResponse, PrioritySnapshot
from ..services.priority import (
    InvalidQueryError, evaluate_order, generate_priority_snapshot, parse_priority_query,
)
from ..services.writeback import ScoreWriteback
from ..utils.dates import local_now
from ..utils.logging import logger

router = APIRouter(prefix="/api", tags=["priority"])


def get_repository(db: Session = Depends(get_db)) -> OrderRepository:
    return SqlOrderRepository(db)

def get_writeback() -> Optional[ScoreWriteback]:
    return ScoreWriteback() if settings.WRITEBACK_ENABLED else None

def get_now() -> datetime:
    return local_now()


@router.get("/priority-list", response_model=PrioritySnapshot)
def priority_list(
    background_tasks: BackgroundTasks,
    salesperson_id: Optional[str] = Query(None, alias="salespersonId"),
    risk_level: Optional[str] = Query(None, alias="riskLevel"),
    limit: Optional[str] = Query(None, description="1..50, default 20"),
    repo: OrderRepository = Depends(get_repository),
    writeback: Optional[ScoreWriteback] = Depends(get_writeback),
    now: datetime = Depends(get_now),
):
    # raw strings on purpose: bad values are a 400 with our message, never coerced
    try:
        query = parse_priority_query(salesperson_id, risk_level, limit)
    except InvalidQueryError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        # score writeback runs after the response is sent
        return generate_priority_snapshot(
            repo, query, writeback, now=now, defer=background_tasks.add_task,
        )
    except Exception:
        logger.exception("Error generating priority list (salesperson=%s)", query.salesperson_id)
        raise HTTPException(status_code=500, detail="Failed to generate priority list")

@router.get("/orders/{order_id}/risk", response_model=OrderRiskResponse)
def order_risk(
    order_id: str,
    repo: OrderRepository = Depends(get_repository),
    now: datetime = Depends(get_now),
):
    try:
        order = repo.get_order(order_id)
    except Exception:
        logger.exception("Error loading order %s", order_id)
        raise HTTPException(status_code=500, detail="Failed to evaluate order risk")
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return evaluate_order(order, now)
