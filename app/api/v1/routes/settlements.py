from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from app.api.v1.deps import get_current_user_id
from app.db.database import get_db
from app.models.expenses import ShareStatus
from app.rabbitmq.producer import SettlementEventProducer, get_event_publisher
from app.services.settlement_service import calculate_settle_up, mark_as_sent, mark_as_received
from app.schemas.settlement_schema import (
    MarkReceivedRequest, MarkSentRequest, SettleUpResponse, TransitionResult
)

router = APIRouter(prefix="/expenses/settle-up", tags=["settle-up"])


@router.get("/calculate", response_model=SettleUpResponse)
def get_settle_up(
    group_id: Optional[str] = Query(None, description="Only consider expenses of this group"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get net settlements between the current user and everyone they share expenses with"""
    return SettleUpResponse(settle_up_items=calculate_settle_up(db, user_id, group_id))


@router.post("/mark-sent", response_model=TransitionResult)
def mark_settlement_sent(
    request: MarkSentRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    publisher: SettlementEventProducer = Depends(get_event_publisher)
):
    """Mark own shares as paid (pending -> verifying)"""
    result = mark_as_sent(db, request.expense_share_ids, user_id, request.payment_method)
    publisher.publish_share_status_changed(
        [share.id for share in result.updated_shares], ShareStatus.verifying.value, user_id
    )
    return result


@router.post("/mark-received", response_model=TransitionResult)
def mark_settlement_received(
    request: MarkReceivedRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    publisher: SettlementEventProducer = Depends(get_event_publisher)
):
    """Confirm payment for shares of expenses you paid (-> settled)"""
    result = mark_as_received(db, request.expense_share_ids, user_id)
    publisher.publish_share_status_changed(
        [share.id for share in result.updated_shares], ShareStatus.settled.value, user_id
    )
    return result
