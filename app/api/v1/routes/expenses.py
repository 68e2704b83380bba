from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from app.api.v1.deps import get_current_user_id
from app.db.database import get_db
from app.rabbitmq.producer import SettlementEventProducer, get_event_publisher
from app.services.expense_service import (
    create_expense, get_expense_for_member, update_expense, delete_expense, get_expense_shares
)
from app.schemas.expense_schema import (
    ExpenseCreate, ExpenseUpdate, ExpenseWithShares, ExpenseShareWithUser
)

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post("/", response_model=ExpenseWithShares, status_code=201)
def create_new_expense(
    expense_data: ExpenseCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    publisher: SettlementEventProducer = Depends(get_event_publisher)
):
    """Create a new expense split among the event's attendees"""
    expense = create_expense(db, expense_data, user_id)
    publisher.publish_expense_created(
        expense_id=expense.id,
        event_id=expense.event_id,
        paid_by=expense.paid_by,
        debtor_ids=[share.user_id for share in expense.shares]
    )
    return expense


@router.get("/{expense_id}", response_model=ExpenseWithShares)
def get_expense_details(
    expense_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get expense details with shares"""
    return get_expense_for_member(db, expense_id, user_id)


@router.put("/{expense_id}", response_model=ExpenseWithShares)
def update_existing_expense(
    expense_id: str,
    update_data: ExpenseUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Update an expense (creator or payer only)"""
    return update_expense(db, expense_id, update_data, user_id)


@router.delete("/{expense_id}")
def delete_existing_expense(
    expense_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Delete an expense and its shares (creator or payer only)"""
    delete_expense(db, expense_id, user_id)
    return {"message": "Expense deleted successfully"}


@router.get("/{expense_id}/shares", response_model=List[ExpenseShareWithUser])
def get_expense_shares_list(
    expense_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get all shares of an expense"""
    return get_expense_shares(db, expense_id, user_id)
