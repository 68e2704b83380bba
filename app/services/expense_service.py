import logging
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException
from typing import List, Optional
from app.models.expenses import Expense, ExpenseShare
from app.schemas.expense_schema import ExpenseCreate, ExpenseUpdate, ExpenseShareWithUser
from app.services.group_service import get_event, get_attendee_ids, is_group_member
from app.services.profile_service import get_profiles
from app.services.share_generator import generate_shares, recalculate_shares

logger = logging.getLogger(__name__)


def create_expense(db: Session, expense_data: ExpenseCreate, created_by: str) -> Expense:
    """
    Create an expense and split it among the event's attendees.

    The expense and all of its shares are committed together; if anything
    fails nothing is persisted.
    """
    event = get_event(db, expense_data.event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    if not is_group_member(db, event.group_id, created_by):
        raise HTTPException(status_code=403, detail="Access denied. You are not a member of this group")

    if not is_group_member(db, event.group_id, expense_data.paid_by):
        raise HTTPException(status_code=400, detail=f"User {expense_data.paid_by} is not a member of this group")

    now = datetime.now(timezone.utc)
    attendee_ids = get_attendee_ids(db, event.id)
    drafts = generate_shares(expense_data.amount, expense_data.paid_by, attendee_ids, now)

    expense = Expense(
        event_id=event.id,
        amount=expense_data.amount,
        description=expense_data.description or "Expense",
        category=expense_data.category,
        paid_by=expense_data.paid_by,
        created_by=created_by,
    )
    expense.shares = [
        ExpenseShare(
            user_id=draft.user_id,
            amount=draft.amount,
            status=draft.status,
            settled_at=draft.settled_at,
            settled_by=draft.settled_by,
        )
        for draft in drafts
    ]

    try:
        db.add(expense)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to persist expense for event {event.id}; rolled back")
        raise HTTPException(status_code=500, detail="Failed to create expense")

    db.refresh(expense)
    if not drafts:
        logger.info(f"Expense {expense.id} created without shares: event {event.id} has no attendees yet")
    else:
        logger.info(f"Expense {expense.id} created with {len(drafts)} shares")
    return expense


def get_expense(db: Session, expense_id: str) -> Optional[Expense]:
    """Get an expense by ID"""
    return db.query(Expense).filter(Expense.id == expense_id).first()


def _require_member(db: Session, expense: Expense, user_id: str) -> None:
    event = get_event(db, expense.event_id)
    if not event or not is_group_member(db, event.group_id, user_id):
        raise HTTPException(status_code=403, detail="Access denied. You are not a member of this group")


def _require_owner(expense: Expense, user_id: str, action: str) -> None:
    if user_id not in (expense.created_by, expense.paid_by):
        raise HTTPException(
            status_code=403,
            detail=f"Access denied. You can only {action} expenses you created or paid for"
        )


def get_expense_for_member(db: Session, expense_id: str, user_id: str) -> Expense:
    """Get an expense, checking the user belongs to the event's group"""
    expense = get_expense(db, expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")

    _require_member(db, expense, user_id)
    return expense


def update_expense(db: Session, expense_id: str, update_data: ExpenseUpdate, user_id: str) -> Expense:
    """Update an expense (creator or payer only); a new amount is re-split over the existing shares"""
    expense = get_expense(db, expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")

    _require_owner(expense, user_id, "update")

    changes = update_data.model_dump(exclude_unset=True)

    if "amount" in changes and changes["amount"] != expense.amount:
        # Shares keep their status; only the amounts move
        recalculate_shares(changes["amount"], expense.shares)
        logger.info(f"Recalculated {len(expense.shares)} shares of expense {expense.id}")

    for field, value in changes.items():
        setattr(expense, field, value)
    expense.updated_at = datetime.now(timezone.utc)

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to update expense {expense_id}; rolled back")
        raise HTTPException(status_code=500, detail="Failed to update expense")

    db.refresh(expense)
    return expense


def delete_expense(db: Session, expense_id: str, user_id: str):
    """Delete an expense and its shares (creator or payer only)"""
    expense = get_expense(db, expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")

    _require_owner(expense, user_id, "delete")

    try:
        db.delete(expense)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to delete expense {expense_id}; rolled back")
        raise HTTPException(status_code=500, detail="Failed to delete expense")
    logger.info(f"Expense {expense_id} deleted by {user_id}")


def get_expense_shares(db: Session, expense_id: str, user_id: str) -> List[ExpenseShareWithUser]:
    """Get all shares of an expense with the debtor's profile"""
    expense = get_expense_for_member(db, expense_id, user_id)

    shares = db.query(ExpenseShare).filter(ExpenseShare.expense_id == expense.id)\
        .order_by(ExpenseShare.created_at, ExpenseShare.user_id).all()
    profiles = get_profiles(db, [share.user_id for share in shares])

    return [
        ExpenseShareWithUser.model_validate(share).model_copy(update={"user": profiles.get(share.user_id)})
        for share in shares
    ]
