import logging
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException
from typing import Dict, Iterable, List, Optional
from app.models.expenses import Expense, ExpenseShare, PaymentMethod, ShareStatus
from app.schemas.expense_schema import ExpenseShareOut
from app.schemas.settlement_schema import RejectedShare, SettleUpItem, TransitionResult
from app.services.group_service import get_group_event_ids, get_user_group_ids
from app.services.ledger import LedgerShare, compute_net_settlements, settlements_for_user
from app.services.presentation import assemble_settle_up
from app.services.profile_service import profile_lookup
from app.services.settlement_state import (
    ActorRole, MARK_RECEIVED, MARK_SENT, RejectionReason, Transition, partition_shares, transition_values
)
from app.utils.money import round_decimal

logger = logging.getLogger(__name__)


def _ledger_query(db: Session):
    return db.query(
        ExpenseShare.id,
        ExpenseShare.user_id,
        ExpenseShare.amount,
        ExpenseShare.status,
        Expense.paid_by,
    ).join(Expense, ExpenseShare.expense_id == Expense.id)


def _to_ledger_share(row) -> LedgerShare:
    return LedgerShare(
        share_id=row.id,
        debtor_id=row.user_id,
        creditor_id=row.paid_by,
        amount=round_decimal(row.amount),
        status=ShareStatus(row.status),
    )


def load_outstanding_shares(db: Session, user_id: str, group_id: Optional[str] = None) -> List[LedgerShare]:
    """
    Load the user's unsettled shares, both owed and owing, joined with their payer.

    Only expenses of events in the user's groups are considered; group_id
    narrows that down to a single group.
    """
    group_ids = get_user_group_ids(db, user_id)
    if group_id:
        group_ids = [gid for gid in group_ids if gid == group_id]

    event_ids = get_group_event_ids(db, group_ids)
    if not event_ids:
        return []

    rows = _ledger_query(db).filter(
        and_(
            Expense.event_id.in_(event_ids),
            ExpenseShare.status != ShareStatus.settled,
            or_(ExpenseShare.user_id == user_id, Expense.paid_by == user_id),
        )
    ).all()
    return [_to_ledger_share(row) for row in rows]


def calculate_settle_up(db: Session, user_id: str, group_id: Optional[str] = None) -> List[SettleUpItem]:
    """Net settlements involving the user, with debtor and creditor profiles"""
    shares = load_outstanding_shares(db, user_id, group_id)
    settlements = settlements_for_user(compute_net_settlements(shares), user_id)
    items = assemble_settle_up(settlements, profile_lookup(db))

    logger.info(f"Settle up for {user_id}: {len(shares)} open shares, {len(items)} items")
    return items


def _load_shares_by_id(db: Session, share_ids: Iterable[str]) -> Dict[str, LedgerShare]:
    ids = list(set(share_ids))
    if not ids:
        return {}
    rows = _ledger_query(db).filter(ExpenseShare.id.in_(ids)).all()
    return {row.id: _to_ledger_share(row) for row in rows}


def _apply_transition(
    db: Session,
    transition: Transition,
    share_ids: List[str],
    actor_id: str,
    payment_method: Optional[PaymentMethod] = None,
):
    shares_by_id = _load_shares_by_id(db, share_ids)
    accepted, rejected = partition_shares(transition, share_ids, shares_by_id, actor_id)

    values = transition_values(transition, actor_id, datetime.now(timezone.utc), payment_method)
    updated_ids = []

    try:
        for share_id in accepted:
            # The filter repeats the ownership and status checks so a share
            # changed by a concurrent request is not overwritten
            query = db.query(ExpenseShare).filter(
                and_(ExpenseShare.id == share_id, ExpenseShare.status.in_(list(transition.allowed_from)))
            )
            if transition.actor_role == ActorRole.debtor:
                query = query.filter(ExpenseShare.user_id == actor_id)
            else:
                query = query.filter(
                    ExpenseShare.expense_id.in_(select(Expense.id).where(Expense.paid_by == actor_id))
                )

            if query.update(values, synchronize_session=False):
                updated_ids.append(share_id)
            else:
                rejected.append((share_id, RejectionReason.conflict))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to apply {transition.name} for {actor_id}; rolled back")
        raise HTTPException(status_code=500, detail="Failed to update expense shares")

    updated = []
    if updated_ids:
        rows = db.query(ExpenseShare).filter(ExpenseShare.id.in_(updated_ids)).all()
        by_id = {row.id: row for row in rows}
        updated = [by_id[share_id] for share_id in updated_ids if share_id in by_id]

    if rejected:
        logger.warning(f"{transition.name} by {actor_id} rejected {len(rejected)} shares: {rejected}")
    logger.info(f"{transition.name} by {actor_id} moved {len(updated)} shares to {transition.target.value}")
    return updated, rejected


def mark_as_sent(db: Session, share_ids: List[str], actor_id: str, payment_method: PaymentMethod) -> TransitionResult:
    """Debtor reports a payment: pending -> verifying"""
    updated, rejected = _apply_transition(db, MARK_SENT, share_ids, actor_id, payment_method)
    return TransitionResult(
        message="Payment marked as sent successfully" if updated else "No payments were marked as sent",
        updated_shares=[ExpenseShareOut.model_validate(share) for share in updated],
        rejected=[RejectedShare(id=share_id, reason=reason) for share_id, reason in rejected],
    )


def mark_as_received(db: Session, share_ids: List[str], actor_id: str) -> TransitionResult:
    """Creditor confirms a payment: pending or verifying -> settled"""
    updated, rejected = _apply_transition(db, MARK_RECEIVED, share_ids, actor_id)
    return TransitionResult(
        message="Payment marked as received successfully" if updated else "No payments were marked as received",
        updated_shares=[ExpenseShareOut.model_validate(share) for share in updated],
        rejected=[RejectedShare(id=share_id, reason=reason) for share_id, reason in rejected],
    )
