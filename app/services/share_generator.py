"""
Share generation for expenses.

Turns an expense amount and the attendees of its event into one share per
attendee. The payer's own share is born settled, everybody else starts out
pending. Nothing here touches the database: expense_service persists the
drafts inside the same transaction as the expense.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

from app.models.expenses import ShareStatus
from app.utils.money import split_exact


@dataclass(frozen=True)
class ShareDraft:
    user_id: str
    amount: Decimal
    status: ShareStatus
    settled_at: Optional[datetime] = None
    settled_by: Optional[str] = None


def _unique(user_ids: Sequence[str]) -> List[str]:
    seen = set()
    ordered = []
    for user_id in user_ids:
        if user_id not in seen:
            seen.add(user_id)
            ordered.append(user_id)
    return ordered


def generate_shares(amount: Decimal, paid_by: str, attendee_ids: Sequence[str], now: datetime) -> List[ShareDraft]:
    """
    Build share drafts for a new expense.

    Args:
        amount: Expense total, must be positive
        paid_by: User who paid up-front
        attendee_ids: Attendees in a stable order; the first one absorbs the
            rounding remainder
        now: Timestamp used for the payer's settled share

    Returns:
        One ShareDraft per distinct attendee, empty when there are no attendees
    """
    debtors = _unique(attendee_ids)
    if not debtors:
        return []

    amounts = split_exact(amount, len(debtors))
    drafts = []
    for user_id, share_amount in zip(debtors, amounts):
        if user_id == paid_by:
            drafts.append(ShareDraft(
                user_id=user_id,
                amount=share_amount,
                status=ShareStatus.settled,
                settled_at=now,
                settled_by=paid_by,
            ))
        else:
            drafts.append(ShareDraft(user_id=user_id, amount=share_amount, status=ShareStatus.pending))
    return drafts


def recalculate_shares(amount: Decimal, existing_shares: Sequence) -> None:
    """
    Re-split a new amount over an expense's existing shares, in place.

    The debtor set is the one already stored, not current attendance, and
    every share keeps its status. Shares are visited in user_id order, the
    same order used when they were generated.
    """
    if not existing_shares:
        return

    ordered = sorted(existing_shares, key=lambda share: share.user_id)
    for share, share_amount in zip(ordered, split_exact(amount, len(ordered))):
        share.amount = share_amount
