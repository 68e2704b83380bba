"""
Lifecycle rules for expense shares.

    pending --(debtor marks sent)--> verifying --(creditor marks received)--> settled
    pending --(creditor marks received)-------------------------------------> settled

There is no way back once a share moved forward. The rules here only decide
whether a given actor may apply a transition to a given share; settlement_service
runs the filtered updates against the database.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from app.models.expenses import PaymentMethod, ShareStatus
from app.services.ledger import LedgerShare


class ActorRole(str, enum.Enum):
    debtor = "debtor"
    creditor = "creditor"


class RejectionReason(str, enum.Enum):
    not_found = "not_found"
    not_debtor = "not_debtor"
    not_creditor = "not_creditor"
    invalid_status = "invalid_status"
    conflict = "conflict"


@dataclass(frozen=True)
class Transition:
    name: str
    target: ShareStatus
    allowed_from: FrozenSet[ShareStatus]
    actor_role: ActorRole


MARK_SENT = Transition(
    name="mark_sent",
    target=ShareStatus.verifying,
    allowed_from=frozenset({ShareStatus.pending}),
    actor_role=ActorRole.debtor,
)

MARK_RECEIVED = Transition(
    name="mark_received",
    target=ShareStatus.settled,
    allowed_from=frozenset({ShareStatus.pending, ShareStatus.verifying}),
    actor_role=ActorRole.creditor,
)


def authorize_transition(transition: Transition, share: Optional[LedgerShare], actor_id: str) -> Optional[RejectionReason]:
    """Return why actor_id may not apply transition to share, or None if it may"""
    if share is None:
        return RejectionReason.not_found

    if transition.actor_role == ActorRole.debtor and share.debtor_id != actor_id:
        return RejectionReason.not_debtor
    if transition.actor_role == ActorRole.creditor and share.creditor_id != actor_id:
        return RejectionReason.not_creditor

    if share.status not in transition.allowed_from:
        return RejectionReason.invalid_status
    return None


def partition_shares(
    transition: Transition,
    share_ids: Iterable[str],
    shares_by_id: Dict[str, LedgerShare],
    actor_id: str,
) -> Tuple[List[str], List[Tuple[str, RejectionReason]]]:
    """
    Split requested ids into those the actor may transition and those rejected.

    Duplicate ids are considered once, in request order.
    """
    accepted: List[str] = []
    rejected: List[Tuple[str, RejectionReason]] = []
    seen = set()

    for share_id in share_ids:
        if share_id in seen:
            continue
        seen.add(share_id)

        reason = authorize_transition(transition, shares_by_id.get(share_id), actor_id)
        if reason is None:
            accepted.append(share_id)
        else:
            rejected.append((share_id, reason))

    return accepted, rejected


def transition_values(
    transition: Transition,
    actor_id: str,
    now: datetime,
    payment_method: Optional[PaymentMethod] = None,
) -> Dict[str, Any]:
    """Column values written when a share enters transition.target"""
    values: Dict[str, Any] = {"status": transition.target, "updated_at": now}

    if transition.target == ShareStatus.verifying:
        if payment_method is None:
            raise ValueError("payment_method is required to mark a share as sent")
        values["payment_method"] = payment_method
    elif transition.target == ShareStatus.settled:
        values["settled_at"] = now
        values["settled_by"] = actor_id

    return values
