"""
Debt Ledger Module

Aggregates outstanding expense shares into net pairwise settlements.

The ledger works by:
1. Dropping settled shares and shares a payer owes to themselves
2. Summing the remaining shares per ordered (debtor, creditor) pair
3. Netting every pair against its mirror so two users owe each other in one
   direction only

No transfers are re-routed through third parties: a settlement is always
between two users who actually share expenses, so it can be confirmed
share by share through the settlement workflow.

Example Usage:
    from app.services.ledger import LedgerShare, compute_net_settlements

    shares = [
        LedgerShare("s1", debtor_id="A", creditor_id="B", amount=Decimal("10.00"), status=ShareStatus.pending),
        LedgerShare("s2", debtor_id="B", creditor_id="A", amount=Decimal("4.00"), status=ShareStatus.pending),
    ]
    compute_net_settlements(shares)
    # [NetSettlement(debtor_id="A", creditor_id="B", amount=Decimal("6.00"), ...)]
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, NamedTuple, Tuple

from app.models.expenses import ShareStatus
from app.utils.money import round_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
OUTSTANDING = (ShareStatus.pending, ShareStatus.verifying)


class DebtPair(NamedTuple):
    """Ordered pair: debtor owes creditor"""
    debtor_id: str
    creditor_id: str

    def mirror(self) -> "DebtPair":
        return DebtPair(self.creditor_id, self.debtor_id)


@dataclass(frozen=True)
class LedgerShare:
    """A share joined with the payer of its expense, ready for aggregation"""
    share_id: str
    debtor_id: str
    creditor_id: str
    amount: Decimal
    status: ShareStatus


@dataclass
class PairBalance:
    amount: Decimal = ZERO
    share_ids: List[str] = field(default_factory=list)
    status: ShareStatus = ShareStatus.pending

    def add(self, share: LedgerShare) -> None:
        self.amount = round_decimal(self.amount + share.amount)
        self.share_ids.append(share.share_id)
        # verifying is sticky for the pair
        if share.status == ShareStatus.verifying:
            self.status = ShareStatus.verifying


@dataclass(frozen=True)
class NetSettlement:
    debtor_id: str
    creditor_id: str
    amount: Decimal
    status: ShareStatus
    share_ids: Tuple[str, ...]
    offset_share_ids: Tuple[str, ...] = ()

    def involves(self, user_id: str) -> bool:
        return user_id in (self.debtor_id, self.creditor_id)


def accumulate_balances(shares: Iterable[LedgerShare]) -> Dict[DebtPair, PairBalance]:
    """
    Sum outstanding shares per ordered (debtor, creditor) pair.

    Args:
        shares: Shares joined with their expense payer

    Returns:
        Mapping of DebtPair -> PairBalance, settled shares and self pairs excluded
    """
    balances: Dict[DebtPair, PairBalance] = {}

    for share in shares:
        if share.status not in OUTSTANDING:
            continue
        if share.debtor_id == share.creditor_id:
            continue

        pair = DebtPair(share.debtor_id, share.creditor_id)
        if pair not in balances:
            balances[pair] = PairBalance()
        balances[pair].add(share)

    return balances


def compute_net_settlements(shares: Iterable[LedgerShare]) -> List[NetSettlement]:
    """
    Collapse outstanding shares into one net settlement per pair of users.

    For a pair (A, B) the net is what A owes B minus what B owes A. The
    settlement points in the positive direction and carries that direction's
    status and share ids; the mirror's share ids are kept as offsets. Pairs
    that cancel out exactly produce nothing.

    Args:
        shares: Shares joined with their expense payer

    Returns:
        Net settlements with a strictly positive amount, sorted by
        (debtor_id, creditor_id)
    """
    balances = accumulate_balances(shares)
    settlements: List[NetSettlement] = []
    visited = set()

    for pair in sorted(balances):
        if pair in visited:
            continue
        mirror = pair.mirror()
        visited.update((pair, mirror))

        forward = balances[pair]
        backward = balances.get(mirror, PairBalance())
        net = round_decimal(forward.amount - backward.amount)

        if net == ZERO:
            logger.debug(f"Debts between {pair.debtor_id} and {pair.creditor_id} cancel out")
            continue

        if net > ZERO:
            direction, surviving, offset = pair, forward, backward
        else:
            direction, surviving, offset = mirror, backward, forward
            net = -net

        settlements.append(NetSettlement(
            debtor_id=direction.debtor_id,
            creditor_id=direction.creditor_id,
            amount=net,
            status=surviving.status,
            share_ids=tuple(surviving.share_ids),
            offset_share_ids=tuple(offset.share_ids),
        ))

    settlements.sort(key=lambda s: (s.debtor_id, s.creditor_id))
    return settlements


def settlements_for_user(settlements: Iterable[NetSettlement], user_id: str) -> List[NetSettlement]:
    """Keep only settlements where user_id is the debtor or the creditor"""
    return [s for s in settlements if s.involves(user_id) and s.amount > ZERO]
