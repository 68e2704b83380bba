import logging
from typing import Callable, Dict, Iterable, List, Mapping
from app.schemas.expense_schema import ProfileSnippet
from app.schemas.settlement_schema import SettleUpItem
from app.services.ledger import NetSettlement

logger = logging.getLogger(__name__)

ProfileLookup = Callable[[Iterable[str]], Mapping[str, ProfileSnippet]]


def assemble_settle_up(settlements: List[NetSettlement], lookup_profiles: ProfileLookup) -> List[SettleUpItem]:
    """
    Attach debtor and creditor profiles to net settlements for display.

    A settlement whose debtor or creditor has no profile is left out of the
    result instead of failing the whole list.
    """
    if not settlements:
        return []

    user_ids = sorted({uid for s in settlements for uid in (s.debtor_id, s.creditor_id)})
    profiles: Dict[str, ProfileSnippet] = dict(lookup_profiles(user_ids))

    items = []
    for settlement in settlements:
        debtor = profiles.get(settlement.debtor_id)
        creditor = profiles.get(settlement.creditor_id)
        if debtor is None or creditor is None:
            logger.warning(
                f"Skipping settlement {settlement.debtor_id} -> {settlement.creditor_id}: profile not found"
            )
            continue

        items.append(SettleUpItem(
            from_user=debtor,
            to_user=creditor,
            amount=settlement.amount,
            status=settlement.status,
            expense_share_ids=list(settlement.share_ids),
            offset_share_ids=list(settlement.offset_share_ids),
        ))

    return items
