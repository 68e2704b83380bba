from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from app.models.expenses import PaymentMethod, ShareStatus
from app.schemas.expense_schema import ExpenseShareOut, ProfileSnippet
from app.services.settlement_state import RejectionReason


class SettleUpItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_user: ProfileSnippet = Field(..., alias="from")
    to_user: ProfileSnippet = Field(..., alias="to")
    amount: Decimal
    status: ShareStatus
    expense_share_ids: List[str]
    offset_share_ids: List[str] = []


class SettleUpResponse(BaseModel):
    settle_up_items: List[SettleUpItem] = []


class MarkSentRequest(BaseModel):
    expense_share_ids: List[str] = Field(..., min_length=1)
    payment_method: PaymentMethod = PaymentMethod.other


class MarkReceivedRequest(BaseModel):
    expense_share_ids: List[str] = Field(..., min_length=1)


class RejectedShare(BaseModel):
    id: str
    reason: RejectionReason


class TransitionResult(BaseModel):
    message: str
    updated_shares: List[ExpenseShareOut] = []
    rejected: List[RejectedShare] = []
