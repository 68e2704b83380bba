from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from app.models.expenses import ExpenseCategory, PaymentMethod, ShareStatus


class ExpenseBase(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: Optional[str] = Field(None, max_length=500)
    category: ExpenseCategory = ExpenseCategory.other


class ExpenseCreate(ExpenseBase):
    event_id: str
    paid_by: str


class ExpenseUpdate(BaseModel):
    # Omitted fields stay unchanged; an explicit null is rejected
    amount: Decimal = Field(None, gt=0, max_digits=10, decimal_places=2)
    description: str = Field(None, max_length=500)
    category: ExpenseCategory = None


class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    event_id: str
    amount: Decimal
    description: str
    category: ExpenseCategory
    paid_by: str
    created_by: str
    created_at: datetime
    updated_at: datetime


class ProfileSnippet(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class ExpenseShareOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    expense_id: str
    user_id: str
    amount: Decimal
    status: ShareStatus
    payment_method: Optional[PaymentMethod] = None
    settled_at: Optional[datetime] = None
    settled_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ExpenseShareWithUser(ExpenseShareOut):
    user: Optional[ProfileSnippet] = None


class ExpenseWithShares(ExpenseOut):
    shares: List[ExpenseShareOut] = []
