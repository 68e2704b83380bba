import enum
import uuid
from sqlalchemy.sql import func
from sqlalchemy import Column, String, DateTime, DECIMAL, Enum, ForeignKey, Text
from sqlalchemy.orm import relationship
from app.db.database import Base


class ExpenseCategory(str, enum.Enum):
    court = "court"
    equipment = "equipment"
    supplies = "supplies"
    food = "food"
    refreshments = "refreshments"
    transportation = "transportation"
    accommodation = "accommodation"
    booking_fee = "booking_fee"
    software = "software"
    decorations = "decorations"
    gifts = "gifts"
    donation = "donation"
    entry_fee = "entry_fee"
    other = "other"


class ShareStatus(str, enum.Enum):
    pending = "pending"
    verifying = "verifying"
    settled = "settled"


class PaymentMethod(str, enum.Enum):
    venmo = "venmo"
    zelle = "zelle"
    cash = "cash"
    other = "other"


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    event_id = Column(String, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(DECIMAL(10, 2), nullable=False)
    description = Column(Text, nullable=False, default="Expense")
    category = Column(Enum(ExpenseCategory), nullable=False, default=ExpenseCategory.other)
    paid_by = Column(String, nullable=False, index=True)  # Reference to profiles
    created_by = Column(String, nullable=False)  # Reference to profiles
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    shares = relationship(
        "ExpenseShare",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseShare.user_id",
    )


class ExpenseShare(Base):
    __tablename__ = "expense_shares"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    expense_id = Column(String, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)  # Debtor
    amount = Column(DECIMAL(10, 2), nullable=False)
    status = Column(Enum(ShareStatus), nullable=False, default=ShareStatus.pending, index=True)
    payment_method = Column(Enum(PaymentMethod), nullable=True)
    settled_at = Column(DateTime(timezone=True), nullable=True)
    settled_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    expense = relationship("Expense", back_populates="shares")
