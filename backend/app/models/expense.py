"""
Ledger entry (expense/income) database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, DateTime, Date, Numeric, Text, Enum, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
import enum
from app.database import Base


class TransactionType(str, enum.Enum):
    """Ledger entry kind."""
    income = "income"
    expense = "expense"


class Expense(Base):
    """A materialized ledger entry, entered by the user or generated from a recurring transaction."""

    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    type = Column(Enum(TransactionType), default=TransactionType.expense, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)  # Always positive, sign comes from type
    description = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)
    date = Column(Date, nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True)
    recurring_transaction_id = Column(
        String(36), ForeignKey("recurring_transactions.id"), nullable=True
    )
    occurrence_index = Column(Integer, nullable=True)  # Zero-based, set with recurring_transaction_id
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="expenses")
    category = relationship("Category", back_populates="expenses")
    recurring_transaction = relationship("RecurringTransaction", back_populates="expenses")

    __table_args__ = (
        UniqueConstraint(
            "recurring_transaction_id", "occurrence_index", name="uq_expense_recurring_occurrence"
        ),
        Index("idx_expense_user_date", "user_id", "date"),
    )
