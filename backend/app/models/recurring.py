"""
Recurring transaction database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Date, Numeric, Text, Enum, ForeignKey
from sqlalchemy.orm import relationship
import enum
from app.database import Base
from app.models.expense import TransactionType


class Frequency(str, enum.Enum):
    """Recurring frequency enumeration."""
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"
    quarterly = "quarterly"
    yearly = "yearly"


class RecurringTransaction(Base):
    """Template that periodically materializes ledger entries."""

    __tablename__ = "recurring_transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    type = Column(Enum(TransactionType), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(String(255), nullable=False)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True)
    frequency = Column(Enum(Frequency), nullable=False)

    # Anchors
    day_of_month = Column(Integer, nullable=True)  # 1-31, clamped to month length
    day_of_week = Column(Integer, nullable=True)  # 0 = Sunday ... 6 = Saturday
    month_of_year = Column(Integer, nullable=True)  # 1-12, yearly only

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)  # Exclusive
    next_due_date = Column(Date, nullable=False, index=True)

    total_occurrences = Column(Integer, nullable=True)
    current_occurrences = Column(Integer, default=0, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    last_processed = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="recurring_transactions")
    category = relationship("Category", back_populates="recurring_transactions")
    expenses = relationship("Expense", back_populates="recurring_transaction")

    @property
    def occurrence_cap_reached(self) -> bool:
        return (
            self.total_occurrences is not None
            and self.current_occurrences >= self.total_occurrences
        )
