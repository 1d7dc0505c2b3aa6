"""
User database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Numeric
from sqlalchemy.orm import relationship
from app.database import Base


class User(Base):
    """Account owner with notification preferences."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    monthly_budget = Column(Numeric(10, 2), default=0, nullable=False)
    monthly_goal = Column(Numeric(10, 2), default=0, nullable=False)

    # Notification preferences
    email_alerts = Column(Boolean, default=True, nullable=False)
    budget_alerts = Column(Boolean, default=True, nullable=False)
    weekly_reports = Column(Boolean, default=True, nullable=False)
    monthly_reports = Column(Boolean, default=True, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    expenses = relationship("Expense", back_populates="user")
    recurring_transactions = relationship("RecurringTransaction", back_populates="user")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
