"""
Database models package.
"""

from app.models.user import User
from app.models.category import Category
from app.models.expense import Expense, TransactionType
from app.models.recurring import RecurringTransaction, Frequency

__all__ = [
    "User",
    "Category",
    "Expense",
    "TransactionType",
    "RecurringTransaction",
    "Frequency",
]
