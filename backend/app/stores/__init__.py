"""
Persistence stores for recurring transactions and ledger entries.
"""

from app.stores.recurring_store import RecurringTransactionStore
from app.stores.expense_store import ExpenseStore

__all__ = ["RecurringTransactionStore", "ExpenseStore"]
