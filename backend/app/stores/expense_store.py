"""Store for ledger entries."""

from datetime import date
from typing import Any, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import TransientStoreError
from app.models.expense import Expense


class ExpenseStore:
    """CRUD access to ledger entries. Writes flush but never commit."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields: Any) -> Expense:
        expense = Expense(**fields)
        self.db.add(expense)
        self._flush()
        return expense

    def get(self, expense_id: str, user_id: Optional[str] = None) -> Optional[Expense]:
        query = self.db.query(Expense).filter(Expense.id == expense_id)
        if user_id is not None:
            query = query.filter(Expense.user_id == user_id)
        return query.first()

    def find_by_owner(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        type: Optional[str] = None,
        offset: int = 0,
        limit: Optional[int] = None
    ) -> Tuple[List[Expense], int]:
        query = self.db.query(Expense).filter(Expense.user_id == user_id)
        if start_date:
            query = query.filter(Expense.date >= start_date)
        if end_date:
            query = query.filter(Expense.date <= end_date)
        if type:
            query = query.filter(Expense.type == type)

        total = query.count()
        query = query.order_by(Expense.date.desc(), Expense.created_at.desc()).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all(), total

    def find_in_period(self, user_id: str, start: date, end: date) -> List[Expense]:
        """Entries dated within [start, end], newest first."""
        return self.db.query(Expense).filter(
            Expense.user_id == user_id,
            Expense.date >= start,
            Expense.date <= end
        ).order_by(Expense.date.desc()).all()

    def find_for_occurrence(self, recurring_id: str, occurrence_index: int) -> Optional[Expense]:
        return self.db.query(Expense).filter(
            Expense.recurring_transaction_id == recurring_id,
            Expense.occurrence_index == occurrence_index
        ).first()

    def count_for_recurring(self, recurring_id: str) -> int:
        return self.db.query(Expense).filter(
            Expense.recurring_transaction_id == recurring_id
        ).count()

    def detach_recurring(self, recurring_id: str) -> int:
        """Unlink entries from a recurring transaction that is about to be deleted."""
        try:
            return self.db.query(Expense).filter(
                Expense.recurring_transaction_id == recurring_id
            ).update(
                {Expense.recurring_transaction_id: None, Expense.occurrence_index: None},
                synchronize_session=False
            )
        except SQLAlchemyError as e:
            raise TransientStoreError(f"Failed to detach ledger entries: {e}") from e

    def delete(self, expense: Expense) -> None:
        self.db.delete(expense)
        self._flush()

    def _flush(self) -> None:
        try:
            self.db.flush()
        except SQLAlchemyError as e:
            raise TransientStoreError(f"Failed to write ledger entry: {e}") from e
