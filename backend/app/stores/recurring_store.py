"""Store for recurring transaction definitions."""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import TransientStoreError
from app.models.recurring import RecurringTransaction


class RecurringTransactionStore:
    """
    CRUD access to recurring transactions.

    Owner checks are the caller's job; lookups here only scope by user_id
    where a user_id is passed in. Writes are flushed, not committed, so the
    caller decides the transaction boundary.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields: Any) -> RecurringTransaction:
        recurring = RecurringTransaction(**fields)
        self.db.add(recurring)
        self._flush()
        return recurring

    def get(self, recurring_id: str) -> Optional[RecurringTransaction]:
        return self.db.query(RecurringTransaction).filter(
            RecurringTransaction.id == recurring_id
        ).first()

    def get_for_owner(self, user_id: str, recurring_id: str) -> Optional[RecurringTransaction]:
        return self.db.query(RecurringTransaction).filter(
            RecurringTransaction.id == recurring_id,
            RecurringTransaction.user_id == user_id
        ).first()

    def find_by_owner(
        self,
        user_id: str,
        type: Optional[str] = None,
        is_active: Optional[bool] = None,
        offset: int = 0,
        limit: Optional[int] = None
    ) -> Tuple[List[RecurringTransaction], int]:
        """Return one page of a user's recurring transactions, newest first, plus the total."""
        query = self.db.query(RecurringTransaction).filter(
            RecurringTransaction.user_id == user_id
        )
        if type:
            query = query.filter(RecurringTransaction.type == type)
        if is_active is not None:
            query = query.filter(RecurringTransaction.is_active == is_active)

        total = query.count()
        query = query.order_by(RecurringTransaction.created_at.desc()).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all(), total

    def find_upcoming(self, user_id: str, until: date, limit: int = 10) -> List[RecurringTransaction]:
        return self.db.query(RecurringTransaction).filter(
            RecurringTransaction.user_id == user_id,
            RecurringTransaction.is_active == True,
            RecurringTransaction.next_due_date <= until
        ).order_by(RecurringTransaction.next_due_date.asc()).limit(limit).all()

    def find_due_active(self, as_of: Union[date, datetime]) -> List[RecurringTransaction]:
        """Active rows whose next due date is at or before as_of, oldest due first."""
        if isinstance(as_of, datetime):
            as_of = as_of.date()
        return self.db.query(RecurringTransaction).filter(
            RecurringTransaction.is_active == True,
            RecurringTransaction.next_due_date <= as_of
        ).order_by(
            RecurringTransaction.next_due_date.asc(),
            RecurringTransaction.created_at.asc()
        ).all()

    def update(
        self,
        recurring_id: str,
        fields: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Apply a partial update in a single UPDATE statement.

        When expected is given, the row is only updated if those columns
        still hold the expected values. Returns False if no row matched.
        """
        query = self.db.query(RecurringTransaction).filter(
            RecurringTransaction.id == recurring_id
        )
        for column, value in (expected or {}).items():
            query = query.filter(getattr(RecurringTransaction, column) == value)

        values = dict(fields)
        values.setdefault("updated_at", datetime.utcnow())
        try:
            matched = query.update(values, synchronize_session=False)
        except SQLAlchemyError as e:
            raise TransientStoreError(f"Failed to update recurring transaction {recurring_id}: {e}") from e
        return matched == 1

    def delete(self, recurring: RecurringTransaction) -> None:
        self.db.delete(recurring)
        self._flush()

    def _flush(self) -> None:
        try:
            self.db.flush()
        except SQLAlchemyError as e:
            raise TransientStoreError(f"Failed to write recurring transaction: {e}") from e
