"""Service for recurring transaction scheduling and management."""

import calendar
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.exceptions import RecordNotFoundError, RecurringTransactionValidationError
from app.models.category import Category
from app.models.expense import TransactionType
from app.models.recurring import RecurringTransaction, Frequency
from app.stores import ExpenseStore, RecurringTransactionStore

logger = logging.getLogger(__name__)

# Changing any of these on an update moves the schedule
SCHEDULE_FIELDS = ("frequency", "day_of_month", "day_of_week", "month_of_year")

REQUIRED_FIELDS = ("type", "amount", "description", "frequency", "start_date")

# Columns that a partial update may change but never clear
NON_NULLABLE_FIELDS = REQUIRED_FIELDS + ("is_active",)


def _days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def _add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping the day to the length of the target month."""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(from_date.day, _days_in_month(year, month)))


def _clamp_day(value: date, day_of_month: int) -> date:
    return value.replace(day=min(day_of_month, _days_in_month(value.year, value.month)))


def _sunday_based_weekday(value: date) -> int:
    """Weekday with 0 = Sunday ... 6 = Saturday."""
    return (value.weekday() + 1) % 7


def calculate_next_due_date(
    frequency: Frequency,
    from_date: date,
    day_of_month: Optional[int] = None,
    day_of_week: Optional[int] = None,
    month_of_year: Optional[int] = None
) -> date:
    """
    Calculate the due date that follows from_date.

    Anchors pin the result to a calendar position: day_of_week for weekly
    schedules (0 = Sunday), day_of_month for monthly, quarterly and yearly
    schedules (clamped to the month length), month_of_year for yearly ones.
    The result is always strictly after from_date.
    """
    frequency = Frequency(frequency)

    if frequency == Frequency.daily:
        return from_date + timedelta(days=1)

    if frequency == Frequency.weekly:
        next_date = from_date + timedelta(days=7)
        if day_of_week is not None:
            days_to_add = (day_of_week - _sunday_based_weekday(next_date)) % 7
            next_date += timedelta(days=days_to_add or 7)
        return next_date

    if frequency in (Frequency.monthly, Frequency.quarterly):
        next_date = _add_months(from_date, 1 if frequency == Frequency.monthly else 3)
        if day_of_month is not None:
            next_date = _clamp_day(next_date, day_of_month)
        return next_date

    if frequency == Frequency.yearly:
        year = from_date.year + 1
        month = month_of_year if month_of_year is not None else from_date.month
        next_date = date(year, month, min(from_date.day, _days_in_month(year, month)))
        if day_of_month is not None:
            next_date = _clamp_day(next_date, day_of_month)
        return next_date

    raise RecurringTransactionValidationError(f"Unsupported frequency: {frequency}")


def validate_recurring_fields(data: Dict[str, Any], partial: bool = False) -> None:
    """
    Reject malformed recurring transaction definitions.

    With partial=True only the supplied fields are checked.
    """
    if not partial:
        missing = [field for field in REQUIRED_FIELDS if data.get(field) in (None, "")]
        if missing:
            raise RecurringTransactionValidationError(
                f"Missing required fields: {', '.join(missing)}"
            )
    else:
        cleared = [field for field in NON_NULLABLE_FIELDS if field in data and data[field] is None]
        if cleared:
            raise RecurringTransactionValidationError(
                f"Fields cannot be null: {', '.join(cleared)}"
            )

    if "type" in data and data["type"] is not None:
        try:
            TransactionType(data["type"])
        except ValueError:
            raise RecurringTransactionValidationError(f"Invalid type: {data['type']}")

    if "frequency" in data and data["frequency"] is not None:
        try:
            Frequency(data["frequency"])
        except ValueError:
            raise RecurringTransactionValidationError(f"Invalid frequency: {data['frequency']}")

    if data.get("amount") is not None and data["amount"] <= 0:
        raise RecurringTransactionValidationError("Amount must be positive")

    if "description" in data and not (data["description"] or "").strip():
        raise RecurringTransactionValidationError("Description must not be empty")

    ranges = {
        "day_of_month": (1, 31),
        "day_of_week": (0, 6),
        "month_of_year": (1, 12),
    }
    for field, (low, high) in ranges.items():
        value = data.get(field)
        if value is not None and not low <= value <= high:
            raise RecurringTransactionValidationError(f"{field} must be between {low} and {high}")

    if data.get("total_occurrences") is not None and data["total_occurrences"] < 1:
        raise RecurringTransactionValidationError("total_occurrences must be at least 1")

    start_date = data.get("start_date")
    end_date = data.get("end_date")
    if start_date and end_date and end_date <= start_date:
        raise RecurringTransactionValidationError("end_date must be after start_date")


def validate_category(db: Session, user_id: str, category_id: Optional[str]) -> None:
    """The category must be a shared default or belong to the user."""
    if category_id is None:
        return

    category = db.query(Category).filter(
        Category.id == category_id,
        or_(Category.user_id.is_(None), Category.user_id == user_id)
    ).first()
    if not category:
        raise RecurringTransactionValidationError(f"Category not found: {category_id}")


def create_recurring_transaction(
    db: Session,
    user_id: str,
    data: Dict[str, Any]
) -> RecurringTransaction:
    """
    Create a recurring transaction for a user.

    The first occurrence is due on the start date itself.
    """
    validate_recurring_fields(data)
    validate_category(db, user_id, data.get("category_id"))

    store = RecurringTransactionStore(db)
    recurring = store.create(
        user_id=user_id,
        type=TransactionType(data["type"]),
        amount=data["amount"],
        description=data["description"].strip(),
        category_id=data.get("category_id"),
        frequency=Frequency(data["frequency"]),
        start_date=data["start_date"],
        end_date=data.get("end_date"),
        next_due_date=data["start_date"],
        total_occurrences=data.get("total_occurrences"),
        current_occurrences=0,
        day_of_month=data.get("day_of_month"),
        day_of_week=data.get("day_of_week"),
        month_of_year=data.get("month_of_year"),
        notes=data.get("notes"),
        is_active=True,
    )
    db.commit()
    db.refresh(recurring)

    logger.info(
        f"Created recurring transaction {recurring.id} ({recurring.frequency.value}) "
        f"for user {user_id}, first due {recurring.next_due_date}"
    )
    return recurring


def get_recurring_transaction(db: Session, user_id: str, recurring_id: str) -> RecurringTransaction:
    recurring = RecurringTransactionStore(db).get_for_owner(user_id, recurring_id)
    if not recurring:
        raise RecordNotFoundError("Recurring transaction not found")
    return recurring


def update_recurring_transaction(
    db: Session,
    user_id: str,
    recurring_id: str,
    changes: Dict[str, Any]
) -> RecurringTransaction:
    """
    Apply a partial update.

    Schedule changes recompute next_due_date from the current next_due_date,
    not from today. Inactive rows keep their frozen next_due_date.
    """
    recurring = get_recurring_transaction(db, user_id, recurring_id)
    validate_recurring_fields(changes, partial=True)
    if "category_id" in changes:
        validate_category(db, user_id, changes["category_id"])

    start_date = changes.get("start_date", recurring.start_date)
    end_date = changes.get("end_date", recurring.end_date)
    if start_date and end_date and end_date <= start_date:
        raise RecurringTransactionValidationError("end_date must be after start_date")

    total_occurrences = changes.get("total_occurrences", recurring.total_occurrences)
    if total_occurrences is not None and total_occurrences < recurring.current_occurrences:
        raise RecurringTransactionValidationError(
            "total_occurrences cannot be lower than the occurrences already processed"
        )

    next_due_date = recurring.next_due_date
    if recurring.is_active:
        if "start_date" in changes and recurring.current_occurrences == 0:
            next_due_date = start_date
        elif start_date > next_due_date:
            raise RecurringTransactionValidationError(
                "start_date cannot move past the next due date once occurrences exist"
            )

        if any(field in changes for field in SCHEDULE_FIELDS):
            next_due_date = calculate_next_due_date(
                changes.get("frequency") or recurring.frequency,
                next_due_date,
                changes.get("day_of_month", recurring.day_of_month),
                changes.get("day_of_week", recurring.day_of_week),
                changes.get("month_of_year", recurring.month_of_year),
            )
    elif "start_date" in changes and start_date > next_due_date:
        raise RecurringTransactionValidationError("start_date cannot be after the next due date")

    for field, value in changes.items():
        if field == "description" and value is not None:
            value = value.strip()
        setattr(recurring, field, value)
    recurring.next_due_date = next_due_date

    db.commit()
    db.refresh(recurring)
    return recurring


def delete_recurring_transaction(db: Session, user_id: str, recurring_id: str) -> None:
    """Delete a recurring transaction. Ledger entries it produced are kept and unlinked."""
    recurring = get_recurring_transaction(db, user_id, recurring_id)

    ExpenseStore(db).detach_recurring(recurring.id)
    RecurringTransactionStore(db).delete(recurring)
    db.commit()

    logger.info(f"Deleted recurring transaction {recurring_id} for user {user_id}")


def list_recurring_transactions(
    db: Session,
    user_id: str,
    page: int = 1,
    limit: int = 10,
    type: Optional[str] = None,
    is_active: Optional[bool] = None
) -> Tuple[List[RecurringTransaction], int]:
    """Get one page of a user's recurring transactions with the total count."""
    return RecurringTransactionStore(db).find_by_owner(
        user_id,
        type=type,
        is_active=is_active,
        offset=(page - 1) * limit,
        limit=limit,
    )


def get_upcoming_recurring_transactions(
    db: Session,
    user_id: str,
    days: int = 30,
    today: Optional[date] = None,
    limit: int = 10
) -> List[RecurringTransaction]:
    """Active recurring transactions due within the next N days."""
    today = today or date.today()
    return RecurringTransactionStore(db).find_upcoming(
        user_id, today + timedelta(days=days), limit=limit
    )
