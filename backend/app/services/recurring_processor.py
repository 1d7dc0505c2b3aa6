"""
Materialization of due recurring transactions into ledger entries.

Each run visits every active recurring transaction whose next due date has
passed, one row at a time. A row either gets deactivated (occurrence cap
reached or end date passed) or produces exactly one ledger entry and has
its schedule advanced. Rows are isolated from each other: a failure rolls
back that row only and leaves it due for the next run.
"""

import logging
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from app.config import settings
from app.models.expense import TransactionType
from app.models.recurring import RecurringTransaction
from app.services.recurring_service import calculate_next_due_date
from app.stores import ExpenseStore, RecurringTransactionStore

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    """Naive wall-clock time in the scheduler timezone."""
    return datetime.now(ZoneInfo(settings.scheduler_timezone)).replace(tzinfo=None)


@dataclass
class ProcessedTransaction:
    recurring_id: str
    ledger_entry_id: str
    description: str
    amount: Decimal
    type: TransactionType
    next_due_date: date


@dataclass
class FailedTransaction:
    recurring_id: str
    error: str


@dataclass
class ProcessingResult:
    processed: List[ProcessedTransaction] = field(default_factory=list)
    deactivated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[FailedTransaction] = field(default_factory=list)

    @property
    def processed_count(self) -> int:
        return len(self.processed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processed_count": self.processed_count,
            "processed": [asdict(p) for p in self.processed],
            "deactivated": list(self.deactivated),
            "skipped": list(self.skipped),
            "failed": [asdict(f) for f in self.failed],
        }


class ConcurrentUpdateError(Exception):
    """The recurring row changed between read and write."""


class DueTransactionProcessor:
    """
    Processes due recurring transactions against one database session.

    The clock is injectable so runs can be replayed at fixed instants.
    """

    def __init__(
        self,
        db: Session,
        clock: Optional[Callable[[], datetime]] = None,
        description_suffix: Optional[str] = None
    ):
        self.db = db
        self.clock = clock or local_now
        self.description_suffix = (
            settings.recurring_description_suffix if description_suffix is None else description_suffix
        )
        self.recurring_store = RecurringTransactionStore(db)
        self.expense_store = ExpenseStore(db)

    def run(self, as_of: Optional[datetime] = None) -> ProcessingResult:
        now = as_of or self.clock()
        result = ProcessingResult()

        due = self.recurring_store.find_due_active(now)
        logger.info(f"Found {len(due)} due recurring transactions as of {now.isoformat()}")

        # Read the ids up front; a rollback expires the loaded instances
        for recurring_id in [r.id for r in due]:
            self._process_row(recurring_id, now, result)

        logger.info(
            f"Processed {result.processed_count} recurring transactions "
            f"({len(result.deactivated)} deactivated, {len(result.skipped)} skipped, "
            f"{len(result.failed)} failed)"
        )
        return result

    def _process_row(self, recurring_id: str, now: datetime, result: ProcessingResult) -> None:
        try:
            recurring = self.recurring_store.get(recurring_id)
            if recurring is None or not recurring.is_active:
                result.skipped.append(recurring_id)
                return

            if self._should_deactivate(recurring, now):
                self._deactivate(recurring)
                self.db.commit()
                result.deactivated.append(recurring_id)
                logger.info(f"Deactivated recurring transaction {recurring_id}")
                return

            processed = self._materialize(recurring, now)
            self.db.commit()
            result.processed.append(processed)
        except ConcurrentUpdateError:
            self.db.rollback()
            result.skipped.append(recurring_id)
            logger.warning(f"Recurring transaction {recurring_id} was updated by another run, skipping")
        except Exception as e:
            self.db.rollback()
            result.failed.append(FailedTransaction(recurring_id=recurring_id, error=str(e)))
            logger.exception(f"Error processing recurring transaction {recurring_id}")

    def _should_deactivate(self, recurring: RecurringTransaction, now: datetime) -> bool:
        if recurring.occurrence_cap_reached:
            return True
        # end_date is exclusive
        return recurring.end_date is not None and now.date() >= recurring.end_date

    def _deactivate(self, recurring: RecurringTransaction) -> None:
        updated = self.recurring_store.update(
            recurring.id,
            {"is_active": False},
            expected={"is_active": True},
        )
        if not updated:
            raise ConcurrentUpdateError(recurring.id)

    def _materialize(self, recurring: RecurringTransaction, now: datetime) -> ProcessedTransaction:
        previous_due = recurring.next_due_date
        occurrence_index = recurring.current_occurrences

        # A crashed run may already have written this occurrence
        entry = self.expense_store.find_for_occurrence(recurring.id, occurrence_index)
        if entry is None:
            entry = self.expense_store.create(
                user_id=recurring.user_id,
                type=recurring.type,
                amount=recurring.amount,
                description=f"{recurring.description}{self.description_suffix}",
                category_id=recurring.category_id,
                date=now.date(),
                recurring_transaction_id=recurring.id,
                occurrence_index=occurrence_index,
            )
        else:
            logger.warning(
                f"Ledger entry for occurrence {occurrence_index} of recurring transaction "
                f"{recurring.id} already exists, reusing {entry.id}"
            )

        next_due_date = calculate_next_due_date(
            recurring.frequency,
            previous_due,
            recurring.day_of_month,
            recurring.day_of_week,
            recurring.month_of_year,
        )

        updated = self.recurring_store.update(
            recurring.id,
            {
                "next_due_date": next_due_date,
                "last_processed": now,
                "current_occurrences": occurrence_index + 1,
            },
            expected={
                "next_due_date": previous_due,
                "current_occurrences": occurrence_index,
                "is_active": True,
            },
        )
        if not updated:
            raise ConcurrentUpdateError(recurring.id)

        return ProcessedTransaction(
            recurring_id=recurring.id,
            ledger_entry_id=entry.id,
            description=recurring.description,
            amount=recurring.amount,
            type=recurring.type,
            next_due_date=next_due_date,
        )


def process_due_recurring_transactions(
    db: Session,
    as_of: Optional[datetime] = None
) -> ProcessingResult:
    """Materialize every due recurring transaction as of the given instant (default: now)."""
    return DueTransactionProcessor(db).run(as_of)
