"""Tests for recurring schedule calculations and owner operations."""

import pytest
from datetime import date, timedelta
from decimal import Decimal
import uuid

from app.exceptions import RecordNotFoundError, RecurringTransactionValidationError
from app.models.category import Category
from app.models.expense import Expense, TransactionType
from app.models.recurring import RecurringTransaction, Frequency
from app.services.recurring_service import (
    calculate_next_due_date,
    create_recurring_transaction,
    delete_recurring_transaction,
    get_upcoming_recurring_transactions,
    list_recurring_transactions,
    update_recurring_transaction,
    validate_recurring_fields,
)

SUNDAY, MONDAY, FRIDAY = 0, 1, 5


def recurring_data(**overrides):
    data = {
        "type": TransactionType.expense,
        "amount": Decimal("50.00"),
        "description": "Rent",
        "frequency": Frequency.monthly,
        "start_date": date(2024, 1, 31),
    }
    data.update(overrides)
    return data


class TestCalculateNextDueDate:
    """Test next due date calculations."""

    def test_daily(self):
        """Daily should add one day."""
        assert calculate_next_due_date(Frequency.daily, date(2024, 1, 15)) == date(2024, 1, 16)

    def test_daily_year_rollover(self):
        """Daily on Dec 31 should roll into the next year."""
        assert calculate_next_due_date(Frequency.daily, date(2024, 12, 31)) == date(2025, 1, 1)

    def test_weekly(self):
        """Weekly without anchor should add 7 days."""
        assert calculate_next_due_date(Frequency.weekly, date(2024, 1, 15)) == date(2024, 1, 22)

    def test_weekly_snaps_forward_to_day_of_week(self):
        """Weekly with anchor should move forward from +7 days to the target weekday."""
        # Wednesday -> +7 is Wednesday Jan 10 -> next Friday
        result = calculate_next_due_date(Frequency.weekly, date(2024, 1, 3), day_of_week=FRIDAY)
        assert result == date(2024, 1, 12)

    def test_weekly_wednesday_to_monday(self):
        """Weekly Monday anchor from a Wednesday lands on the Monday after the +7 jump."""
        result = calculate_next_due_date(Frequency.weekly, date(2024, 1, 3), day_of_week=MONDAY)
        assert result == date(2024, 1, 15)
        assert result.weekday() == 0

    def test_weekly_skips_a_week_when_jump_hits_target(self):
        """When +7 days already lands on the target weekday, another week is added."""
        result = calculate_next_due_date(Frequency.weekly, date(2024, 1, 8), day_of_week=MONDAY)
        assert result == date(2024, 1, 22)

    def test_weekly_sunday_anchor(self):
        """Day of week 0 means Sunday."""
        result = calculate_next_due_date(Frequency.weekly, date(2024, 1, 3), day_of_week=SUNDAY)
        assert result == date(2024, 1, 14)
        assert result.weekday() == 6

    def test_monthly_normal(self):
        """Monthly should add one month."""
        assert calculate_next_due_date(Frequency.monthly, date(2024, 1, 15)) == date(2024, 2, 15)

    def test_monthly_year_rollover(self):
        """Monthly in December should roll to January."""
        assert calculate_next_due_date(Frequency.monthly, date(2024, 12, 15)) == date(2025, 1, 15)

    def test_monthly_end_of_month_leap_year(self):
        """Monthly from Jan 31 should clamp to Feb 29 in a leap year."""
        result = calculate_next_due_date(Frequency.monthly, date(2024, 1, 31), day_of_month=31)
        assert result == date(2024, 2, 29)

    def test_monthly_end_of_month_common_year(self):
        """Monthly from Jan 31 should clamp to Feb 28 outside leap years."""
        result = calculate_next_due_date(Frequency.monthly, date(2023, 1, 31), day_of_month=31)
        assert result == date(2023, 2, 28)

    def test_monthly_without_anchor_clamps(self):
        """Monthly without an anchor still clamps to the month length."""
        assert calculate_next_due_date(Frequency.monthly, date(2024, 1, 31)) == date(2024, 2, 29)

    def test_monthly_anchor_recovers_after_short_month(self):
        """Day 31 anchor returns to the 31st after a clamped February."""
        result = calculate_next_due_date(Frequency.monthly, date(2024, 2, 29), day_of_month=31)
        assert result == date(2024, 3, 31)

    def test_monthly_anchor_earlier_in_month(self):
        """Anchor before the current day moves into the following month."""
        result = calculate_next_due_date(Frequency.monthly, date(2024, 1, 20), day_of_month=5)
        assert result == date(2024, 2, 5)

    def test_quarterly(self):
        """Quarterly should add 3 months."""
        assert calculate_next_due_date(Frequency.quarterly, date(2024, 1, 15)) == date(2024, 4, 15)

    def test_quarterly_year_rollover(self):
        """Quarterly in November should roll to next year."""
        assert calculate_next_due_date(Frequency.quarterly, date(2024, 11, 15)) == date(2025, 2, 15)

    def test_quarterly_clamps_day_of_month(self):
        """Quarterly day 31 anchor should clamp in February."""
        result = calculate_next_due_date(Frequency.quarterly, date(2024, 11, 30), day_of_month=31)
        assert result == date(2025, 2, 28)

    def test_yearly(self):
        """Yearly should add one year."""
        assert calculate_next_due_date(Frequency.yearly, date(2024, 1, 15)) == date(2025, 1, 15)

    def test_yearly_leap_day(self):
        """Yearly on Feb 29 should clamp to Feb 28 in non-leap years."""
        assert calculate_next_due_date(Frequency.yearly, date(2024, 2, 29)) == date(2025, 2, 28)

    def test_yearly_month_of_year(self):
        """Yearly with month anchor should move to that month of the next year."""
        result = calculate_next_due_date(
            Frequency.yearly, date(2024, 6, 10), day_of_month=31, month_of_year=1
        )
        assert result == date(2025, 1, 31)

    def test_yearly_month_and_day_clamped_in_leap_year(self):
        """Yearly February anchor with day 31 should clamp to Feb 29 in leap years."""
        result = calculate_next_due_date(
            Frequency.yearly, date(2023, 1, 31), day_of_month=31, month_of_year=2
        )
        assert result == date(2024, 2, 29)

    def test_accepts_string_frequency(self):
        """Frequency may be passed as its string value."""
        assert calculate_next_due_date("daily", date(2024, 1, 1)) == date(2024, 1, 2)

    def test_always_strictly_after_from_date(self):
        """Every frequency and anchor combination should move forward."""
        start = date(2023, 12, 25)
        for offset in range(0, 400, 17):
            from_date = start + timedelta(days=offset)
            for frequency in Frequency:
                for day_of_week in (None, 0, 3, 6):
                    for day_of_month in (None, 1, 15, 31):
                        for month_of_year in (None, 1, 12):
                            result = calculate_next_due_date(
                                frequency, from_date, day_of_month, day_of_week, month_of_year
                            )
                            assert result > from_date

    def test_is_deterministic(self):
        """Same inputs should give the same output."""
        first = calculate_next_due_date(Frequency.monthly, date(2024, 1, 31), day_of_month=31)
        second = calculate_next_due_date(Frequency.monthly, date(2024, 1, 31), day_of_month=31)
        assert first == second


class TestValidation:
    """Test recurring definition validation."""

    @pytest.mark.parametrize("field", ["type", "amount", "description", "frequency", "start_date"])
    def test_missing_required_field(self, field):
        """Each required field must be present."""
        data = recurring_data()
        data.pop(field)
        with pytest.raises(RecurringTransactionValidationError, match=field):
            validate_recurring_fields(data)

    def test_non_positive_amount(self):
        """Amount must be positive."""
        with pytest.raises(RecurringTransactionValidationError):
            validate_recurring_fields(recurring_data(amount=Decimal("0")))

    def test_invalid_frequency(self):
        """Unknown frequencies are rejected."""
        with pytest.raises(RecurringTransactionValidationError):
            validate_recurring_fields(recurring_data(frequency="hourly"))

    def test_day_of_month_out_of_range(self):
        """Day of month must be within 1-31."""
        with pytest.raises(RecurringTransactionValidationError):
            validate_recurring_fields(recurring_data(day_of_month=32))

    def test_end_date_before_start(self):
        """End date must come after start date."""
        with pytest.raises(RecurringTransactionValidationError):
            validate_recurring_fields(recurring_data(end_date=date(2024, 1, 1)))

    def test_valid_definition(self):
        """A complete definition passes."""
        validate_recurring_fields(recurring_data(day_of_month=31, total_occurrences=12))

    def test_partial_skips_required_check(self):
        """Partial validation only checks supplied fields."""
        validate_recurring_fields({"notes": "updated"}, partial=True)

    @pytest.mark.parametrize(
        "field", ["type", "amount", "description", "frequency", "start_date", "is_active"]
    )
    def test_partial_rejects_null_required_field(self, field):
        """Partial updates cannot clear a required column."""
        with pytest.raises(RecurringTransactionValidationError, match=field):
            validate_recurring_fields({field: None}, partial=True)

    def test_partial_allows_null_optional_field(self):
        """Optional columns may be cleared."""
        validate_recurring_fields({"end_date": None, "category_id": None}, partial=True)


class TestCreateRecurringTransaction:
    """Test recurring transaction creation."""

    def test_first_due_on_start_date(self, db_session, sample_user):
        """First occurrence should be due on the start date, not one interval later."""
        recurring = create_recurring_transaction(
            db_session, sample_user.id, recurring_data(day_of_month=31)
        )
        assert recurring.next_due_date == date(2024, 1, 31)
        assert recurring.current_occurrences == 0
        assert recurring.is_active is True
        assert recurring.last_processed is None

    def test_weekly_first_due_on_start_date(self, db_session, sample_user):
        """Weekly anchor does not shift the first occurrence."""
        recurring = create_recurring_transaction(
            db_session,
            sample_user.id,
            recurring_data(frequency=Frequency.weekly, start_date=date(2024, 1, 3), day_of_week=MONDAY),
        )
        assert recurring.next_due_date == date(2024, 1, 3)

    def test_rejects_invalid_definition(self, db_session, sample_user):
        """Invalid definitions never reach the database."""
        with pytest.raises(RecurringTransactionValidationError):
            create_recurring_transaction(db_session, sample_user.id, recurring_data(description="  "))
        assert db_session.query(RecurringTransaction).count() == 0


class TestUpdateRecurringTransaction:
    """Test partial updates and schedule recomputation."""

    def test_frequency_change_recomputes_from_next_due(self, db_session, sample_user, make_recurring):
        """Changing frequency moves next due date relative to the current next due date."""
        recurring = make_recurring(start_date=date(2024, 3, 10))
        updated = update_recurring_transaction(
            db_session, sample_user.id, recurring.id, {"frequency": Frequency.weekly}
        )
        assert updated.frequency == Frequency.weekly
        assert updated.next_due_date == date(2024, 3, 17)

    def test_anchor_change_recomputes(self, db_session, sample_user, make_recurring):
        """Changing day of month recomputes with the new anchor."""
        recurring = make_recurring(start_date=date(2024, 1, 31))
        updated = update_recurring_transaction(
            db_session, sample_user.id, recurring.id, {"day_of_month": 15}
        )
        assert updated.next_due_date == date(2024, 2, 15)

    def test_plain_field_change_keeps_schedule(self, db_session, sample_user, make_recurring):
        """Non-schedule fields leave next due date alone."""
        recurring = make_recurring(start_date=date(2024, 1, 31))
        updated = update_recurring_transaction(
            db_session, sample_user.id, recurring.id, {"amount": Decimal("75.00"), "description": "Fiber"}
        )
        assert updated.amount == Decimal("75.00")
        assert updated.description == "Fiber"
        assert updated.next_due_date == date(2024, 1, 31)

    def test_inactive_schedule_is_frozen(self, db_session, sample_user, make_recurring):
        """Inactive rows keep their next due date even when the schedule changes."""
        recurring = make_recurring(start_date=date(2024, 1, 31), is_active=False)
        updated = update_recurring_transaction(
            db_session, sample_user.id, recurring.id, {"frequency": Frequency.daily}
        )
        assert updated.next_due_date == date(2024, 1, 31)

    def test_start_date_change_before_first_occurrence(self, db_session, sample_user, make_recurring):
        """Moving the start date of an unprocessed row moves the first due date with it."""
        recurring = make_recurring(start_date=date(2024, 1, 31))
        updated = update_recurring_transaction(
            db_session, sample_user.id, recurring.id, {"start_date": date(2024, 3, 1)}
        )
        assert updated.next_due_date == date(2024, 3, 1)

    def test_cap_below_processed_count_rejected(self, db_session, sample_user, make_recurring):
        """Occurrence cap cannot drop below occurrences already processed."""
        recurring = make_recurring(current_occurrences=3, next_due_date=date(2024, 4, 30))
        with pytest.raises(RecurringTransactionValidationError):
            update_recurring_transaction(
                db_session, sample_user.id, recurring.id, {"total_occurrences": 2}
            )

    def test_other_owner_not_found(self, db_session, other_user, make_recurring):
        """Updates are scoped to the owner."""
        recurring = make_recurring()
        with pytest.raises(RecordNotFoundError):
            update_recurring_transaction(db_session, other_user.id, recurring.id, {"notes": "x"})


class TestDeleteRecurringTransaction:
    """Test deletion."""

    def test_keeps_ledger_entries(self, db_session, sample_user, make_recurring):
        """Deleting unlinks generated entries instead of deleting them."""
        recurring = make_recurring()
        entry = Expense(
            user_id=sample_user.id,
            type=TransactionType.expense,
            amount=Decimal("50.00"),
            description="Internet (Recurring)",
            date=date(2024, 1, 31),
            recurring_transaction_id=recurring.id,
            occurrence_index=0,
        )
        db_session.add(entry)
        db_session.commit()

        delete_recurring_transaction(db_session, sample_user.id, recurring.id)

        assert db_session.query(RecurringTransaction).count() == 0
        remaining = db_session.query(Expense).one()
        assert remaining.recurring_transaction_id is None
        assert remaining.occurrence_index is None

    def test_other_owner_cannot_delete(self, db_session, other_user, make_recurring):
        """Deletion is scoped to the owner."""
        recurring = make_recurring()
        with pytest.raises(RecordNotFoundError):
            delete_recurring_transaction(db_session, other_user.id, recurring.id)
        assert db_session.query(RecurringTransaction).count() == 1


class TestListing:
    """Test list and upcoming queries."""

    def test_list_filters_and_paginates(self, db_session, sample_user, make_recurring):
        """Should filter by type and active flag and report totals."""
        make_recurring(description="Rent")
        make_recurring(description="Salary", type=TransactionType.income)
        make_recurring(description="Gym", is_active=False)

        items, total = list_recurring_transactions(db_session, sample_user.id, page=1, limit=2)
        assert total == 3
        assert len(items) == 2

        items, total = list_recurring_transactions(db_session, sample_user.id, type="income")
        assert [r.description for r in items] == ["Salary"]

        items, total = list_recurring_transactions(db_session, sample_user.id, is_active=False)
        assert [r.description for r in items] == ["Gym"]

    def test_list_excludes_other_users(self, db_session, other_user, make_recurring):
        """Should only return the owner's rows."""
        make_recurring()
        items, total = list_recurring_transactions(db_session, other_user.id)
        assert items == []
        assert total == 0

    def test_upcoming_window(self, db_session, sample_user, make_recurring):
        """Should return active rows due within the window, soonest first."""
        today = date(2024, 3, 1)
        make_recurring(description="Later", start_date=date(2024, 3, 20))
        make_recurring(description="Soon", start_date=date(2024, 3, 5))
        make_recurring(description="Too far", start_date=date(2024, 5, 1))
        make_recurring(description="Inactive", start_date=date(2024, 3, 2), is_active=False)

        upcoming = get_upcoming_recurring_transactions(db_session, sample_user.id, days=30, today=today)
        assert [r.description for r in upcoming] == ["Soon", "Later"]


class TestCategoryOwnership:
    """Test category checks on create and update."""

    def private_category(self, db_session, owner):
        category = Category(id=str(uuid.uuid4()), name="Private", user_id=owner.id)
        db_session.add(category)
        db_session.commit()
        return category

    def test_create_with_shared_category(self, db_session, sample_user, sample_category):
        """Shared default categories can be used by anyone."""
        recurring = create_recurring_transaction(
            db_session, sample_user.id, recurring_data(category_id=sample_category.id)
        )
        assert recurring.category_id == sample_category.id

    def test_create_with_own_category(self, db_session, sample_user):
        """Users can reference their own categories."""
        category = self.private_category(db_session, sample_user)
        recurring = create_recurring_transaction(
            db_session, sample_user.id, recurring_data(category_id=category.id)
        )
        assert recurring.category_id == category.id

    def test_create_with_foreign_category(self, db_session, sample_user, other_user):
        """Another user's private category is rejected."""
        category = self.private_category(db_session, other_user)
        with pytest.raises(RecurringTransactionValidationError, match="Category not found"):
            create_recurring_transaction(
                db_session, sample_user.id, recurring_data(category_id=category.id)
            )
        assert db_session.query(RecurringTransaction).count() == 0

    def test_create_with_missing_category(self, db_session, sample_user):
        """Unknown category ids are rejected."""
        with pytest.raises(RecurringTransactionValidationError, match="Category not found"):
            create_recurring_transaction(
                db_session, sample_user.id, recurring_data(category_id="missing")
            )

    def test_update_with_foreign_category(self, db_session, sample_user, other_user, make_recurring):
        """Updates cannot move a row into another user's category."""
        recurring = make_recurring()
        category = self.private_category(db_session, other_user)

        with pytest.raises(RecurringTransactionValidationError, match="Category not found"):
            update_recurring_transaction(
                db_session, sample_user.id, recurring.id, {"category_id": category.id}
            )

        db_session.expire_all()
        assert db_session.get(RecurringTransaction, recurring.id).category_id is None

    def test_update_clears_category(self, db_session, sample_user, sample_category, make_recurring):
        """Setting the category to null unlinks it."""
        recurring = make_recurring(category_id=sample_category.id)
        updated = update_recurring_transaction(
            db_session, sample_user.id, recurring.id, {"category_id": None}
        )
        assert updated.category_id is None
