"""Service for periodic spending reports and budget alerts."""

import calendar
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models.expense import Expense, TransactionType
from app.models.user import User
from app.stores import ExpenseStore

TOP_CATEGORY_LIMIT = 5


def get_users_for_notification(db: Session, preference: str) -> List[User]:
    """Active users with email alerts and the given preference flag enabled."""
    return db.query(User).filter(
        User.is_active == True,
        User.email_alerts == True,
        getattr(User, preference) == True
    ).order_by(User.email).all()


def _month_bounds(today: date) -> tuple:
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def summarize_entries(entries: List[Expense]) -> Dict[str, Any]:
    """Totals and top spending categories for a list of ledger entries."""
    total_expenses = Decimal("0")
    total_income = Decimal("0")
    category_totals: Dict[str, Decimal] = {}

    for entry in entries:
        amount = Decimal(entry.amount or 0)
        if entry.type == TransactionType.income:
            total_income += amount
            continue
        total_expenses += amount
        name = entry.category.name if entry.category else "Uncategorized"
        category_totals[name] = category_totals.get(name, Decimal("0")) + amount

    top_categories = sorted(
        ({"name": name, "amount": float(amount)} for name, amount in category_totals.items()),
        key=lambda c: c["amount"],
        reverse=True
    )[:TOP_CATEGORY_LIMIT]

    return {
        "total_expenses": float(total_expenses),
        "total_income": float(total_income),
        "net_amount": float(total_income - total_expenses),
        "top_categories": top_categories,
        "entry_count": len(entries),
    }


def check_budget_alert(
    db: Session,
    user: User,
    today: date,
    threshold: int = 80
) -> Optional[Dict[str, Any]]:
    """
    Compare month-to-date spending with the user's monthly budget.

    Returns an alert payload when spending reaches threshold percent of
    the budget, None when under it or when no budget is set.
    """
    monthly_budget = Decimal(user.monthly_budget or 0)
    if monthly_budget <= 0:
        return None

    start, end = _month_bounds(today)
    entries = ExpenseStore(db).find_in_period(user.id, start, end)
    total_spent = sum(
        (Decimal(e.amount) for e in entries if e.type == TransactionType.expense),
        Decimal("0")
    )
    percentage = total_spent / monthly_budget * 100

    if percentage < threshold:
        return None

    return {
        "user_id": user.id,
        "email": user.email,
        "name": user.full_name,
        "budget_name": "Monthly Budget",
        "total_spent": float(total_spent),
        "monthly_budget": float(monthly_budget),
        "percentage": round(float(percentage)),
    }


def build_weekly_report(db: Session, user: User, today: date) -> Dict[str, Any]:
    """Report covering the last 7 days up to and including today."""
    start = today - timedelta(days=7)
    entries = ExpenseStore(db).find_in_period(user.id, start, today)

    report = summarize_entries(entries)
    report.update({
        "user_id": user.id,
        "email": user.email,
        "name": user.full_name,
        "week_range": f"{start:%b} {start.day} - {today:%b} {today.day}, {today.year}",
    })
    return report


def build_monthly_report(db: Session, user: User, today: date) -> Dict[str, Any]:
    """Report covering the calendar month that contains today."""
    start, end = _month_bounds(today)
    entries = ExpenseStore(db).find_in_period(user.id, start, end)

    report = summarize_entries(entries)
    monthly_goal = float(user.monthly_goal) if user.monthly_goal else None
    goal_progress = (abs(report["net_amount"]) / monthly_goal * 100) if monthly_goal else 0.0
    report.update({
        "user_id": user.id,
        "email": user.email,
        "name": user.full_name,
        "month_name": f"{today:%B %Y}",
        "monthly_goal": monthly_goal,
        "goal_progress": goal_progress,
    })
    return report
