"""
Ledger entry API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from app.dependencies import get_current_user, get_db
from app.models.category import Category
from app.models.user import User
from app.schemas.expense import ExpenseCreate, ExpenseListResponse, ExpenseResponse
from app.stores import ExpenseStore

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.get("", response_model=ExpenseListResponse)
def list_expenses(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    type: Optional[str] = Query(None, pattern="^(income|expense)$"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List ledger entries with filtering and pagination"""
    items, total = ExpenseStore(db).find_by_owner(
        user.id,
        start_date=start_date,
        end_date=end_date,
        type=type,
        offset=(page - 1) * per_page,
        limit=per_page,
    )
    return ExpenseListResponse(
        items=[ExpenseResponse.model_validate(e) for e in items],
        total=total,
        page=page,
        pages=(total + per_page - 1) // per_page
    )


@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    expense_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a single ledger entry"""
    expense = ExpenseStore(db).get(expense_id, user_id=user.id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


@router.post("", response_model=ExpenseResponse, status_code=201)
def create_expense(
    data: ExpenseCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Record an expense or income entry"""
    if data.category_id:
        category = db.query(Category).filter(Category.id == data.category_id).first()
        if not category or category.user_id not in (None, user.id):
            raise HTTPException(status_code=404, detail="Category not found")

    expense = ExpenseStore(db).create(user_id=user.id, **data.model_dump())
    db.commit()
    db.refresh(expense)
    return expense


@router.delete("/{expense_id}")
def delete_expense(
    expense_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a ledger entry"""
    store = ExpenseStore(db)
    expense = store.get(expense_id, user_id=user.id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")

    store.delete(expense)
    db.commit()
    return {"deleted": True}
