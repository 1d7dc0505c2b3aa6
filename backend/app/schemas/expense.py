"""
Ledger entry schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

from app.models.expense import TransactionType


class ExpenseBase(BaseModel):
    type: TransactionType = TransactionType.expense
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: str = Field(..., min_length=1, max_length=255)
    notes: Optional[str] = None
    date: date
    category_id: Optional[str] = None


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseResponse(ExpenseBase):
    id: str
    user_id: str
    recurring_transaction_id: Optional[str] = None
    occurrence_index: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ExpenseListResponse(BaseModel):
    items: list[ExpenseResponse]
    total: int
    page: int
    pages: int
