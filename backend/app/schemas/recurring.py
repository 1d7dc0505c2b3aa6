"""Pydantic schemas for recurring transactions."""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

from app.models.expense import TransactionType
from app.models.recurring import Frequency


class RecurringTransactionBase(BaseModel):
    type: TransactionType
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: str = Field(..., min_length=1, max_length=255)
    category_id: Optional[str] = None
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None
    total_occurrences: Optional[int] = Field(None, ge=1)
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    month_of_year: Optional[int] = Field(None, ge=1, le=12)
    notes: Optional[str] = None


class RecurringTransactionCreate(RecurringTransactionBase):
    pass


class RecurringTransactionUpdate(BaseModel):
    type: Optional[TransactionType] = None
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    category_id: Optional[str] = None
    frequency: Optional[Frequency] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_occurrences: Optional[int] = Field(None, ge=1)
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    month_of_year: Optional[int] = Field(None, ge=1, le=12)
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class RecurringTransactionResponse(RecurringTransactionBase):
    id: str
    user_id: str
    next_due_date: date
    current_occurrences: int
    is_active: bool
    last_processed: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RecurringTransactionList(BaseModel):
    items: List[RecurringTransactionResponse]
    total: int
    page: int
    pages: int


class ProcessedTransaction(BaseModel):
    """One materialized occurrence."""
    recurring_id: str
    ledger_entry_id: str
    description: str
    amount: Decimal
    type: TransactionType
    next_due_date: date


class FailedTransaction(BaseModel):
    recurring_id: str
    error: str


class ProcessDueResponse(BaseModel):
    """Summary of one processing run."""
    message: str
    processed_count: int
    processed: List[ProcessedTransaction]
    deactivated: List[str] = []
    skipped: List[str] = []
    failed: List[FailedTransaction] = []
