"""
Pydantic schemas package.
"""

from app.schemas.category import (
    CategoryBase,
    CategoryCreate,
    CategoryResponse,
    CategoryList,
)
from app.schemas.expense import (
    ExpenseBase,
    ExpenseCreate,
    ExpenseResponse,
    ExpenseListResponse,
)
from app.schemas.recurring import (
    RecurringTransactionBase,
    RecurringTransactionCreate,
    RecurringTransactionUpdate,
    RecurringTransactionResponse,
    RecurringTransactionList,
    ProcessDueResponse,
)
from app.schemas.scheduler import (
    JobStatus,
    SchedulerStatusResponse,
    SchedulerActionResponse,
    JobTriggerResponse,
)

__all__ = [
    "CategoryBase",
    "CategoryCreate",
    "CategoryResponse",
    "CategoryList",
    "ExpenseBase",
    "ExpenseCreate",
    "ExpenseResponse",
    "ExpenseListResponse",
    "RecurringTransactionBase",
    "RecurringTransactionCreate",
    "RecurringTransactionUpdate",
    "RecurringTransactionResponse",
    "RecurringTransactionList",
    "ProcessDueResponse",
    "JobStatus",
    "SchedulerStatusResponse",
    "SchedulerActionResponse",
    "JobTriggerResponse",
]
