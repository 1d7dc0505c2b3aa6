"""API endpoints for recurring transaction management."""

from datetime import datetime
from zoneinfo import ZoneInfo
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.config import settings
from app.dependencies import get_current_user, get_db
from app.exceptions import RecordNotFoundError, RecurringTransactionValidationError
from app.models.user import User
from app.schemas.recurring import (
    ProcessDueResponse,
    RecurringTransactionCreate,
    RecurringTransactionList,
    RecurringTransactionResponse,
    RecurringTransactionUpdate,
)
from app.services import recurring_service
from app.services.recurring_processor import local_now, process_due_recurring_transactions

router = APIRouter(prefix="/recurring-transactions", tags=["recurring"])


@router.get("", response_model=RecurringTransactionList)
def list_recurring_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    type: Optional[str] = Query(None, pattern="^(income|expense)$"),
    is_active: Optional[bool] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the caller's recurring transactions, newest first."""
    items, total = recurring_service.list_recurring_transactions(
        db, user.id, page=page, limit=limit, type=type, is_active=is_active
    )
    return RecurringTransactionList(
        items=[RecurringTransactionResponse.model_validate(r) for r in items],
        total=total,
        page=page,
        pages=(total + limit - 1) // limit
    )


@router.get("/upcoming", response_model=List[RecurringTransactionResponse])
def get_upcoming_recurring_transactions(
    days: int = Query(30, ge=1, le=366),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Active recurring transactions due within the next N days."""
    return recurring_service.get_upcoming_recurring_transactions(db, user.id, days=days)


@router.post(
    "/process-due",
    response_model=ProcessDueResponse,
    dependencies=[Depends(get_current_user)],
)
def process_due(
    as_of: Optional[datetime] = Query(None, description="Process as if run at this earlier time"),
    db: Session = Depends(get_db)
):
    """Materialize every due recurring transaction."""
    if as_of is not None:
        if as_of.tzinfo is not None:
            as_of = as_of.astimezone(ZoneInfo(settings.scheduler_timezone)).replace(tzinfo=None)
        # Runs cover every user, so they may only replay the past
        if as_of > local_now():
            raise HTTPException(status_code=400, detail="as_of cannot be in the future")

    result = process_due_recurring_transactions(db, as_of=as_of)
    data = result.to_dict()
    return ProcessDueResponse(
        message=f"Processed {result.processed_count} recurring transactions",
        **data
    )


@router.get("/{recurring_id}", response_model=RecurringTransactionResponse)
def get_recurring_transaction(
    recurring_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a single recurring transaction."""
    try:
        return recurring_service.get_recurring_transaction(db, user.id, recurring_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=RecurringTransactionResponse, status_code=201)
def create_recurring_transaction(
    data: RecurringTransactionCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a recurring transaction. The first occurrence is due on the start date."""
    try:
        return recurring_service.create_recurring_transaction(db, user.id, data.model_dump())
    except RecurringTransactionValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{recurring_id}", response_model=RecurringTransactionResponse)
def update_recurring_transaction(
    recurring_id: str,
    update: RecurringTransactionUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update a recurring transaction."""
    try:
        return recurring_service.update_recurring_transaction(
            db, user.id, recurring_id, update.model_dump(exclude_unset=True)
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RecurringTransactionValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{recurring_id}")
def delete_recurring_transaction(
    recurring_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a recurring transaction (ledger entries it created are kept)."""
    try:
        recurring_service.delete_recurring_transaction(db, user.id, recurring_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"deleted": True}
