"""
FastAPI dependencies.
"""

from typing import Generator, Optional
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session
from app.database import SessionLocal
from app.models.user import User
from app.services.scheduler_service import SchedulerService


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database sessions.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the calling user.

    Token verification happens in front of this service; it forwards the
    authenticated user id in the X-User-Id header.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = db.query(User).filter(User.id == x_user_id, User.is_active == True).first()
    if not user:
        raise HTTPException(status_code=401, detail="Unknown or inactive user")
    return user


def get_scheduler(request: Request) -> SchedulerService:
    """The scheduler created for this application instance."""
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Scheduler is not configured")
    return scheduler
