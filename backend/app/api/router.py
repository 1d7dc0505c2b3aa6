"""
Main API router.
"""

from fastapi import APIRouter
from app.api import categories, expenses, recurring, scheduler

api_router = APIRouter()

api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(expenses.router)
api_router.include_router(recurring.router)
api_router.include_router(scheduler.router)
