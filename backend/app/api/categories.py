"""
Category API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.dependencies import get_current_user, get_db
from app.models import Category, User
from app.schemas.category import CategoryCreate, CategoryResponse, CategoryList

router = APIRouter()


@router.get("", response_model=CategoryList)
def list_categories(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List shared default categories and the caller's own categories."""
    categories = db.query(Category).filter(
        or_(Category.user_id.is_(None), Category.user_id == user.id)
    ).order_by(Category.name).all()

    return CategoryList(
        items=[CategoryResponse.model_validate(c) for c in categories],
        total=len(categories)
    )


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(
    category: CategoryCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a category owned by the caller."""
    db_category = Category(
        name=category.name,
        color=category.color,
        icon=category.icon,
        user_id=user.id,
    )
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category
