"""
Seed script for shared default categories.
"""

import logging
import uuid

from sqlalchemy.orm import Session

from app.database import SessionLocal, init_db
from app.models import Category

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    # Expense categories
    {"name": "Food & Dining", "color": "#ef4444", "icon": "utensils"},
    {"name": "Transportation", "color": "#3b82f6", "icon": "car"},
    {"name": "Shopping", "color": "#8b5cf6", "icon": "shopping-bag"},
    {"name": "Entertainment", "color": "#f59e0b", "icon": "film"},
    {"name": "Bills & Utilities", "color": "#10b981", "icon": "receipt"},
    {"name": "Healthcare", "color": "#ec4899", "icon": "heart"},
    {"name": "Education", "color": "#6366f1", "icon": "book-open"},
    {"name": "Travel", "color": "#14b8a6", "icon": "plane"},
    {"name": "Home & Garden", "color": "#84cc16", "icon": "home"},
    {"name": "Personal Care", "color": "#f97316", "icon": "user"},
    # Income categories
    {"name": "Salary", "color": "#059669", "icon": "briefcase"},
    {"name": "Freelance", "color": "#0891b2", "icon": "laptop"},
    {"name": "Investment", "color": "#7c3aed", "icon": "trending-up"},
    {"name": "Rental", "color": "#9333ea", "icon": "key"},
    {"name": "Gift", "color": "#db2777", "icon": "gift"},
    {"name": "Others", "color": "#6b7280", "icon": "more-horizontal"},
]


def seed_categories(db: Session) -> int:
    """Insert the shared default categories once. Returns how many were created."""
    existing_count = db.query(Category).filter(Category.user_id.is_(None)).count()
    if existing_count > 0:
        logger.info(f"Default categories already seeded ({existing_count} exist)")
        return 0

    for cat_data in DEFAULT_CATEGORIES:
        db.add(Category(id=str(uuid.uuid4()), user_id=None, **cat_data))

    db.commit()
    logger.info(f"Seeded {len(DEFAULT_CATEGORIES)} default categories")
    return len(DEFAULT_CATEGORIES)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    session = SessionLocal()
    try:
        seed_categories(session)
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
