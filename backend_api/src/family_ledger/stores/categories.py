from typing import List, Optional

from sqlalchemy import or_, update as sql_update
from sqlmodel import Session, select

from ..models import Category, Expense

DEFAULT_CATEGORIES = [
    ("Housing", "#3B82F6"),
    ("Bills", "#F59E0B"),
    ("Shopping", "#8B5CF6"),
    ("Transport", "#10B981"),
    ("Ration", "#EF4444"),
    ("Credit Card", "#EC4899"),
    ("Medical", "#6366F1"),
    ("Dining", "#14B8A6"),
    ("Travel", "#F97316"),
    ("Other", "#6B7280"),
]


class CategoryStore:
    """Family categories plus the global defaults."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, family_id: int) -> List[Category]:
        stmt = (
            select(Category)
            .where(or_(Category.family_id == family_id, Category.is_default == True))  # noqa: E712
            .order_by(Category.name, Category.id)
        )
        return list(self.session.exec(stmt).all())

    def get_visible(self, category_id: int, family_id: int) -> Optional[Category]:
        """Return the category if the family may use it (its own or a default)."""
        stmt = select(Category).where(
            Category.id == category_id,
            or_(Category.family_id == family_id, Category.is_default == True),  # noqa: E712
        )
        return self.session.exec(stmt).first()

    def create(self, family_id: int, name: str, color: str) -> Category:
        category = Category(family_id=family_id, name=name, color=color, is_default=False)
        self.session.add(category)
        self.session.commit()
        self.session.refresh(category)
        return category

    def _get_custom(self, category_id: int, family_id: int) -> Optional[Category]:
        stmt = select(Category).where(
            Category.id == category_id,
            Category.family_id == family_id,
            Category.is_default == False,  # noqa: E712
        )
        return self.session.exec(stmt).first()

    def update(
        self, category_id: int, family_id: int, name: Optional[str] = None, color: Optional[str] = None
    ) -> Optional[Category]:
        """Update a custom category. Defaults never match and yield None."""
        if name is None and color is None:
            return None
        category = self._get_custom(category_id, family_id)
        if category is None:
            return None
        if name is not None:
            category.name = name
        if color is not None:
            category.color = color
        self.session.add(category)
        self.session.commit()
        self.session.refresh(category)
        return category

    def delete(self, category_id: int, family_id: int) -> Optional[Category]:
        """Delete a custom category; its expenses become uncategorized."""
        category = self._get_custom(category_id, family_id)
        if category is None:
            return None
        self.session.execute(
            sql_update(Expense).where(Expense.category_id == category_id).values(category_id=None)
        )
        self.session.delete(category)
        self.session.commit()
        return category

    def ensure_defaults(self) -> int:
        """Insert any missing default category. Returns how many were created."""
        existing = {
            c.name.lower()
            for c in self.session.exec(select(Category).where(Category.is_default == True)).all()  # noqa: E712
        }
        created = 0
        for name, color in DEFAULT_CATEGORIES:
            if name.lower() not in existing:
                self.session.add(Category(family_id=None, name=name, color=color, is_default=True))
                created += 1
        if created:
            self.session.commit()
        return created
