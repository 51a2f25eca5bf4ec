"""
Ledger stores: expenses, income entries and future (EMI) commitments.

The three record kinds share one access pattern. Every lookup is scoped by
family id so a guessed id from another family never matches. Authorship is
not checked here; callers compare record.user_id with the requester.
"""

from datetime import date as Date
from decimal import Decimal
from typing import Any, ClassVar, Dict, FrozenSet, List, Optional, Type

from sqlalchemy import Numeric, String, cast, func, or_
from sqlmodel import Session, SQLModel, select

from ..models import Category, Expense, FutureExpense, Income, User


def month_of(day: Date) -> str:
    """YYYY-MM of a date."""
    return day.strftime("%Y-%m")


def amount_text(column, dialect_name: str):
    """SQL expression rendering a money column with two decimals, e.g. 25.50."""
    if dialect_name == "sqlite":
        # SQLite keeps NUMERIC as REAL, so 25.50 would read back as 25.5.
        return func.printf("%.2f", column)
    return cast(cast(column, Numeric(12, 2)), String)


class LedgerStore:
    """Family-scoped CRUD shared by the ledger record kinds."""

    model: ClassVar[Type[SQLModel]]
    updatable: ClassVar[FrozenSet[str]] = frozenset()
    nullable: ClassVar[FrozenSet[str]] = frozenset({"note"})

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, **fields: Any):
        record = self.model(**fields)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def get_by_id(self, record_id: int, family_id: int):
        model = self.model
        stmt = select(model).where(model.id == record_id, model.family_id == family_id)
        return self.session.exec(stmt).first()

    def changes(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Keep the updatable keys; None only clears nullable columns."""
        return {
            key: value
            for key, value in fields.items()
            if key in self.updatable and (value is not None or key in self.nullable)
        }

    def update(self, record_id: int, family_id: int, fields: Dict[str, Any]):
        """
        Apply a partial update.

        Only keys present in ``fields`` are written. An empty update returns
        None without touching storage.
        """
        changes = self.changes(fields)
        if not changes:
            return None
        record = self.get_by_id(record_id, family_id)
        if record is None:
            return None
        for key, value in changes.items():
            setattr(record, key, value)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def delete(self, record_id: int, family_id: int):
        record = self.get_by_id(record_id, family_id)
        if record is None:
            return None
        self.session.delete(record)
        self.session.commit()
        return record


class ExpenseStore(LedgerStore):
    model = Expense
    updatable = frozenset({"category_id", "amount", "date", "note"})

    def list(
        self,
        family_id: int,
        user_id: Optional[int] = None,
        category_id: Optional[int] = None,
        start_date: Optional[Date] = None,
        end_date: Optional[Date] = None,
        search: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """List a family's expenses, newest first. Unset filters are not applied."""
        stmt = (
            select(Expense, User.name, Category.name, Category.color)
            .join(User, User.id == Expense.user_id)
            .outerjoin(Category, Category.id == Expense.category_id)
            .where(Expense.family_id == family_id)
        )
        if user_id is not None:
            stmt = stmt.where(Expense.user_id == user_id)
        if category_id is not None:
            stmt = stmt.where(Expense.category_id == category_id)
        if start_date is not None:
            stmt = stmt.where(Expense.date >= start_date)
        if end_date is not None:
            stmt = stmt.where(Expense.date <= end_date)
        if search:
            pattern = f"%{search}%"
            amount = amount_text(Expense.amount, self.session.get_bind().dialect.name)
            stmt = stmt.where(or_(Expense.note.ilike(pattern), amount.ilike(pattern)))
        stmt = stmt.order_by(Expense.date.desc(), Expense.created_at.desc(), Expense.id.desc())

        return [
            {
                **expense.model_dump(),
                "user_name": user_name,
                "category_name": category_name,
                "category_color": category_color,
            }
            for expense, user_name, category_name, category_color in self.session.exec(stmt).all()
        ]


class IncomeStore(LedgerStore):
    model = Income
    updatable = frozenset({"source", "amount", "month", "note"})

    def list(
        self,
        family_id: int,
        month: Optional[str] = None,
        source: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        stmt = (
            select(Income, User.name)
            .join(User, User.id == Income.user_id)
            .where(Income.family_id == family_id)
        )
        if month:
            stmt = stmt.where(Income.month == month)
        if source:
            stmt = stmt.where(Income.source.ilike(f"%{source}%"))
        if user_id is not None:
            stmt = stmt.where(Income.user_id == user_id)
        stmt = stmt.order_by(Income.month.desc(), Income.created_at.desc(), Income.id.desc())

        return [
            {**income.model_dump(), "user_name": user_name}
            for income, user_name in self.session.exec(stmt).all()
        ]


class FutureExpenseStore(LedgerStore):
    model = FutureExpense
    updatable = frozenset({"title", "total_amount", "monthly_amount", "start_month", "end_month"})

    def list(
        self,
        family_id: int,
        user_id: Optional[int] = None,
        active_only: bool = False,
        today: Optional[Date] = None,
    ) -> List[Dict[str, Any]]:
        """List commitments; active ones end in the current month or later."""
        stmt = (
            select(FutureExpense, User.name)
            .join(User, User.id == FutureExpense.user_id)
            .where(FutureExpense.family_id == family_id)
        )
        if user_id is not None:
            stmt = stmt.where(FutureExpense.user_id == user_id)
        if active_only:
            stmt = stmt.where(FutureExpense.end_month >= month_of(today or Date.today()))
        stmt = stmt.order_by(
            FutureExpense.start_month.desc(), FutureExpense.created_at.desc(), FutureExpense.id.desc()
        )

        return [
            {**future.model_dump(), "user_name": user_name}
            for future, user_name in self.session.exec(stmt).all()
        ]

    def total_active_monthly(self, family_id: int, today: Optional[Date] = None) -> Decimal:
        """Sum of monthly amounts over the family's active commitments."""
        stmt = select(func.coalesce(func.sum(FutureExpense.monthly_amount), 0)).where(
            FutureExpense.family_id == family_id,
            FutureExpense.end_month >= month_of(today or Date.today()),
        )
        return Decimal(str(self.session.exec(stmt).one()))
