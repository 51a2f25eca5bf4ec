"""
Family analytics: totals, breakdowns and trends over a date range.

Expenses are selected by their exact date. Income entries only carry a month,
so an income counts when its month lies between the month of start_date and
the month of end_date, inclusive.
"""

from datetime import date as Date
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import extract, func
from sqlmodel import Session, select

from .models import Category, Expense, Income, User
from .schemas import AnalyticsReport, CategoryTotal, MemberTotal, MonthTotal
from .stores.ledger import month_of


def _as_decimal(value: Any) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


class AnalyticsService:
    """Computes AnalyticsReport figures for one family."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def compute(
        self,
        family_id: int,
        start_date: Date,
        end_date: Date,
        user_id: Optional[int] = None,
    ) -> AnalyticsReport:
        expense_filters: List[Any] = [
            Expense.family_id == family_id,
            Expense.date >= start_date,
            Expense.date <= end_date,
        ]
        income_filters: List[Any] = [
            Income.family_id == family_id,
            Income.month >= month_of(start_date),
            Income.month <= month_of(end_date),
        ]
        if user_id is not None:
            expense_filters.append(Expense.user_id == user_id)
            income_filters.append(Income.user_id == user_id)

        total_expense = _as_decimal(
            self.session.exec(
                select(func.coalesce(func.sum(Expense.amount), 0)).where(*expense_filters)
            ).one()
        )
        total_income = _as_decimal(
            self.session.exec(
                select(func.coalesce(func.sum(Income.amount), 0)).where(*income_filters)
            ).one()
        )

        net_balance = total_income - total_expense
        expense_percentage = (
            float(total_expense) / float(total_income) * 100 if total_income > 0 else 0.0
        )

        return AnalyticsReport(
            total=float(total_expense),
            total_income=float(total_income),
            net_balance=float(net_balance),
            expense_percentage=expense_percentage,
            per_member=self._per_member(expense_filters),
            by_category=self._by_category(expense_filters),
            monthly_trends=self._monthly_trends(expense_filters),
        )

    def _per_member(self, filters: List[Any]) -> List[MemberTotal]:
        total = func.sum(Expense.amount).label("total")
        stmt = (
            select(User.id, User.name, total)
            .join(Expense, Expense.user_id == User.id)
            .where(*filters)
            .group_by(User.id, User.name)
            .order_by(total.desc(), User.id)
        )
        return [
            MemberTotal(id=uid, name=name, total=float(_as_decimal(amount)))
            for uid, name, amount in self.session.exec(stmt).all()
        ]

    def _by_category(self, filters: List[Any]) -> List[CategoryTotal]:
        total = func.sum(Expense.amount).label("total")
        stmt = (
            select(Category.id, Category.name, Category.color, total)
            .join(Expense, Expense.category_id == Category.id)
            .where(*filters)
            .group_by(Category.id, Category.name, Category.color)
            .order_by(total.desc(), Category.id)
        )
        return [
            CategoryTotal(id=cid, name=name, color=color, total=float(_as_decimal(amount)))
            for cid, name, color, amount in self.session.exec(stmt).all()
        ]

    def _monthly_trends(self, filters: List[Any]) -> List[MonthTotal]:
        year = extract("year", Expense.date).label("year")
        month = extract("month", Expense.date).label("month")
        stmt = (
            select(year, month, func.sum(Expense.amount))
            .where(*filters)
            .group_by(year, month)
            .order_by(year, month)
        )
        return [
            MonthTotal(year=int(y), month=int(m), total=float(_as_decimal(amount)))
            for y, m, amount in self.session.exec(stmt).all()
        ]
