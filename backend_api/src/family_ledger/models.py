from datetime import date as Date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def created_at_field():
    """Creation timestamp stored in a timezone-aware column."""
    return Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class Role(str, Enum):
    """Role of a user inside one family."""

    ADMIN = "admin"
    MEMBER = "member"


# =========================
# Database Models (SQLModel)
# =========================
class User(SQLModel, table=True):
    """Registered user. The password hash never leaves the credential store."""

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    email: str = Field(max_length=255, unique=True, index=True)
    username: Optional[str] = Field(default=None, max_length=50, unique=True, index=True)
    password_hash: str = Field(max_length=255)
    created_at: datetime = created_at_field()


class Family(SQLModel, table=True):
    """Tenant boundary for all ledger and category data."""

    __tablename__ = "families"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    created_by: int = Field(foreign_key="users.id", index=True)
    created_at: datetime = created_at_field()


class FamilyMember(SQLModel, table=True):
    """Membership of a user in a family, carrying the role."""

    __tablename__ = "family_members"
    __table_args__ = (UniqueConstraint("family_id", "user_id", name="uq_family_member"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    family_id: int = Field(foreign_key="families.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    role: str = Field(default=Role.MEMBER.value, max_length=10)
    created_at: datetime = created_at_field()


class Category(SQLModel, table=True):
    """Expense category.

    Default categories have no family and cannot be edited or deleted.
    """

    __tablename__ = "categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    family_id: Optional[int] = Field(default=None, foreign_key="families.id", index=True)
    name: str = Field(max_length=50)
    color: str = Field(default="#6B7280", max_length=7)
    is_default: bool = Field(default=False, index=True)
    created_at: datetime = created_at_field()


class Expense(SQLModel, table=True):
    """Money spent by a family member on a given day."""

    __tablename__ = "expenses"

    id: Optional[int] = Field(default=None, primary_key=True)
    family_id: int = Field(foreign_key="families.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    category_id: Optional[int] = Field(default=None, foreign_key="categories.id", index=True)
    amount: Decimal = Field(max_digits=12, decimal_places=2)
    date: Date = Field(index=True)
    note: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = created_at_field()


class Income(SQLModel, table=True):
    """Income received by a family member for a month (YYYY-MM)."""

    __tablename__ = "income"

    id: Optional[int] = Field(default=None, primary_key=True)
    family_id: int = Field(foreign_key="families.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    source: str = Field(max_length=100)
    amount: Decimal = Field(max_digits=12, decimal_places=2)
    month: str = Field(max_length=7, index=True)  # YYYY-MM
    note: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = created_at_field()


class FutureExpense(SQLModel, table=True):
    """Recurring commitment (EMI) paid monthly between two months, inclusive."""

    __tablename__ = "future_expenses"

    id: Optional[int] = Field(default=None, primary_key=True)
    family_id: int = Field(foreign_key="families.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    title: str = Field(max_length=200)
    total_amount: Decimal = Field(max_digits=12, decimal_places=2)
    monthly_amount: Decimal = Field(max_digits=12, decimal_places=2)
    start_month: str = Field(max_length=7)  # YYYY-MM
    end_month: str = Field(max_length=7, index=True)  # YYYY-MM
    created_at: datetime = created_at_field()
