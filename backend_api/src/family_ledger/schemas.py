import re
from datetime import date as Date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .models import Role

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"
COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


def _strip(v: Optional[str]) -> Optional[str]:
    return v.strip() if isinstance(v, str) else v


def _validate_month(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    if not MONTH_PATTERN.match(v):
        raise ValueError("month must be in YYYY-MM format")
    return v


def _positive_amount(v: Optional[Decimal]) -> Optional[Decimal]:
    if v is None:
        return v
    if v < Decimal("0.01"):
        raise ValueError("Amount must be positive")
    return v


# =========================
# Auth and users
# =========================
class RegisterRequest(BaseModel):
    """Registration payload."""
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    password: str = Field(..., min_length=6, max_length=100)

    @field_validator("name", "username", mode="before")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)


class LoginRequest(BaseModel):
    """Login with an email or a username in `login` (or legacy `email`)."""
    login: Optional[str] = None
    email: Optional[str] = None
    password: str = Field(..., min_length=1)

    @field_validator("login", "email", mode="before")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)

    @property
    def identifier(self) -> str:
        return self.login or self.email or ""


class UserRead(BaseModel):
    """Public view of a user."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    username: Optional[str] = None


class AuthResponse(BaseModel):
    user: UserRead
    token: str


class ProfileUpdate(BaseModel):
    """Profile update payload (partial allowed)."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    username: Optional[str] = Field(None, min_length=3, max_length=50, pattern=USERNAME_PATTERN)

    @field_validator("name", "username", mode="before")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        v = _strip(v)
        return v or None


class ProfileResponse(BaseModel):
    message: str
    user: UserRead


class PasswordUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=100)


class PasswordResetResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    message: str
    temporary_password: str
    user_name: str
    user_email: str


class FamilyUserRead(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime
    is_current_user: bool


class MessageResponse(BaseModel):
    message: str


# =========================
# Families
# =========================
class FamilyCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)

    @field_validator("name", mode="before")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)


class FamilyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_by: int
    created_at: datetime


class FamilyWithRole(FamilyRead):
    role: Role


class MemberRead(BaseModel):
    id: int
    name: str
    email: str
    role: Role
    joined_at: datetime


class FamilyDetail(FamilyWithRole):
    members: List[MemberRead]


class MemberAdd(BaseModel):
    """Add a member by email; `name` is required when the email is unknown."""
    email: EmailStr
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    role: Role = Role.MEMBER

    @field_validator("name", mode="before")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)


class MemberAdded(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    id: int
    name: str
    email: str
    role: Role
    is_new_user: bool
    temporary_password: Optional[str] = None


# =========================
# Categories
# =========================
class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    color: str = Field(..., pattern=COLOR_PATTERN)

    @field_validator("name", mode="before")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)


class CategoryUpdate(BaseModel):
    """Category update payload (partial allowed)."""
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    color: Optional[str] = Field(None, pattern=COLOR_PATTERN)

    @field_validator("name", mode="before")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)


class CategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    family_id: Optional[int]
    name: str
    color: str
    is_default: bool


# =========================
# Expenses
# =========================
class ExpenseCreate(BaseModel):
    family_id: int
    category_id: int
    amount: Decimal = Field(..., max_digits=12, decimal_places=2)
    date: Date = Field(..., description="Expense date in ISO format (YYYY-MM-DD).")
    note: Optional[str] = Field(None, max_length=500)

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _positive_amount(v)


class ExpenseUpdate(BaseModel):
    """Update expense payload (partial allowed)."""
    category_id: Optional[int] = None
    amount: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2)
    date: Optional[Date] = None
    note: Optional[str] = Field(None, max_length=500)

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _positive_amount(v)


class ExpenseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    family_id: int
    user_id: int
    category_id: Optional[int]
    amount: float
    date: Date
    note: Optional[str]
    created_at: datetime


class ExpenseListItem(ExpenseRead):
    user_name: str
    category_name: Optional[str] = None
    category_color: Optional[str] = None


# =========================
# Income
# =========================
class IncomeCreate(BaseModel):
    source: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., max_digits=12, decimal_places=2)
    month: str = Field(..., description="Month in YYYY-MM format.")
    note: Optional[str] = Field(None, max_length=500)

    @field_validator("source", mode="before")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _positive_amount(v)

    @field_validator("month")
    @classmethod
    def check_month(cls, v: Optional[str]) -> Optional[str]:
        return _validate_month(v)


class IncomeUpdate(BaseModel):
    """Update income payload (partial allowed)."""
    source: Optional[str] = Field(None, min_length=1, max_length=100)
    amount: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2)
    month: Optional[str] = None
    note: Optional[str] = Field(None, max_length=500)

    @field_validator("source", mode="before")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _positive_amount(v)

    @field_validator("month")
    @classmethod
    def check_month(cls, v: Optional[str]) -> Optional[str]:
        return _validate_month(v)


class IncomeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    family_id: int
    user_id: int
    source: str
    amount: float
    month: str
    note: Optional[str]
    created_at: datetime


class IncomeListItem(IncomeRead):
    user_name: str


# =========================
# Future expenses (EMIs)
# =========================
class FutureExpenseCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    total_amount: Decimal = Field(..., max_digits=12, decimal_places=2)
    monthly_amount: Decimal = Field(..., max_digits=12, decimal_places=2)
    start_month: str
    end_month: str

    @field_validator("title", mode="before")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)

    @field_validator("total_amount", "monthly_amount")
    @classmethod
    def check_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _positive_amount(v)

    @field_validator("start_month", "end_month")
    @classmethod
    def check_month(cls, v: Optional[str]) -> Optional[str]:
        return _validate_month(v)

    @model_validator(mode="after")
    def check_period(self) -> "FutureExpenseCreate":
        if self.end_month < self.start_month:
            raise ValueError("end_month cannot be before start_month")
        return self


class FutureExpenseUpdate(BaseModel):
    """Update future expense payload (partial allowed)."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    total_amount: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2)
    monthly_amount: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2)
    start_month: Optional[str] = None
    end_month: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)

    @field_validator("total_amount", "monthly_amount")
    @classmethod
    def check_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _positive_amount(v)

    @field_validator("start_month", "end_month")
    @classmethod
    def check_month(cls, v: Optional[str]) -> Optional[str]:
        return _validate_month(v)


class FutureExpenseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    family_id: int
    user_id: int
    title: str
    total_amount: float
    monthly_amount: float
    start_month: str
    end_month: str
    created_at: datetime


class FutureExpenseListItem(FutureExpenseRead):
    user_name: str


class FutureExpenseTotal(BaseModel):
    total: float


# =========================
# Analytics
# =========================
class MemberTotal(BaseModel):
    id: int
    name: str
    total: float


class CategoryTotal(BaseModel):
    id: int
    name: str
    color: str
    total: float


class MonthTotal(BaseModel):
    year: int
    month: int
    total: float


class AnalyticsReport(BaseModel):
    """Expense and income figures for a family over a date range."""
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    total: float
    total_income: float
    net_balance: float
    expense_percentage: float
    per_member: List[MemberTotal]
    by_category: List[CategoryTotal]
    monthly_trends: List[MonthTotal]
