"""
Request dependencies: settings, stores and the authorization gate.

The gate is a chain of independent predicates:
  bearer token -> authenticated user
  authenticated user + family id -> membership (any role)
  membership -> admin membership
Ledger ownership is a separate check (ensure_author) applied by the routes
that mutate a record.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from .analytics import AnalyticsService
from .config import Settings
from .db import get_session
from .models import FamilyMember, Role, User
from .security import InvalidTokenError, decode_access_token
from .stores.categories import CategoryStore
from .stores.families import FamilyStore
from .stores.ledger import ExpenseStore, FutureExpenseStore, IncomeStore
from .stores.users import UserStore

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_user_store(session: Session = Depends(get_session)) -> UserStore:
    return UserStore(session)


def get_family_store(session: Session = Depends(get_session)) -> FamilyStore:
    return FamilyStore(session)


def get_category_store(session: Session = Depends(get_session)) -> CategoryStore:
    return CategoryStore(session)


def get_expense_store(session: Session = Depends(get_session)) -> ExpenseStore:
    return ExpenseStore(session)


def get_income_store(session: Session = Depends(get_session)) -> IncomeStore:
    return IncomeStore(session)


def get_future_expense_store(session: Session = Depends(get_session)) -> FutureExpenseStore:
    return FutureExpenseStore(session)


def get_analytics_service(session: Session = Depends(get_session)) -> AnalyticsService:
    return AnalyticsService(session)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# PUBLIC_INTERFACE
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
    users: UserStore = Depends(get_user_store),
) -> User:
    """Resolve the bearer token to a user that still exists."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("No authentication token provided")
    try:
        payload = decode_access_token(credentials.credentials, settings)
    except InvalidTokenError:
        raise _unauthorized("Invalid token")
    user = users.find_by_id(payload["id"])
    if user is None:
        raise _unauthorized("Invalid token")
    return user


def check_membership(families: FamilyStore, family_id: int, user: User) -> FamilyMember:
    membership = families.get_membership(family_id, user.id)
    if membership is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. You are not a member of this family.",
        )
    return membership


# PUBLIC_INTERFACE
def require_member(
    family_id: int,
    user: User = Depends(get_current_user),
    families: FamilyStore = Depends(get_family_store),
) -> FamilyMember:
    """Caller must belong to the family named by the `family_id` path parameter."""
    return check_membership(families, family_id, user)


# PUBLIC_INTERFACE
def require_admin(membership: FamilyMember = Depends(require_member)) -> FamilyMember:
    """Caller must be an admin of the family."""
    if membership.role != Role.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only family admins can perform this action",
        )
    return membership


def ensure_author(record, user: User, noun: str, action: str) -> None:
    """Only the author of a ledger entry may change it."""
    if record.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not authorized to {action} this {noun}",
        )


def require_found(record, noun: str):
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{noun} not found")
    return record
