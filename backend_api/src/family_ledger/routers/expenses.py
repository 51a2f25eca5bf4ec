from datetime import date as Date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..deps import (
    check_membership,
    ensure_author,
    get_category_store,
    get_current_user,
    get_expense_store,
    get_family_store,
    require_found,
    require_member,
)
from ..models import FamilyMember, User
from ..schemas import ExpenseCreate, ExpenseListItem, ExpenseRead, ExpenseUpdate, MessageResponse
from ..stores.categories import CategoryStore
from ..stores.families import FamilyStore
from ..stores.ledger import ExpenseStore

expenses_router = APIRouter(prefix="/expenses", tags=["expenses"])


def _check_category(categories: CategoryStore, category_id: int, family_id: int) -> None:
    if categories.get_visible(category_id, family_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")


# PUBLIC_INTERFACE
@expenses_router.post(
    "",
    response_model=ExpenseRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create expense",
    description="Record an expense in the family given by `family_id`; the caller is its author.",
)
def create_expense(
    payload: ExpenseCreate,
    user: User = Depends(get_current_user),
    families: FamilyStore = Depends(get_family_store),
    expenses: ExpenseStore = Depends(get_expense_store),
    categories: CategoryStore = Depends(get_category_store),
) -> ExpenseRead:
    """Create a new expense."""
    check_membership(families, payload.family_id, user)
    _check_category(categories, payload.category_id, payload.family_id)
    expense = expenses.create(
        family_id=payload.family_id,
        user_id=user.id,
        category_id=payload.category_id,
        amount=payload.amount,
        date=payload.date,
        note=payload.note,
    )
    return ExpenseRead.model_validate(expense)


# PUBLIC_INTERFACE
@expenses_router.get(
    "/{family_id}",
    response_model=List[ExpenseListItem],
    summary="List expenses",
    description="Newest first. All filters are optional and combine with AND.",
)
def list_expenses(
    family_id: int,
    user_id: Optional[int] = Query(None, alias="userId"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    start_date: Optional[Date] = Query(None, alias="startDate"),
    end_date: Optional[Date] = Query(None, alias="endDate"),
    search: Optional[str] = Query(None, description="Matches the note or the amount"),
    membership: FamilyMember = Depends(require_member),
    expenses: ExpenseStore = Depends(get_expense_store),
) -> List[ExpenseListItem]:
    """List the family's expenses."""
    rows = expenses.list(
        family_id,
        user_id=user_id,
        category_id=category_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return [ExpenseListItem(**row) for row in rows]


# PUBLIC_INTERFACE
@expenses_router.get("/{family_id}/{expense_id}", response_model=ExpenseRead, summary="Get expense")
def get_expense(
    family_id: int,
    expense_id: int,
    membership: FamilyMember = Depends(require_member),
    expenses: ExpenseStore = Depends(get_expense_store),
) -> ExpenseRead:
    """Fetch one expense of the family."""
    expense = require_found(expenses.get_by_id(expense_id, family_id), "Expense")
    return ExpenseRead.model_validate(expense)


# PUBLIC_INTERFACE
@expenses_router.put("/{family_id}/{expense_id}", response_model=ExpenseRead, summary="Update expense")
def update_expense(
    family_id: int,
    expense_id: int,
    payload: ExpenseUpdate,
    user: User = Depends(get_current_user),
    membership: FamilyMember = Depends(require_member),
    expenses: ExpenseStore = Depends(get_expense_store),
    categories: CategoryStore = Depends(get_category_store),
) -> ExpenseRead:
    """Update an expense. Only its author may do this."""
    existing = require_found(expenses.get_by_id(expense_id, family_id), "Expense")
    ensure_author(existing, user, "expense", "update")

    changes = expenses.changes(payload.model_dump(exclude_unset=True))
    if changes.get("category_id") is not None:
        _check_category(categories, changes["category_id"], family_id)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    expense = require_found(expenses.update(expense_id, family_id, changes), "Expense")
    return ExpenseRead.model_validate(expense)


# PUBLIC_INTERFACE
@expenses_router.delete("/{family_id}/{expense_id}", response_model=MessageResponse, summary="Delete expense")
def delete_expense(
    family_id: int,
    expense_id: int,
    user: User = Depends(get_current_user),
    membership: FamilyMember = Depends(require_member),
    expenses: ExpenseStore = Depends(get_expense_store),
) -> MessageResponse:
    """Delete an expense. Only its author may do this."""
    existing = require_found(expenses.get_by_id(expense_id, family_id), "Expense")
    ensure_author(existing, user, "expense", "delete")
    expenses.delete(expense_id, family_id)
    return MessageResponse(message="Expense deleted successfully")
