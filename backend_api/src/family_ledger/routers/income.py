from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..deps import ensure_author, get_current_user, get_income_store, require_found, require_member
from ..models import FamilyMember, User
from ..schemas import IncomeCreate, IncomeListItem, IncomeRead, IncomeUpdate, MessageResponse, MONTH_PATTERN
from ..stores.ledger import IncomeStore

income_router = APIRouter(prefix="/income", tags=["income"])


# PUBLIC_INTERFACE
@income_router.post(
    "/{family_id}",
    response_model=IncomeRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create income",
)
def create_income(
    family_id: int,
    payload: IncomeCreate,
    membership: FamilyMember = Depends(require_member),
    incomes: IncomeStore = Depends(get_income_store),
) -> IncomeRead:
    """Record income for a month; the caller is its author."""
    income = incomes.create(
        family_id=family_id,
        user_id=membership.user_id,
        source=payload.source,
        amount=payload.amount,
        month=payload.month,
        note=payload.note,
    )
    return IncomeRead.model_validate(income)


# PUBLIC_INTERFACE
@income_router.get(
    "/{family_id}",
    response_model=List[IncomeListItem],
    summary="List income",
    description="Newest month first. Optionally filter by month (YYYY-MM), source substring and author.",
)
def list_income(
    family_id: int,
    month: Optional[str] = Query(None, description="Filter by YYYY-MM"),
    source: Optional[str] = Query(None),
    user_id: Optional[int] = Query(None, alias="userId"),
    membership: FamilyMember = Depends(require_member),
    incomes: IncomeStore = Depends(get_income_store),
) -> List[IncomeListItem]:
    """List the family's income entries."""
    if month and not MONTH_PATTERN.match(month):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="month must be YYYY-MM")
    rows = incomes.list(family_id, month=month, source=source, user_id=user_id)
    return [IncomeListItem(**row) for row in rows]


# PUBLIC_INTERFACE
@income_router.get("/{family_id}/{income_id}", response_model=IncomeRead, summary="Get income")
def get_income(
    family_id: int,
    income_id: int,
    membership: FamilyMember = Depends(require_member),
    incomes: IncomeStore = Depends(get_income_store),
) -> IncomeRead:
    """Fetch one income entry of the family."""
    income = require_found(incomes.get_by_id(income_id, family_id), "Income")
    return IncomeRead.model_validate(income)


# PUBLIC_INTERFACE
@income_router.put("/{family_id}/{income_id}", response_model=IncomeRead, summary="Update income")
def update_income(
    family_id: int,
    income_id: int,
    payload: IncomeUpdate,
    user: User = Depends(get_current_user),
    membership: FamilyMember = Depends(require_member),
    incomes: IncomeStore = Depends(get_income_store),
) -> IncomeRead:
    """Update an income entry. Only its author may do this."""
    existing = require_found(incomes.get_by_id(income_id, family_id), "Income")
    ensure_author(existing, user, "income", "update")

    changes = incomes.changes(payload.model_dump(exclude_unset=True))
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    income = require_found(incomes.update(income_id, family_id, changes), "Income")
    return IncomeRead.model_validate(income)


# PUBLIC_INTERFACE
@income_router.delete("/{family_id}/{income_id}", response_model=MessageResponse, summary="Delete income")
def delete_income(
    family_id: int,
    income_id: int,
    user: User = Depends(get_current_user),
    membership: FamilyMember = Depends(require_member),
    incomes: IncomeStore = Depends(get_income_store),
) -> MessageResponse:
    """Delete an income entry. Only its author may do this."""
    existing = require_found(incomes.get_by_id(income_id, family_id), "Income")
    ensure_author(existing, user, "income", "delete")
    incomes.delete(income_id, family_id)
    return MessageResponse(message="Income deleted successfully")
