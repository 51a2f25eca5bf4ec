from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..deps import ensure_author, get_current_user, get_future_expense_store, require_found, require_member
from ..models import FamilyMember, User
from ..schemas import (
    FutureExpenseCreate,
    FutureExpenseListItem,
    FutureExpenseRead,
    FutureExpenseTotal,
    FutureExpenseUpdate,
    MessageResponse,
)
from ..stores.ledger import FutureExpenseStore

future_expenses_router = APIRouter(prefix="/future-expenses", tags=["future-expenses"])


# PUBLIC_INTERFACE
@future_expenses_router.post(
    "/{family_id}",
    response_model=FutureExpenseRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create future expense",
    description="Record a monthly commitment (EMI) running from start_month to end_month.",
)
def create_future_expense(
    family_id: int,
    payload: FutureExpenseCreate,
    membership: FamilyMember = Depends(require_member),
    futures: FutureExpenseStore = Depends(get_future_expense_store),
) -> FutureExpenseRead:
    """Create a commitment; the caller is its author."""
    future = futures.create(
        family_id=family_id,
        user_id=membership.user_id,
        title=payload.title,
        total_amount=payload.total_amount,
        monthly_amount=payload.monthly_amount,
        start_month=payload.start_month,
        end_month=payload.end_month,
    )
    return FutureExpenseRead.model_validate(future)


# PUBLIC_INTERFACE
@future_expenses_router.get(
    "/{family_id}",
    response_model=List[FutureExpenseListItem],
    summary="List future expenses",
)
def list_future_expenses(
    family_id: int,
    user_id: Optional[int] = Query(None, alias="userId"),
    active_only: bool = Query(False, alias="activeOnly", description="Only commitments not yet ended"),
    membership: FamilyMember = Depends(require_member),
    futures: FutureExpenseStore = Depends(get_future_expense_store),
) -> List[FutureExpenseListItem]:
    """List the family's commitments, newest start month first."""
    rows = futures.list(family_id, user_id=user_id, active_only=active_only)
    return [FutureExpenseListItem(**row) for row in rows]


# PUBLIC_INTERFACE
@future_expenses_router.get(
    "/{family_id}/total",
    response_model=FutureExpenseTotal,
    summary="Active monthly commitments",
    description="Sum of monthly amounts over commitments whose end month has not passed.",
)
def future_expenses_total(
    family_id: int,
    membership: FamilyMember = Depends(require_member),
    futures: FutureExpenseStore = Depends(get_future_expense_store),
) -> FutureExpenseTotal:
    """Monthly total of the family's active commitments."""
    return FutureExpenseTotal(total=float(futures.total_active_monthly(family_id)))


# PUBLIC_INTERFACE
@future_expenses_router.get(
    "/{family_id}/{future_expense_id}", response_model=FutureExpenseRead, summary="Get future expense"
)
def get_future_expense(
    family_id: int,
    future_expense_id: int,
    membership: FamilyMember = Depends(require_member),
    futures: FutureExpenseStore = Depends(get_future_expense_store),
) -> FutureExpenseRead:
    """Fetch one commitment of the family."""
    future = require_found(futures.get_by_id(future_expense_id, family_id), "Future expense")
    return FutureExpenseRead.model_validate(future)


# PUBLIC_INTERFACE
@future_expenses_router.put(
    "/{family_id}/{future_expense_id}", response_model=FutureExpenseRead, summary="Update future expense"
)
def update_future_expense(
    family_id: int,
    future_expense_id: int,
    payload: FutureExpenseUpdate,
    user: User = Depends(get_current_user),
    membership: FamilyMember = Depends(require_member),
    futures: FutureExpenseStore = Depends(get_future_expense_store),
) -> FutureExpenseRead:
    """Update a commitment. Only its author may do this."""
    existing = require_found(futures.get_by_id(future_expense_id, family_id), "Future expense")
    ensure_author(existing, user, "future expense", "update")

    changes = futures.changes(payload.model_dump(exclude_unset=True))
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    start_month = changes.get("start_month", existing.start_month)
    end_month = changes.get("end_month", existing.end_month)
    if end_month < start_month:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="end_month cannot be before start_month"
        )

    future = require_found(futures.update(future_expense_id, family_id, changes), "Future expense")
    return FutureExpenseRead.model_validate(future)


# PUBLIC_INTERFACE
@future_expenses_router.delete(
    "/{family_id}/{future_expense_id}", response_model=MessageResponse, summary="Delete future expense"
)
def delete_future_expense(
    family_id: int,
    future_expense_id: int,
    user: User = Depends(get_current_user),
    membership: FamilyMember = Depends(require_member),
    futures: FutureExpenseStore = Depends(get_future_expense_store),
) -> MessageResponse:
    """Delete a commitment. Only its author may do this."""
    existing = require_found(futures.get_by_id(future_expense_id, family_id), "Future expense")
    ensure_author(existing, user, "future expense", "delete")
    futures.delete(future_expense_id, family_id)
    return MessageResponse(message="Future expense deleted successfully")
