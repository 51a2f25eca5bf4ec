from datetime import date as Date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..analytics import AnalyticsService
from ..deps import get_analytics_service, require_member
from ..models import FamilyMember
from ..schemas import AnalyticsReport

analytics_router = APIRouter(prefix="/analytics", tags=["analytics"])


# PUBLIC_INTERFACE
@analytics_router.get(
    "/{family_id}",
    response_model=AnalyticsReport,
    summary="Family analytics",
    description=(
        "Expense total, income total, net balance, expense share of income, "
        "per-member and per-category breakdowns and monthly trend for a date range."
    ),
)
def get_analytics(
    family_id: int,
    start_date: Date = Query(..., alias="startDate"),
    end_date: Date = Query(..., alias="endDate"),
    user_id: Optional[int] = Query(None, alias="userId", description="Restrict to one member's entries"),
    membership: FamilyMember = Depends(require_member),
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsReport:
    """Compute the family report for the date range."""
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="endDate cannot be before startDate"
        )
    return service.compute(family_id, start_date, end_date, user_id=user_id)
