from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..deps import get_category_store, require_admin, require_member
from ..models import FamilyMember
from ..schemas import CategoryCreate, CategoryRead, CategoryUpdate, MessageResponse
from ..stores.categories import CategoryStore

categories_router = APIRouter(prefix="/categories", tags=["categories"])


# PUBLIC_INTERFACE
@categories_router.get(
    "/{family_id}",
    response_model=List[CategoryRead],
    summary="List categories",
    description="The family's own categories plus the global defaults, ordered by name.",
)
def list_categories(
    family_id: int,
    membership: FamilyMember = Depends(require_member),
    categories: CategoryStore = Depends(get_category_store),
) -> List[CategoryRead]:
    """List categories visible to the family."""
    return [CategoryRead.model_validate(c) for c in categories.list(family_id)]


# PUBLIC_INTERFACE
@categories_router.post(
    "/{family_id}",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
)
def create_category(
    family_id: int,
    payload: CategoryCreate,
    membership: FamilyMember = Depends(require_admin),
    categories: CategoryStore = Depends(get_category_store),
) -> CategoryRead:
    """Admin-only: add a custom category to the family."""
    category = categories.create(family_id, payload.name, payload.color)
    return CategoryRead.model_validate(category)


# PUBLIC_INTERFACE
@categories_router.put("/{family_id}/{category_id}", response_model=CategoryRead, summary="Update category")
def update_category(
    family_id: int,
    category_id: int,
    payload: CategoryUpdate,
    membership: FamilyMember = Depends(require_admin),
    categories: CategoryStore = Depends(get_category_store),
) -> CategoryRead:
    """Admin-only: rename or recolor a custom category. Defaults cannot be changed."""
    if payload.name is None and payload.color is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    category = categories.update(category_id, family_id, name=payload.name, color=payload.color)
    if category is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Category not found or cannot be updated"
        )
    return CategoryRead.model_validate(category)


# PUBLIC_INTERFACE
@categories_router.delete(
    "/{family_id}/{category_id}", response_model=MessageResponse, summary="Delete category"
)
def delete_category(
    family_id: int,
    category_id: int,
    membership: FamilyMember = Depends(require_admin),
    categories: CategoryStore = Depends(get_category_store),
) -> MessageResponse:
    """Admin-only: delete a custom category; its expenses become uncategorized."""
    if categories.delete(category_id, family_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Category not found or cannot be deleted"
        )
    return MessageResponse(message="Category deleted successfully")
