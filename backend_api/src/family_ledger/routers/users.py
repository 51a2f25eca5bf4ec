from typing import List

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from ..deps import get_current_user, get_family_store, get_user_store, require_admin
from ..errors import DuplicateUserError, bad_request
from ..models import FamilyMember, User
from ..schemas import (
    FamilyUserRead,
    MessageResponse,
    PasswordResetResponse,
    PasswordUpdate,
    ProfileResponse,
    ProfileUpdate,
    UserRead,
)
from ..security import generate_temporary_password, hash_password, verify_password
from ..stores.families import FamilyStore
from ..stores.users import UserStore

logger = structlog.get_logger(__name__)

users_router = APIRouter(prefix="/users", tags=["users"])


# PUBLIC_INTERFACE
@users_router.put("/profile", response_model=ProfileResponse, summary="Update profile")
def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
) -> ProfileResponse:
    """Change the caller's display name and/or username."""
    try:
        updated = users.update_profile(user.id, name=payload.name, username=payload.username)
    except DuplicateUserError as exc:
        raise bad_request(exc)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid fields to update")
    logger.info("profile_updated", user_id=user.id)
    return ProfileResponse(message="Profile updated successfully", user=UserRead.model_validate(updated))


# PUBLIC_INTERFACE
@users_router.post("/update-password", response_model=MessageResponse, summary="Change password")
def update_password(
    payload: PasswordUpdate,
    user: User = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
) -> MessageResponse:
    """
    Change the caller's password.

    The current password must verify and the new one must differ from it.
    """
    if payload.current_password == payload.new_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New password must be different from current password",
        )
    if not verify_password(payload.current_password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect")
    users.set_password_hash(user.id, hash_password(payload.new_password))
    logger.info("password_changed", user_id=user.id)
    return MessageResponse(message="Password updated successfully")


# PUBLIC_INTERFACE
@users_router.post(
    "/{user_id}/reset-password",
    response_model=PasswordResetResponse,
    summary="Reset a member's password",
    description="Admin of a family the user belongs to sets a new temporary password and gets it back once.",
)
def reset_password(
    user_id: int,
    user: User = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
    families: FamilyStore = Depends(get_family_store),
) -> PasswordResetResponse:
    target = users.find_by_id(user_id)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if not families.is_admin_over(user.id, target.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only an admin of the user's family can reset their password",
        )

    temporary_password = generate_temporary_password()
    users.set_password_hash(target.id, hash_password(temporary_password))
    logger.info("password_reset", user_id=target.id, reset_by=user.id)
    return PasswordResetResponse(
        message="Password reset successfully",
        temporary_password=temporary_password,
        user_name=target.name,
        user_email=target.email,
    )


# PUBLIC_INTERFACE
@users_router.get("/{family_id}/users", response_model=List[FamilyUserRead], summary="List family users")
def list_family_users(
    family_id: int,
    membership: FamilyMember = Depends(require_admin),
    families: FamilyStore = Depends(get_family_store),
) -> List[FamilyUserRead]:
    """Admin-only: the family's users ordered by name, flagging the caller."""
    return [
        FamilyUserRead(
            id=u.id,
            name=u.name,
            email=u.email,
            created_at=u.created_at,
            is_current_user=u.id == membership.user_id,
        )
        for u in families.list_users(family_id)
    ]
