import re
import secrets
from typing import List

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from ..config import Settings
from ..deps import (
    get_app_settings,
    get_current_user,
    get_family_store,
    get_user_store,
    require_admin,
    require_member,
)
from ..errors import DuplicateUserError, LastAdminError, bad_request
from ..models import FamilyMember, User
from ..schemas import (
    FamilyCreate,
    FamilyDetail,
    FamilyRead,
    FamilyWithRole,
    MemberAdd,
    MemberAdded,
    MemberRead,
    MessageResponse,
)
from ..security import generate_temporary_password, hash_password
from ..stores.families import FamilyStore
from ..stores.users import UserStore

logger = structlog.get_logger(__name__)

families_router = APIRouter(prefix="/families", tags=["families"])

_USERNAME_ATTEMPTS = 5


def username_from_email(email: str) -> str:
    """Derive a valid username (3-50 chars of [a-zA-Z0-9_]) from an email's local part."""
    base = re.sub(r"[^a-zA-Z0-9_]", "_", email.split("@", 1)[0])[:40]
    return base if len(base) >= 3 else f"{base}_user"


def _create_member_user(users: UserStore, name: str, email: str, password: str) -> User:
    base = username_from_email(email)
    username = base
    for _ in range(_USERNAME_ATTEMPTS):
        try:
            return users.create(name=name, email=email, password_hash=hash_password(password), username=username)
        except DuplicateUserError as exc:
            if exc.field != "username":
                raise bad_request(exc)
            username = f"{base}_{secrets.token_hex(2)}"
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Could not allocate a username")


# PUBLIC_INTERFACE
@families_router.post(
    "",
    response_model=FamilyRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create family",
    description="Create a family; the caller becomes its first admin.",
)
def create_family(
    payload: FamilyCreate,
    user: User = Depends(get_current_user),
    families: FamilyStore = Depends(get_family_store),
) -> FamilyRead:
    """Create a family owned by the caller."""
    family = families.create_family(payload.name, user.id)
    return FamilyRead.model_validate(family)


# PUBLIC_INTERFACE
@families_router.get("", response_model=List[FamilyWithRole], summary="List my families")
def list_families(
    user: User = Depends(get_current_user),
    families: FamilyStore = Depends(get_family_store),
) -> List[FamilyWithRole]:
    """Families the caller belongs to, with the caller's role in each."""
    return [
        FamilyWithRole(**FamilyRead.model_validate(family).model_dump(), role=role)
        for family, role in families.list_families_for_user(user.id)
    ]


# PUBLIC_INTERFACE
@families_router.get("/{family_id}", response_model=FamilyDetail, summary="Get family")
def get_family(
    family_id: int,
    membership: FamilyMember = Depends(require_member),
    families: FamilyStore = Depends(get_family_store),
) -> FamilyDetail:
    """Family details with its members."""
    family = families.get_family(family_id)
    if family is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Family not found")
    return FamilyDetail(
        **FamilyRead.model_validate(family).model_dump(),
        role=membership.role,
        members=[MemberRead(**m) for m in families.list_members(family_id)],
    )


# PUBLIC_INTERFACE
@families_router.get("/{family_id}/members", response_model=List[MemberRead], summary="List members")
def list_members(
    family_id: int,
    membership: FamilyMember = Depends(require_member),
    families: FamilyStore = Depends(get_family_store),
) -> List[MemberRead]:
    """Members of the family with their roles."""
    return [MemberRead(**m) for m in families.list_members(family_id)]


# PUBLIC_INTERFACE
@families_router.post(
    "/{family_id}/members",
    response_model=MemberAdded,
    status_code=status.HTTP_201_CREATED,
    summary="Add member",
    description=(
        "Add a user to the family by email, or change the role of an existing member. "
        "Unknown emails create a new account; its temporary password is returned once."
    ),
)
def add_member(
    family_id: int,
    payload: MemberAdd,
    membership: FamilyMember = Depends(require_admin),
    families: FamilyStore = Depends(get_family_store),
    users: UserStore = Depends(get_user_store),
    settings: Settings = Depends(get_app_settings),
) -> MemberAdded:
    """Admin-only: add or re-role a family member."""
    user = users.find_by_email(payload.email)
    temporary_password = None
    if user is None:
        if not payload.name:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required for new users"
            )
        temporary_password = settings.default_member_password or generate_temporary_password()
        user = _create_member_user(users, payload.name, payload.email, temporary_password)
        logger.info("member_account_created", user_id=user.id, family_id=family_id)

    try:
        member = families.add_member(family_id, user.id, payload.role.value)
    except LastAdminError as exc:
        raise bad_request(exc)
    logger.info("member_added", family_id=family_id, user_id=user.id, role=member.role)

    return MemberAdded(
        id=user.id,
        name=user.name,
        email=user.email,
        role=member.role,
        is_new_user=temporary_password is not None,
        temporary_password=temporary_password,
    )


# PUBLIC_INTERFACE
@families_router.delete(
    "/{family_id}/members/{user_id}",
    response_model=MessageResponse,
    summary="Remove member",
)
def remove_member(
    family_id: int,
    user_id: int,
    membership: FamilyMember = Depends(require_admin),
    families: FamilyStore = Depends(get_family_store),
) -> MessageResponse:
    """Admin-only: remove another member from the family."""
    if user_id == membership.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot remove yourself from the family"
        )
    try:
        removed = families.remove_member(family_id, user_id)
    except LastAdminError as exc:
        raise bad_request(exc)
    if removed is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    logger.info("member_removed", family_id=family_id, user_id=user_id, removed_by=membership.user_id)
    return MessageResponse(message="Member removed successfully")


# PUBLIC_INTERFACE
@families_router.delete("/{family_id}", response_model=MessageResponse, summary="Delete family")
def delete_family(
    family_id: int,
    membership: FamilyMember = Depends(require_admin),
    families: FamilyStore = Depends(get_family_store),
) -> MessageResponse:
    """Delete the family and everything scoped to it. Only its creator may do this."""
    actor_id = membership.user_id
    family = families.get_family(family_id)
    if family is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Family not found")
    if family.created_by != actor_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Only the family creator can delete it"
        )
    families.delete_family(family_id)
    logger.info("family_deleted", family_id=family_id, deleted_by=actor_id)
    return MessageResponse(message="Family deleted successfully")
