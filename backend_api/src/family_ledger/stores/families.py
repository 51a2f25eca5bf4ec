from typing import Any, Dict, List, Optional, Tuple

import structlog
from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..errors import LastAdminError
from ..models import Category, Expense, Family, FamilyMember, FutureExpense, Income, Role, User

logger = structlog.get_logger(__name__)


class FamilyStore:
    """
    Family membership registry.

    Families and the (family, user) -> role table. Callers decide who may
    invoke what; this store only keeps the data consistent.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def create_family(self, name: str, creator_id: int) -> Family:
        """Create the family and its first admin membership in one transaction."""
        family = Family(name=name, created_by=creator_id)
        try:
            self.session.add(family)
            self.session.flush()
            self.session.add(FamilyMember(family_id=family.id, user_id=creator_id, role=Role.ADMIN.value))
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(family)
        logger.info("family_created", family_id=family.id, created_by=creator_id)
        return family

    def get_family(self, family_id: int) -> Optional[Family]:
        return self.session.get(Family, family_id)

    def list_families_for_user(self, user_id: int) -> List[Tuple[Family, str]]:
        stmt = (
            select(Family, FamilyMember.role)
            .join(FamilyMember, FamilyMember.family_id == Family.id)
            .where(FamilyMember.user_id == user_id)
            .order_by(Family.created_at, Family.id)
        )
        return [(family, role) for family, role in self.session.exec(stmt).all()]

    def get_membership(self, family_id: int, user_id: int) -> Optional[FamilyMember]:
        stmt = select(FamilyMember).where(
            FamilyMember.family_id == family_id, FamilyMember.user_id == user_id
        )
        return self.session.exec(stmt).first()

    def list_members(self, family_id: int) -> List[Dict[str, Any]]:
        stmt = (
            select(User.id, User.name, User.email, FamilyMember.role, FamilyMember.created_at)
            .join(FamilyMember, FamilyMember.user_id == User.id)
            .where(FamilyMember.family_id == family_id)
            .order_by(FamilyMember.created_at, FamilyMember.id)
        )
        return [
            {"id": uid, "name": name, "email": email, "role": role, "joined_at": joined_at}
            for uid, name, email, role, joined_at in self.session.exec(stmt).all()
        ]

    def list_users(self, family_id: int) -> List[User]:
        stmt = (
            select(User)
            .join(FamilyMember, FamilyMember.user_id == User.id)
            .where(FamilyMember.family_id == family_id)
            .order_by(User.name)
        )
        return list(self.session.exec(stmt).all())

    def count_admins(self, family_id: int) -> int:
        stmt = select(func.count()).select_from(FamilyMember).where(
            FamilyMember.family_id == family_id, FamilyMember.role == Role.ADMIN.value
        )
        return self.session.exec(stmt).one()

    def is_admin_over(self, admin_id: int, user_id: int) -> bool:
        """True when admin_id administers some family that user_id belongs to."""
        admin_families = select(FamilyMember.family_id).where(
            FamilyMember.user_id == admin_id, FamilyMember.role == Role.ADMIN.value
        )
        stmt = select(FamilyMember.id).where(
            FamilyMember.user_id == user_id, FamilyMember.family_id.in_(admin_families)
        )
        return self.session.exec(stmt).first() is not None

    def add_member(self, family_id: int, user_id: int, role: str = Role.MEMBER.value) -> FamilyMember:
        """
        Add a user to a family, or overwrite the role of an existing member.

        Demoting the only admin raises LastAdminError.
        """
        membership = self.get_membership(family_id, user_id)
        if membership is None:
            membership = FamilyMember(family_id=family_id, user_id=user_id, role=role)
            self.session.add(membership)
            try:
                self.session.commit()
            except IntegrityError:
                # A concurrent request inserted the pair first; fall back to updating it.
                self.session.rollback()
                membership = self.get_membership(family_id, user_id)
                if membership is None:
                    raise
            else:
                self.session.refresh(membership)
                return membership

        if membership.role == Role.ADMIN.value and role != Role.ADMIN.value:
            if self.count_admins(family_id) <= 1:
                raise LastAdminError()
        membership.role = role
        self.session.add(membership)
        self.session.commit()
        self.session.refresh(membership)
        return membership

    def remove_member(self, family_id: int, user_id: int) -> Optional[FamilyMember]:
        membership = self.get_membership(family_id, user_id)
        if membership is None:
            return None
        if membership.role == Role.ADMIN.value and self.count_admins(family_id) <= 1:
            raise LastAdminError()
        self.session.delete(membership)
        self.session.commit()
        return membership

    def delete_family(self, family_id: int) -> Optional[Family]:
        """Delete a family with its memberships, ledger entries and custom categories."""
        family = self.get_family(family_id)
        if family is None:
            return None
        try:
            for model in (Expense, Income, FutureExpense, FamilyMember):
                self.session.execute(delete(model).where(model.family_id == family_id))
            self.session.execute(
                delete(Category).where(Category.family_id == family_id, Category.is_default == False)  # noqa: E712
            )
            self.session.delete(family)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return family
