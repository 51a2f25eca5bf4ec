from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..errors import DuplicateUserError
from ..models import User


class UserStore:
    """Credential store: user rows and their password hashes."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.email == email)).first()

    def find_by_username(self, username: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.username == username)).first()

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def create(self, name: str, email: str, password_hash: str, username: Optional[str] = None) -> User:
        """
        Insert a user.

        The unique constraints decide; a violation is reported as
        DuplicateUserError naming the conflicting field.
        """
        user = User(name=name, email=email, username=username, password_hash=password_hash)
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise self._duplicate_error(email=email, username=username)
        self.session.refresh(user)
        return user

    def set_password_hash(self, user_id: int, password_hash: str) -> Optional[User]:
        user = self.find_by_id(user_id)
        if user is None:
            return None
        user.password_hash = password_hash
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def update_profile(
        self, user_id: int, name: Optional[str] = None, username: Optional[str] = None
    ) -> Optional[User]:
        """Partial profile update; returns None when no field is supplied."""
        if name is None and username is None:
            return None
        user = self.find_by_id(user_id)
        if user is None:
            return None
        if name is not None:
            user.name = name
        if username is not None:
            user.username = username
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise DuplicateUserError("username")
        self.session.refresh(user)
        return user

    def _duplicate_error(self, email: str, username: Optional[str]) -> DuplicateUserError:
        if self.find_by_email(email) is not None:
            return DuplicateUserError("email")
        return DuplicateUserError("username")
