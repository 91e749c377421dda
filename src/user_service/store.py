"""Persistence handle for user records."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models.user import User


logger = logging.getLogger(__name__)


class DuplicateEmailError(Exception):
    """Raised when a write would violate the unique email index."""


class UserStore:
    """Thin wrapper around a session exposing the user operations.

    The store never decides policy. It only reports what the database says:
    ``None``/``False`` when a record is missing and
    :class:`DuplicateEmailError` when the unique index rejects a write.
    """

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self.session.get(User, user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.session.query(User).filter(User.email == email).first()

    def list(
        self, skip: int = 0, limit: int = 10, role: str | None = None
    ) -> Tuple[List[User], int]:
        query = self.session.query(User)
        if role:
            query = query.filter(User.role == role)
        total = query.count()
        records = query.order_by(User.id).offset(skip).limit(limit).all()
        return records, total

    def insert(self, **fields: Any) -> User:
        user = User(**fields)
        self.session.add(user)
        self._commit()
        self.session.refresh(user)
        return user

    def update_by_id(self, user_id: str, fields: Dict[str, Any]) -> Optional[User]:
        user = self.find_by_id(user_id)
        if user is None:
            return None
        for name, value in fields.items():
            setattr(user, name, value)
        self._commit()
        self.session.refresh(user)
        return user

    def delete_by_id(self, user_id: str) -> bool:
        user = self.find_by_id(user_id)
        if user is None:
            return False
        self.session.delete(user)
        self._commit()
        return True

    def _commit(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            logger.warning("integrity error on users table: %s", exc.orig)
            raise DuplicateEmailError("email already taken") from exc
