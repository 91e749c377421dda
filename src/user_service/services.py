"""Service layer for user CRUD operations."""

import logging
from typing import List, Tuple

from fastapi import HTTPException
from prometheus_client import Counter
from sqlalchemy.exc import SQLAlchemyError

from .auth import hash_password, verify_password
from .models.user import User
from .schemas import UserCreate, UserRegister, UserUpdate
from .store import DuplicateEmailError, UserStore


logger = logging.getLogger(__name__)

USER_CREATED_COUNTER = Counter("users_created_total", "Total users created")
USER_UPDATED_COUNTER = Counter("users_updated_total", "Total users updated")
USER_DELETED_COUNTER = Counter("users_deleted_total", "Total users deleted")

EMAIL_TAKEN = "Email already taken"


def _handle_store_error(store: UserStore, exc: Exception) -> None:
    """Rollback and translate store failures into HTTP errors."""
    store.session.rollback()
    if isinstance(exc, DuplicateEmailError):
        raise HTTPException(status_code=400, detail=EMAIL_TAKEN) from exc
    logger.exception("store error", exc_info=exc)
    raise HTTPException(status_code=500, detail="Database error") from exc


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="User not found")


def _ensure_email_free(store: UserStore, email: str, exclude_id: str | None = None) -> None:
    existing = store.find_by_email(email)
    if existing is not None and existing.id != exclude_id:
        raise HTTPException(status_code=400, detail=EMAIL_TAKEN)


def create_user(store: UserStore, payload: UserCreate | UserRegister) -> User:
    """Persist a new user with a hashed password.

    The pre-check only gives a friendlier error on the common path; the
    unique index on ``users.email`` settles concurrent creates.
    """
    logger.info("create user email=%s", payload.email)
    _ensure_email_free(store, payload.email)
    fields = payload.model_dump()
    fields["password"] = hash_password(payload.password)
    try:
        user = store.insert(**fields)
    except (DuplicateEmailError, SQLAlchemyError) as exc:
        _handle_store_error(store, exc)
    USER_CREATED_COUNTER.inc()
    logger.info("created user id=%s role=%s", user.id, user.role)
    return user


def query_users(
    store: UserStore, skip: int = 0, limit: int = 10, role: str | None = None
) -> Tuple[List[User], int]:
    """Retrieve a page of users, optionally filtered by role."""
    try:
        return store.list(skip=skip, limit=limit, role=role)
    except SQLAlchemyError as exc:
        _handle_store_error(store, exc)


def get_user(store: UserStore, user_id: str) -> User:
    try:
        user = store.find_by_id(user_id)
    except SQLAlchemyError as exc:
        _handle_store_error(store, exc)
    if user is None:
        raise _not_found()
    return user


def update_user(store: UserStore, user_id: str, payload: UserUpdate) -> User:
    """Apply the supplied fields of ``payload`` to an existing user.

    Fields left out of the request are untouched. A new email is checked
    against every other user and a new password is re-hashed.
    """
    if store.find_by_id(user_id) is None:
        raise _not_found()

    fields = payload.model_dump(exclude_unset=True)
    if "email" in fields:
        _ensure_email_free(store, fields["email"], exclude_id=user_id)
    if "password" in fields:
        fields["password"] = hash_password(fields["password"])

    try:
        user = store.update_by_id(user_id, fields)
    except (DuplicateEmailError, SQLAlchemyError) as exc:
        _handle_store_error(store, exc)
    if user is None:
        raise _not_found()
    USER_UPDATED_COUNTER.inc()
    logger.info("updated user id=%s fields=%s", user_id, sorted(fields))
    return user


def delete_user(store: UserStore, user_id: str) -> None:
    try:
        deleted = store.delete_by_id(user_id)
    except SQLAlchemyError as exc:
        _handle_store_error(store, exc)
    if not deleted:
        raise _not_found()
    USER_DELETED_COUNTER.inc()
    logger.info("deleted user id=%s", user_id)


def login_user(store: UserStore, email: str, password: str) -> User:
    user = store.find_by_email(email)
    if user is None or not verify_password(password, user.password):
        raise HTTPException(status_code=401, detail="Incorrect email or password")
    if not user.is_account_active:
        raise HTTPException(status_code=401, detail="Account is disabled")
    logger.info("login user id=%s", user.id)
    return user
