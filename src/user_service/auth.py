from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, HTTPException, Path, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .models.user import User
from .validation import PASSWORD_MAX_BYTES, is_valid_object_id

security = HTTPBearer(auto_error=False)

ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > PASSWORD_MAX_BYTES:
        return False
    return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))


def _create_token(user_id: str, expires: timedelta, token_type: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {"sub": user_id, "iat": now, "exp": now + expires, "type": token_type}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: str) -> str:
    return _create_token(
        user_id, timedelta(minutes=settings.access_token_expire_minutes), ACCESS
    )


def create_refresh_token(user_id: str) -> str:
    return _create_token(
        user_id, timedelta(days=settings.refresh_token_expire_days), REFRESH
    )


def _unauthorized(detail: str = "Please authenticate") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_caller(token: str, db: Session) -> User:
    """Return the active user a bearer token belongs to or raise 401."""
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except jwt.PyJWTError:
        raise _unauthorized()

    user_id: str | None = payload.get("sub")
    if user_id is None or payload.get("type") != ACCESS:
        raise _unauthorized()

    user = db.get(User, user_id)
    if user is None or not user.is_account_active:
        raise _unauthorized()
    return user


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise _unauthorized()
    user = resolve_caller(credentials.credentials, db)
    request.state.user_id = user.id
    return user


def valid_user_id(user_id: str = Path(...)) -> str:
    if not is_valid_object_id(user_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="userId must be a valid id"
        )
    return user_id


def ensure_admin(caller: User) -> None:
    if caller.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def ensure_owner_or_admin(caller: User, user_id: str) -> None:
    if caller.id != user_id and caller.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    ensure_admin(current_user)
    return current_user


def require_owner_or_admin(
    current_user: User = Depends(get_current_user),
    user_id: str = Depends(valid_user_id),
) -> User:
    ensure_owner_or_admin(current_user, user_id)
    return current_user
