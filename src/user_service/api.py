"""FastAPI application exposing the user resource and auth endpoints."""

from contextlib import asynccontextmanager
from typing import Optional

import logging
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from prometheus_client import Counter
from pydantic import BaseModel, ValidationError

from sqlalchemy.orm import Session

from .auth import (
    create_access_token,
    create_refresh_token,
    ensure_admin,
    require_admin,
    require_owner_or_admin,
    valid_user_id,
)
from .config import settings
from .database import get_db, init_db
from .models.user import User
from .schemas import (
    AuthResponse,
    Role,
    TokenResponse,
    UserCreate,
    UserListResponse,
    UserLogin,
    UserRegister,
    UserResponse,
    UserUpdate,
)
from .services import (
    create_user,
    delete_user,
    get_user,
    login_user,
    query_users,
    update_user,
)
from .store import UserStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
app = FastAPI(title=settings.api_title, lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
router = APIRouter(prefix="/v1")

logger = logging.getLogger(__name__)

# Prometheus counter to track API requests by method, endpoint and status code
REQUEST_COUNTER = Counter(
    "api_requests_total",
    "Total API requests",
    ["method", "endpoint", "status"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log incoming requests and their outcomes while updating metrics."""
    logger.info("request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        REQUEST_COUNTER.labels(
            method=request.method,
            endpoint=request.url.path,
            status=str(response.status_code),
        ).inc()
        logger.info(
            "response %s %s status %s caller %s",
            request.method,
            request.url.path,
            response.status_code,
            getattr(request.state, "user_id", "-"),
        )
        return response
    except Exception:
        REQUEST_COUNTER.labels(
            method=request.method,
            endpoint=request.url.path,
            status="500",
        ).inc()
        logger.exception(
            "error handling %s %s", request.method, request.url.path
        )
        raise


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed input as 400 with a flat message."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"] if part != "body")
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "; ".join(messages)},
    )


def get_store(db: Session = Depends(get_db)) -> UserStore:
    return UserStore(db)


def guarded_body(model: type[BaseModel], policy):
    """Parse the JSON body into ``model`` only once ``policy`` has passed."""

    async def dependency(request: Request, caller: User = Depends(policy)) -> BaseModel:
        try:
            data = await request.json()
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Request body must be valid JSON"
            ) from None
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise RequestValidationError(exc.errors(include_url=False)) from exc

    return dependency


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(user),
        tokens=TokenResponse(
            access_token=create_access_token(user.id),
            refresh_token=create_refresh_token(user.id),
        ),
    )


@router.post(
    "/auth/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.auth_rate_limit)
def register(request: Request, payload: UserRegister, store: UserStore = Depends(get_store)):
    """Create a ``user``-role account and return its tokens."""
    return _auth_response(create_user(store, payload))


@router.post("/auth/login", response_model=AuthResponse)
@limiter.limit(settings.auth_rate_limit)
def login(request: Request, payload: UserLogin, store: UserStore = Depends(get_store)):
    return _auth_response(login_user(store, payload.email, payload.password))


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
def post_user(
    payload: UserCreate = Depends(guarded_body(UserCreate, require_admin)),
    store: UserStore = Depends(get_store),
):
    """Create a user of any role; admin only."""
    return create_user(store, payload)


@router.get(
    "/users",
    response_model=UserListResponse,
    dependencies=[Depends(require_admin)],
)
def get_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
    role: Optional[Role] = None,
    store: UserStore = Depends(get_store),
):
    """Return a page of users; admin only."""
    records, total = query_users(store, skip=skip, limit=limit, role=role)
    return UserListResponse(
        total=total, items=[UserResponse.model_validate(r) for r in records]
    )


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user_by_id(
    current_user: User = Depends(require_owner_or_admin),
    user_id: str = Depends(valid_user_id),
    store: UserStore = Depends(get_store),
):
    return get_user(store, user_id)


@router.patch("/users/{user_id}", response_model=UserResponse)
def patch_user(
    current_user: User = Depends(require_owner_or_admin),
    user_id: str = Depends(valid_user_id),
    payload: UserUpdate = Depends(guarded_body(UserUpdate, require_owner_or_admin)),
    store: UserStore = Depends(get_store),
):
    """Partially update a user; only admins may change a role."""
    if "role" in payload.model_fields_set:
        ensure_admin(current_user)
    return update_user(store, user_id, payload)


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
def delete_user_by_id(
    current_user: User = Depends(require_owner_or_admin),
    user_id: str = Depends(valid_user_id),
    store: UserStore = Depends(get_store),
):
    delete_user(store, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


app.include_router(router)
