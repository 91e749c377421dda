"""Request and response schemas for the user endpoints."""

from typing import List, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    constr,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .validation import validate_password

Role = Literal["user", "admin"]
Name = constr(strip_whitespace=True, min_length=1, max_length=100)


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _RequestSchema(_Schema):
    model_config = ConfigDict(extra="forbid")

    @field_validator("email", check_fields=False)
    @classmethod
    def _lowercase_email(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value is not None else value


class _UserWriteSchema(_RequestSchema):
    @field_validator("password", check_fields=False)
    @classmethod
    def _check_password(cls, value: Optional[str]) -> Optional[str]:
        return validate_password(value) if value is not None else value


class UserCreate(_UserWriteSchema):
    """Request body for creating a user as an admin."""

    first_name: Name
    last_name: Name
    email: EmailStr
    password: str
    role: Role = "user"


class UserRegister(_UserWriteSchema):
    """Request body for self-registration; the role is always ``user``."""

    first_name: Name
    last_name: Name
    email: EmailStr
    password: str


class UserUpdate(_UserWriteSchema):
    """Partial update; only supplied fields are validated and applied."""

    first_name: Optional[Name] = None
    last_name: Optional[Name] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    role: Optional[Role] = None

    @model_validator(mode="after")
    def _not_empty(self) -> "UserUpdate":
        if not self.model_fields_set:
            raise ValueError("at least one field must be provided")
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} must not be null")
        return self


class UserLogin(_RequestSchema):
    """Request body for user login."""

    email: EmailStr
    password: str


class UserResponse(_Schema):
    """Shaped user representation; the password hash is never included."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    email: str
    role: Role
    is_email_verified: bool
    is_account_active: bool


class UserListResponse(BaseModel):
    """Paginated list of users."""

    total: int
    items: List[UserResponse]


class TokenResponse(BaseModel):
    """JWT access and refresh tokens."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(BaseModel):
    """A user together with freshly issued tokens."""

    user: UserResponse
    tokens: TokenResponse

