"""
API request and response models for userhub REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

No response model has a password or hash field, so a credential hash cannot
leak through serialization even by accident.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import User

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Deliberately loose: one "@" with something on each side and a dot in the
# domain. Deliverability is not this API's concern.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# bcrypt ignores (and recent releases reject) input past 72 bytes.
_BCRYPT_MAX_BYTES = 72


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/login."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class UserCreate(BaseModel):
    """Request body for POST /api/users."""

    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1)
    role_id: int = Field(default=0, ge=0)
    client_id: int = Field(default=0, ge=0)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        """Reject passwords bcrypt would truncate rather than hashing a prefix."""
        if len(value.encode("utf-8")) > _BCRYPT_MAX_BYTES:
            raise ValueError(f"password must be at most {_BCRYPT_MAX_BYTES} bytes")
        return value


class UserPatch(BaseModel):
    """Request body for PATCH /api/users/{id}. Every field is optional."""

    model_config = ConfigDict(str_strip_whitespace=True)

    username: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    role_id: Optional[int] = Field(default=None, ge=0)
    client_id: Optional[int] = Field(default=None, ge=0)


class UserDeleteRequest(BaseModel):
    """Request body for POST /api/users/delete. id=0 is treated as missing."""

    id: int = 0


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    expires_in: int


class UserResponse(BaseModel):
    """Outward view of an identity. Never includes the credential hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    role_id: int
    client_id: int
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role_id=user.role_id,
            client_id=user.client_id,
            created_at=user.created_at or "",
        )


class UserCreatedResponse(BaseModel):
    message: str = "User created"
    id: int


class UserDeletedResponse(BaseModel):
    message: str = "User successfully deleted"
    id: int
    user: UserResponse


class MeResponse(BaseModel):
    user_id: int
    username: str
    expires_at: str
