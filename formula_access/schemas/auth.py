"""Request/response schemas for auth endpoints."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from formula_access.core.roles import Role
from formula_access.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN

# Deliberately loose: one @, no whitespace, a dot in the domain part.
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Register requires lowercase, uppercase, digit and one of @$!%*?&.
_STRONG_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])")


def _normalize_email(v: str) -> str:
    v = v.strip().lower()
    if not _EMAIL_RE.match(v):
        raise ValueError("Valid email is required")
    return v


class CamelModel(BaseModel):
    """Schema serialized with camelCase keys; accepts snake_case or camelCase input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class LoginRequest(CamelModel):
    """Credentials for login."""

    email: str = Field(..., min_length=3, max_length=255, description="Account email")
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class RegisterRequest(CamelModel):
    """Profile and password for self-registration."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    role: Role = Role.CRAFTSMAN
    position: str | None = Field(default=None, max_length=100)
    department: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=20)
    skills: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        if not _STRONG_PASSWORD_RE.match(v):
            raise ValueError(
                "Password must contain uppercase, lowercase, number, and special character"
            )
        return v


class RefreshRequest(CamelModel):
    """Refresh token exchanged for a new access token."""

    refresh_token: str = Field(..., min_length=1)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)


class ProfileUpdateRequest(CamelModel):
    """Self-service profile update; only these fields can be changed."""

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    position: str | None = Field(default=None, max_length=100)
    department: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=20)
    avatar_url: str | None = Field(default=None, max_length=1024)
    skills: list[str] | None = None
    certifications: list[str] | None = None


class CurrentUser(CamelModel):
    """Authenticated identity attached to a request and passed down to guards."""

    id: str
    email: str
    first_name: str
    last_name: str
    role: str
    status: str


class UserOut(CamelModel):
    """User profile returned to clients (never includes the password hash)."""

    id: str
    email: str
    first_name: str
    last_name: str
    role: str
    status: str
    email_verified: bool = False
    position: str | None = None
    department: str | None = None
    phone: str | None = None
    avatar_url: str | None = None
    skills: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    last_login_at: datetime | None = None
    last_active_at: datetime | None = None
    created_at: datetime | None = None


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class AuthResponse(CamelModel):
    """Returned by login and register."""

    user: UserOut
    tokens: TokenPair


class RefreshResponse(CamelModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int


class MessageResponse(BaseModel):
    message: str
