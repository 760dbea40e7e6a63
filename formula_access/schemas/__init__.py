"""Pydantic request/response schemas."""

from formula_access.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    ProfileUpdateRequest,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    TokenPair,
    UserOut,
)
from formula_access.schemas.health import HealthResponse
from formula_access.schemas.users import (
    ProjectAccessResponse,
    RoleItem,
    RolesResponse,
    StatusUpdateRequest,
    UsersListResponse,
)

__all__ = [
    "AuthResponse",
    "ChangePasswordRequest",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "ProfileUpdateRequest",
    "ProjectAccessResponse",
    "RefreshRequest",
    "RefreshResponse",
    "RegisterRequest",
    "RoleItem",
    "RolesResponse",
    "StatusUpdateRequest",
    "TokenPair",
    "UserOut",
    "UsersListResponse",
]
