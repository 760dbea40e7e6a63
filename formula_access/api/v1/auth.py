"""Auth endpoints and auth dependencies (get_current_user, require_role, require_permission, require_project_access)."""

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session

from formula_access.api.rate_limit import login_rate_limit, register_rate_limit
from formula_access.core.access import AccessDecision
from formula_access.core.config import Settings, get_settings
from formula_access.core.database import get_db
from formula_access.core.errors import AuthorizationError
from formula_access.core.roles import Permission, Role, has_permission, has_role
from formula_access.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    MessageResponse,
    ProfileUpdateRequest,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    TokenPair,
    UserOut,
)
from formula_access.services import auth as auth_service
from formula_access.services import users as user_service
from formula_access.services.audit import record_user_action
from formula_access.services.authentication import authenticate, authenticate_optional
from formula_access.services.projects import check_project_access

router = APIRouter()


def get_current_user(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentUser:
    """Dependency: require a valid Bearer access token for an active user. Raises 401 otherwise."""
    result = authenticate(db, authorization, settings)
    if not result.ok:
        raise result.to_error()
    return result.identity


def get_optional_user(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentUser | None:
    """Dependency: the current user when a valid token is sent, otherwise None (anonymous)."""
    return authenticate_optional(db, authorization, settings)


def require_role(required: Role) -> Callable[..., CurrentUser]:
    """Dependency factory: user's role must rank at or above the required role."""

    def _checker(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if not has_role(current_user.role, required):
            raise AuthorizationError(
                "Insufficient permissions",
                code="INSUFFICIENT_PERMISSIONS",
                details={"required": required.value, "current": current_user.role},
            )
        return current_user

    return _checker


def require_permission(permission: Permission) -> Callable[..., CurrentUser]:
    """Dependency factory: permission must be listed for the user's role."""

    def _checker(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if not has_permission(current_user.role, permission):
            raise AuthorizationError(
                "Permission denied",
                code="PERMISSION_DENIED",
                details={"required": permission.value, "userRole": current_user.role},
            )
        return current_user

    return _checker


def require_project_access(
    project_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> AccessDecision:
    """Dependency: 404 if the project does not exist, 403 if the user has no access to it."""
    return check_project_access(db, current_user, project_id)


def get_rate_limited_user(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    _limit: Annotated[None, Depends(login_rate_limit)],
) -> CurrentUser:
    """Dependency: authenticate first; only authenticated attempts count against the auth limit."""
    return current_user


def _auth_response(tokens: auth_service.AuthTokens) -> AuthResponse:
    return AuthResponse(
        user=UserOut.model_validate(tokens.user),
        tokens=TokenPair(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_in=tokens.expires_in,
        ),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[Depends(login_rate_limit)],
)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthResponse:
    """
    Authenticate with email and password; returns the user and an access/refresh token pair.
    Include the access token in the Authorization header as: Bearer <accessToken>
    """
    return _auth_response(auth_service.login(db, body.email, body.password, settings))


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(register_rate_limit)],
)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthResponse:
    """Create an account and log it in."""
    return _auth_response(auth_service.register(db, body, settings))


@router.post("/refresh", response_model=RefreshResponse)
def refresh(
    body: RefreshRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RefreshResponse:
    """Exchange a refresh token for a new access token."""
    access_token, expires_in = auth_service.refresh(db, body.refresh_token, settings)
    return RefreshResponse(access_token=access_token, expires_in=expires_in)


@router.post("/logout", response_model=MessageResponse)
def logout(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Invalidate every refresh token of the current user."""
    auth_service.logout(db, current_user.id)
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=UserOut)
def get_me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    """Full profile of the current user."""
    return UserOut.model_validate(user_service.require_user(db, current_user.id))


@router.put("/me", response_model=UserOut)
def update_me(
    body: ProfileUpdateRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    """Update whitelisted profile fields of the current user."""
    updates = body.model_dump(exclude_unset=True)
    user = user_service.update_profile(db, current_user.id, updates)
    record_user_action(current_user.id, "profile_update", {"updated_fields": sorted(updates)})
    return UserOut.model_validate(user)


@router.post(
    "/change-password",
    response_model=MessageResponse,
)
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(get_rate_limited_user)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageResponse:
    """Change password; every session is invalidated so all devices must log in again."""
    auth_service.change_password(
        db,
        current_user.id,
        body.current_password,
        body.new_password,
        settings,
    )
    return MessageResponse(message="Password changed successfully. Please login again.")
