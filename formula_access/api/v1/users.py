"""Admin user management: list users, change status, force logout, role metadata."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from formula_access.api.v1.auth import get_optional_user, require_permission, require_role
from formula_access.core.database import get_db
from formula_access.core.roles import ROLE_LABELS, ROLE_RANK, Permission, Role, permissions_for
from formula_access.schemas.auth import CurrentUser, MessageResponse, UserOut
from formula_access.schemas.users import (
    RoleItem,
    RolesResponse,
    StatusUpdateRequest,
    UsersListResponse,
)
from formula_access.services import auth as auth_service
from formula_access.services import users as user_service

router = APIRouter()


@router.get("", response_model=UsersListResponse)
def list_users(
    _viewer: Annotated[CurrentUser, Depends(require_permission(Permission.VIEW_ALL))],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all users (requires view_all)."""
    return UsersListResponse(
        users=[UserOut.model_validate(u) for u in user_service.list_users(db)]
    )


@router.get("/meta/roles", response_model=RolesResponse)
def list_roles(
    current_user: Annotated[CurrentUser | None, Depends(get_optional_user)],
) -> RolesResponse:
    """
    Available roles with rank and permissions. Anonymous callers get labels
    only; authenticated callers also see each role's permission list.
    """
    return RolesResponse(
        roles=[
            RoleItem(
                value=role.value,
                label=ROLE_LABELS[role],
                rank=ROLE_RANK[role],
                permissions=sorted(p.value for p in permissions_for(role))
                if current_user is not None
                else [],
            )
            for role in Role
        ]
    )


@router.patch("/{user_id}/status", response_model=UserOut)
def update_user_status(
    user_id: str,
    body: StatusUpdateRequest,
    admin: Annotated[CurrentUser, Depends(require_role(Role.ADMIN))],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    """Activate, deactivate or suspend a user; non-active users are logged out everywhere."""
    user = auth_service.set_user_status(db, user_id, body.status, actor_id=admin.id)
    return UserOut.model_validate(user)


@router.post("/{user_id}/logout", response_model=MessageResponse)
def force_logout_user(
    user_id: str,
    admin: Annotated[CurrentUser, Depends(require_role(Role.ADMIN))],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Invalidate every refresh token of a user."""
    deleted = auth_service.force_logout(db, user_id, actor_id=admin.id)
    return MessageResponse(message=f"Logged out {deleted} session(s)")


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    admin: Annotated[CurrentUser, Depends(require_role(Role.ADMIN))],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Soft delete: mark the user inactive and end all their sessions."""
    auth_service.set_user_status(db, user_id, "inactive", actor_id=admin.id)
    return MessageResponse(message="User deleted successfully")
