"""Schemas for admin user management endpoints."""

from typing import Literal

from pydantic import BaseModel

from formula_access.schemas.auth import CamelModel, UserOut


class UsersListResponse(BaseModel):
    """Response for GET /users."""

    users: list[UserOut]


class StatusUpdateRequest(CamelModel):
    status: Literal["active", "inactive", "suspended"]


class RoleItem(BaseModel):
    value: str
    label: str
    rank: int
    permissions: list[str]


class RolesResponse(BaseModel):
    roles: list[RoleItem]


class ProjectAccessResponse(CamelModel):
    """Why the current user may access a project."""

    project_id: str
    user_id: str
    reason: str
