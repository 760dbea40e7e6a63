"""Role hierarchy and role-to-permission tables.

Roles form a total order used for "at least this privileged" checks.
Permissions are checked by exact membership in the role's own list: a role
does not inherit the permissions of the roles ranked below or above it, so
every permission a role needs is listed explicitly.

Both tables are read-only mappings built once at import time. Unknown roles
rank 0 and hold no permissions.
"""

from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Role(str, Enum):
    """The six user roles, highest privilege first."""

    ADMIN = "admin"
    PROJECT_MANAGER = "project_manager"
    DESIGNER = "designer"
    COORDINATOR = "coordinator"
    CRAFTSMAN = "craftsman"
    CLIENT = "client"


class Permission(str, Enum):
    """Capability strings checked by exact membership."""

    # Global
    VIEW_ALL = "view_all"
    EDIT_ALL = "edit_all"
    DELETE_ALL = "delete_all"
    MANAGE_USERS = "manage_users"
    MANAGE_PROJECTS = "manage_projects"
    MANAGE_SYSTEM = "manage_system"
    VIEW_AUDIT_LOGS = "view_audit_logs"

    # Assigned work
    VIEW_ASSIGNED = "view_assigned"
    EDIT_ASSIGNED = "edit_assigned"
    MANAGE_SCOPE = "manage_scope"
    MANAGE_MATERIALS = "manage_materials"
    VIEW_MATERIALS = "view_materials"
    VIEW_REPORTS = "view_reports"

    # Drawings
    APPROVE_DRAWINGS = "approve_drawings"
    EDIT_DRAWINGS = "edit_drawings"
    CREATE_DRAWINGS = "create_drawings"
    VIEW_DRAWINGS = "view_drawings"

    # Tasks and workflow
    UPDATE_TASKS = "update_tasks"
    UPDATE_TASK_PROGRESS = "update_task_progress"
    MANAGE_WORKFLOW = "manage_workflow"

    # Comments
    COMMENT_ON_PROJECTS = "comment_on_projects"
    COMMENT_ON_TASKS = "comment_on_tasks"

    # Clients
    VIEW_OWN_PROJECTS = "view_own_projects"
    COMMENT_ON_OWN_PROJECTS = "comment_on_own_projects"


ROLE_RANK: Mapping[Role, int] = MappingProxyType(
    {
        Role.ADMIN: 5,
        Role.PROJECT_MANAGER: 4,
        Role.DESIGNER: 3,
        Role.COORDINATOR: 2,
        Role.CRAFTSMAN: 1,
        Role.CLIENT: 0,
    }
)

ROLE_PERMISSIONS: Mapping[Role, frozenset[Permission]] = MappingProxyType(
    {
        Role.ADMIN: frozenset(
            {
                Permission.VIEW_ALL,
                Permission.EDIT_ALL,
                Permission.DELETE_ALL,
                Permission.MANAGE_USERS,
                Permission.MANAGE_PROJECTS,
                Permission.MANAGE_SYSTEM,
                Permission.VIEW_AUDIT_LOGS,
            }
        ),
        Role.PROJECT_MANAGER: frozenset(
            {
                Permission.VIEW_ASSIGNED,
                Permission.EDIT_ASSIGNED,
                Permission.MANAGE_SCOPE,
                Permission.APPROVE_DRAWINGS,
                Permission.MANAGE_MATERIALS,
                Permission.VIEW_REPORTS,
            }
        ),
        Role.DESIGNER: frozenset(
            {
                Permission.VIEW_ASSIGNED,
                Permission.EDIT_DRAWINGS,
                Permission.CREATE_DRAWINGS,
                Permission.VIEW_MATERIALS,
                Permission.COMMENT_ON_PROJECTS,
            }
        ),
        Role.COORDINATOR: frozenset(
            {
                Permission.VIEW_ASSIGNED,
                Permission.UPDATE_TASKS,
                Permission.MANAGE_WORKFLOW,
                Permission.VIEW_MATERIALS,
                Permission.COMMENT_ON_PROJECTS,
            }
        ),
        Role.CRAFTSMAN: frozenset(
            {
                Permission.VIEW_ASSIGNED,
                Permission.UPDATE_TASK_PROGRESS,
                Permission.VIEW_DRAWINGS,
                Permission.COMMENT_ON_TASKS,
            }
        ),
        Role.CLIENT: frozenset(
            {
                Permission.VIEW_OWN_PROJECTS,
                Permission.COMMENT_ON_OWN_PROJECTS,
                Permission.VIEW_REPORTS,
            }
        ),
    }
)

ROLE_LABELS: Mapping[Role, str] = MappingProxyType(
    {
        Role.ADMIN: "Administrator",
        Role.PROJECT_MANAGER: "Project Manager",
        Role.DESIGNER: "Designer",
        Role.COORDINATOR: "Coordinator",
        Role.CRAFTSMAN: "Craftsman",
        Role.CLIENT: "Client",
    }
)


def parse_role(role: str | Role | None) -> Role | None:
    """Return the Role for a stored role string, or None when unrecognized."""
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return None


def role_rank(role: str | Role | None) -> int:
    """Numeric rank of a role (higher is more privileged); unknown roles rank 0."""
    parsed = parse_role(role)
    if parsed is None:
        return 0
    return ROLE_RANK[parsed]


def has_role(actual_role: str | Role | None, required_role: str | Role) -> bool:
    """True if actual_role ranks at or above required_role. Unknown roles never pass."""
    if parse_role(actual_role) is None:
        return False
    return role_rank(actual_role) >= role_rank(required_role)


def permissions_for(role: str | Role | None) -> frozenset[Permission]:
    """Permissions explicitly granted to a role; empty for unknown roles."""
    parsed = parse_role(role)
    if parsed is None:
        return frozenset()
    return ROLE_PERMISSIONS[parsed]


def has_permission(role: str | Role | None, permission: str | Permission) -> bool:
    """Exact membership check; no inheritance across the hierarchy."""
    try:
        perm = Permission(permission)
    except ValueError:
        return False
    return perm in permissions_for(role)
