"""Project-scoped access decisions.

A user may access a project when any of these hold: they are an admin, they
manage the project, they sit on its team, or they are a client-role user
whose id is the project's client id. The decision is a pure function of the
user and a freshly loaded ProjectRef; nothing is cached between requests, so
team changes take effect on the next request.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from formula_access.core.roles import Role


class AccessReason(str, Enum):
    ADMIN = "admin"
    PROJECT_MANAGER = "project_manager"
    TEAM_MEMBER = "team_member"
    CLIENT_OWNER = "client_owner"
    DENIED = "denied"


class Actor(Protocol):
    id: str
    role: str


@dataclass(frozen=True)
class ProjectRef:
    """The project fields an access decision depends on."""

    id: str
    project_manager_id: str | None = None
    client_id: str | None = None
    team_member_ids: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class AccessDecision:
    reason: AccessReason

    @property
    def allowed(self) -> bool:
        return self.reason is not AccessReason.DENIED


def can_access_project(user: Actor, project: ProjectRef) -> AccessDecision:
    """Decide whether user may access project; first matching rule wins."""
    if user.role == Role.ADMIN.value:
        return AccessDecision(AccessReason.ADMIN)
    if project.project_manager_id is not None and user.id == project.project_manager_id:
        return AccessDecision(AccessReason.PROJECT_MANAGER)
    if user.id in project.team_member_ids:
        return AccessDecision(AccessReason.TEAM_MEMBER)
    # client_id holds a Client entity id but is matched against the user id
    if (
        user.role == Role.CLIENT.value
        and project.client_id is not None
        and user.id == project.client_id
    ):
        return AccessDecision(AccessReason.CLIENT_OWNER)
    return AccessDecision(AccessReason.DENIED)
