"""Load project access facts and enforce project-scoped access."""

import logging

from sqlalchemy.orm import Session, selectinload

from formula_access.core.access import AccessDecision, Actor, ProjectRef, can_access_project
from formula_access.core.database import db_operation
from formula_access.core.errors import AuthorizationError, NotFoundError
from formula_access.models import Project

logger = logging.getLogger(__name__)


def get_project_ref(db: Session, project_id: str) -> ProjectRef:
    """Read the project's manager, client and team; raises NotFoundError if absent."""
    with db_operation(db, "Failed to load project"):
        project = (
            db.query(Project)
            .options(selectinload(Project.team_members))
            .filter(Project.id == project_id)
            .first()
        )
    if project is None:
        raise NotFoundError("Project", code="PROJECT_NOT_FOUND")
    return ProjectRef(
        id=project.id,
        project_manager_id=project.project_manager_id,
        client_id=project.client_id,
        team_member_ids=frozenset(m.user_id for m in project.team_members),
    )


def check_project_access(db: Session, user: Actor, project_id: str) -> AccessDecision:
    """
    Resolve the project, then decide. Missing project is NotFoundError even
    for admins; a denial is AuthorizationError(PROJECT_ACCESS_DENIED).
    """
    project = get_project_ref(db, project_id)
    decision = can_access_project(user, project)
    if not decision.allowed:
        logger.info("Project access denied: user=%s project=%s", user.id, project_id)
        raise AuthorizationError("Project access denied", code="PROJECT_ACCESS_DENIED")
    return decision
