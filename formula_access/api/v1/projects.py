"""Project-scoped access check endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from formula_access.api.v1.auth import get_current_user, require_project_access
from formula_access.core.access import AccessDecision
from formula_access.schemas.auth import CurrentUser
from formula_access.schemas.users import ProjectAccessResponse

router = APIRouter()


@router.get("/{project_id}/access", response_model=ProjectAccessResponse)
def get_project_access(
    project_id: str,
    decision: Annotated[AccessDecision, Depends(require_project_access)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ProjectAccessResponse:
    """
    Report why the current user may access the project (admin, project_manager,
    team_member or client_owner). 404 if it does not exist, 403 if not accessible.
    """
    return ProjectAccessResponse(
        project_id=project_id,
        user_id=current_user.id,
        reason=decision.reason.value,
    )
