"""SQLAlchemy ORM models."""

from formula_access.models.base import Base
from formula_access.models.project import Project, ProjectTeamMember
from formula_access.models.session import UserSession
from formula_access.models.user import User

__all__ = ["Base", "Project", "ProjectTeamMember", "User", "UserSession"]
