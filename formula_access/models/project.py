"""ORM models for the project fields the access decision engine reads."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import relationship

from formula_access.models.base import Base


class Project(Base):
    """
    Project as seen by authorization: its manager, its client and its team.

    client_id is compared directly against user ids when a client-role user
    asks for access; there is no separate client-to-user mapping.
    """

    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    project_manager_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    client_id = Column(String(36), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    team_members = relationship(
        "ProjectTeamMember",
        back_populates="project",
        cascade="all, delete-orphan",
    )


class ProjectTeamMember(Base):
    """Membership of a user in a project's team."""

    __tablename__ = "project_team_members"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_team_member"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = Column(String(32), nullable=True)

    project = relationship("Project", back_populates="team_members")
