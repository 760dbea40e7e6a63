"""ORM model for application users (authentication and RBAC)."""

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, String, func

from formula_access.models.base import Base

USER_STATUSES = ("active", "inactive", "suspended")


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: one of admin, project_manager, designer, coordinator, craftsman, client
    status: 'active', 'inactive' or 'suspended'; only active users can authenticate
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(String(32), nullable=False, default="craftsman")
    status = Column(String(16), nullable=False, default="active", index=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    # Touched on every authenticated request; last_login_at only on login
    last_active_at = Column(DateTime(timezone=True), nullable=True)

    position = Column(String(100), nullable=True)
    department = Column(String(100), nullable=True)
    phone = Column(String(20), nullable=True)
    avatar_url = Column(String(1024), nullable=True)
    skills = Column(JSON, nullable=False, default=list)
    certifications = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_active(self) -> bool:
        return self.status == "active"
