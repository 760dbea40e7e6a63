"""User store queries and mutations used by the auth core."""

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session

from formula_access.core.database import db_operation
from formula_access.core.errors import NotFoundError, ValidationError
from formula_access.models import User
from formula_access.models.user import USER_STATUSES

logger = logging.getLogger(__name__)

# Fields a user may change on their own profile.
PROFILE_FIELDS = frozenset(
    {
        "first_name",
        "last_name",
        "position",
        "department",
        "phone",
        "avatar_url",
        "skills",
        "certifications",
    }
)


def get_user_by_email(db: Session, email: str) -> User | None:
    with db_operation(db, "Failed to look up user"):
        return db.query(User).filter(User.email == email.strip().lower()).first()


def get_user_by_id(db: Session, user_id: str) -> User | None:
    with db_operation(db, "Failed to look up user"):
        return db.query(User).filter(User.id == user_id).first()


def require_user(db: Session, user_id: str) -> User:
    user = get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User", code="USER_NOT_FOUND")
    return user


def list_users(db: Session) -> list[User]:
    with db_operation(db, "Failed to list users"):
        return db.query(User).order_by(User.created_at, User.email).all()


def _update(db: Session, user_id: str, values: dict[Any, Any], message: str) -> None:
    with db_operation(db, message):
        db.query(User).filter(User.id == user_id).update(values, synchronize_session=False)
        db.commit()


def record_login(db: Session, user_id: str) -> None:
    now = datetime.now(UTC)
    _update(
        db,
        user_id,
        {User.last_login_at: now, User.last_active_at: now},
        "Failed to record login",
    )


def record_activity(db: Session, user_id: str) -> None:
    _update(db, user_id, {User.last_active_at: datetime.now(UTC)}, "Failed to record activity")


def update_password_hash(db: Session, user_id: str, password_hash: str) -> None:
    _update(db, user_id, {User.password_hash: password_hash}, "Failed to update password")


def update_status(db: Session, user_id: str, status: str) -> User:
    """Set a user's status; 'inactive' also stamps deleted_at (soft delete)."""
    if status not in USER_STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'",
            details={"allowed": list(USER_STATUSES)},
        )
    user = require_user(db, user_id)
    with db_operation(db, "Failed to update user status"):
        user.status = status
        user.deleted_at = datetime.now(UTC) if status == "inactive" else None
        db.commit()
        db.refresh(user)
    return user


def update_profile(db: Session, user_id: str, updates: dict[str, Any]) -> User:
    """Apply whitelisted profile updates; strings are trimmed."""
    cleaned = {
        key: value.strip() if isinstance(value, str) else value
        for key, value in updates.items()
        if key in PROFILE_FIELDS and value is not None
    }
    if not cleaned:
        raise ValidationError("No valid updates provided")
    user = require_user(db, user_id)
    with db_operation(db, "Failed to update profile"):
        for key, value in cleaned.items():
            setattr(user, key, value)
        db.commit()
        db.refresh(user)
    logger.info("Profile updated for user %s: fields=%s", user_id, sorted(cleaned))
    return user
