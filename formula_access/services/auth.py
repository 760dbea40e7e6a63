"""Login, registration, token refresh, logout and password management.

Authentication failures never reveal whether an email exists: unknown email
and wrong password both yield "Invalid email or password". Logout, password
change and deactivation delete every session of the user, so a leaked
refresh token is neutralized on all devices.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import lru_cache
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from formula_access.core.database import db_operation
from formula_access.core.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DatabaseError,
    ValidationError,
)
from formula_access.core.roles import Role
from formula_access.core.security import (
    PASSWORD_MIN_LEN,
    access_token_lifetime,
    hash_password,
    hash_refresh_token,
    issue_access_token,
    issue_refresh_token,
    refresh_token_lifetime,
    verify_password,
    verify_refresh_token,
)
from formula_access.models import User
from formula_access.schemas.auth import RegisterRequest
from formula_access.services import sessions, users
from formula_access.services.audit import record_user_action

if TYPE_CHECKING:
    from formula_access.core.config import Settings

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH = "Invalid or expired refresh token"
ACCOUNT_INACTIVE = "Account is not active"


@lru_cache(maxsize=4)
def _dummy_password_hash(rounds: int) -> str:
    """Stand-in hash verified for unknown emails, at the configured cost."""
    return hash_password("formula-access-dummy-password", rounds)


@dataclass(frozen=True)
class AuthTokens:
    """Result of login/register: the user row plus a fresh token pair."""

    user: User
    access_token: str
    refresh_token: str
    expires_in: int


def _start_session(db: Session, user: User, settings: "Settings") -> AuthTokens:
    access_token = issue_access_token(user, settings)
    refresh_token = issue_refresh_token(user, settings)
    sessions.create_session(
        db,
        user_id=user.id,
        token_hash=hash_refresh_token(refresh_token),
        expires_at=datetime.now(UTC) + refresh_token_lifetime(settings),
    )
    return AuthTokens(
        user=user,
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=int(access_token_lifetime(settings).total_seconds()),
    )


def login(db: Session, email: str, password: str, settings: "Settings") -> AuthTokens:
    """Check credentials and open a new refresh-token session."""
    user = users.get_user_by_email(db, email)
    if user is None:
        verify_password(password, _dummy_password_hash(settings.BCRYPT_ROUNDS))
        logger.info("Login failed: unknown email")
        raise AuthenticationError(INVALID_CREDENTIALS)
    # Account status is only disclosed once the password matches
    if not verify_password(password, user.password_hash):
        logger.info("Login failed: wrong password for user %s", user.id)
        raise AuthenticationError(INVALID_CREDENTIALS)
    if not user.is_active:
        logger.info("Login refused for inactive user %s", user.id)
        raise AuthenticationError(ACCOUNT_INACTIVE, code="ACCOUNT_INACTIVE")

    tokens = _start_session(db, user, settings)
    users.record_login(db, user.id)
    db.refresh(user)
    record_user_action(user.id, "login")
    return tokens


def register(
    db: Session,
    profile: RegisterRequest,
    settings: "Settings",
) -> AuthTokens:
    """Create an active user and open their first session."""
    if profile.role is Role.ADMIN and not settings.ALLOW_ADMIN_SELF_REGISTRATION:
        raise AuthorizationError(
            "Admin role cannot be self-assigned",
            code="INSUFFICIENT_PERMISSIONS",
        )
    email = profile.email.strip().lower()
    if users.get_user_by_email(db, email) is not None:
        raise ConflictError("User with this email already exists")

    user = User(
        email=email,
        password_hash=hash_password(profile.password, settings.BCRYPT_ROUNDS),
        first_name=profile.first_name.strip(),
        last_name=profile.last_name.strip(),
        role=profile.role.value,
        position=profile.position.strip() if profile.position else None,
        department=profile.department.strip() if profile.department else None,
        phone=profile.phone.strip() if profile.phone else None,
        skills=list(profile.skills),
        certifications=list(profile.certifications),
        status="active",
        email_verified=False,
    )
    # A concurrent registration with the same email surfaces as ConflictError here
    with db_operation(db, "Failed to create user"):
        db.add(user)
        db.commit()
        db.refresh(user)

    tokens = _start_session(db, user, settings)
    record_user_action(user.id, "register", {"role": user.role})
    logger.info("Registered user %s with role %s", user.id, user.role)
    return tokens


def refresh(db: Session, refresh_token: str, settings: "Settings") -> tuple[str, int]:
    """
    Exchange a refresh token for a new access token.

    Returns (access_token, expires_in_seconds). The refresh token itself is
    not rotated; it stays valid until expiry, logout or password change.
    """
    verification = verify_refresh_token(refresh_token, settings)
    if not verification.ok:
        raise AuthenticationError(INVALID_REFRESH, code=verification.error.value)

    session = sessions.find_session_by_hash(db, hash_refresh_token(refresh_token))
    if session is None or sessions.is_session_expired(session):
        raise AuthenticationError(INVALID_REFRESH)
    if session.user is None or not session.user.is_active:
        raise AuthenticationError(ACCOUNT_INACTIVE, code="ACCOUNT_INACTIVE")

    access_token = issue_access_token(session.user, settings)
    sessions.touch_session(db, session.id)
    return access_token, int(access_token_lifetime(settings).total_seconds())


def logout(db: Session, user_id: str) -> None:
    """Delete every session of the user. Idempotent and never fails the caller."""
    try:
        sessions.delete_sessions_for_user(db, user_id)
    except DatabaseError:
        logger.error("Failed to delete sessions on logout for user %s", user_id)
        return
    record_user_action(user_id, "logout")


def change_password(
    db: Session,
    user_id: str,
    current_password: str,
    new_password: str,
    settings: "Settings",
) -> None:
    """Verify the current password, store the new hash, and force re-login everywhere."""
    if not current_password or not new_password:
        raise ValidationError("Current password and new password are required")
    if len(new_password) < PASSWORD_MIN_LEN:
        raise ValidationError(
            f"New password must be at least {PASSWORD_MIN_LEN} characters long"
        )

    user = users.require_user(db, user_id)
    if not verify_password(current_password, user.password_hash):
        raise AuthenticationError("Current password is incorrect")

    users.update_password_hash(db, user.id, hash_password(new_password, settings.BCRYPT_ROUNDS))
    sessions.delete_sessions_for_user(db, user.id)
    record_user_action(user.id, "password_change")


def force_logout(db: Session, user_id: str, actor_id: str) -> int:
    """Admin action: delete all sessions of another user."""
    users.require_user(db, user_id)
    deleted = sessions.delete_sessions_for_user(db, user_id)
    record_user_action(actor_id, "force_logout", {"target_user_id": user_id, "sessions": deleted})
    return deleted


def set_user_status(db: Session, user_id: str, status: str, actor_id: str) -> User:
    """Admin action: change status; any non-active status also ends all sessions."""
    user = users.update_status(db, user_id, status)
    if status != "active":
        sessions.delete_sessions_for_user(db, user_id)
    record_user_action(actor_id, "status_change", {"target_user_id": user_id, "status": status})
    return user
