"""Refresh-token session store.

One row per outstanding refresh token, keyed by the token's SHA-256 digest.
There are no locks here: create, touch and delete are single-row (or single
statement) operations and rely on the database's own atomicity. A refresh
racing a logout simply fails its lookup or expiry check.
"""

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session, joinedload

from formula_access.core.database import db_operation
from formula_access.models import UserSession

if TYPE_CHECKING:
    from formula_access.core.config import Settings

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def create_session(
    db: Session,
    user_id: str,
    token_hash: str,
    expires_at: datetime,
) -> UserSession:
    """Persist a session for a refresh-token digest."""
    now = datetime.now(UTC)
    session = UserSession(
        user_id=user_id,
        token_hash=token_hash,
        expires_at=expires_at,
        last_used_at=now,
        created_at=now,
    )
    with db_operation(db, "Failed to create session"):
        db.add(session)
        db.commit()
        db.refresh(session)
    return session


def find_session_by_hash(db: Session, token_hash: str) -> UserSession | None:
    """Look up a session by token digest, loading its owning user."""
    with db_operation(db, "Failed to look up session"):
        return (
            db.query(UserSession)
            .options(joinedload(UserSession.user))
            .filter(UserSession.token_hash == token_hash)
            .first()
        )


def touch_session(db: Session, session_id: str) -> None:
    """Record that the session was just used for a refresh."""
    with db_operation(db, "Failed to update session"):
        db.query(UserSession).filter(UserSession.id == session_id).update(
            {UserSession.last_used_at: datetime.now(UTC)},
            synchronize_session=False,
        )
        db.commit()


def delete_sessions_for_user(db: Session, user_id: str) -> int:
    """Invalidate every outstanding refresh token of a user. Returns rows deleted."""
    with db_operation(db, "Failed to delete sessions"):
        deleted = (
            db.query(UserSession)
            .filter(UserSession.user_id == user_id)
            .delete(synchronize_session=False)
        )
        db.commit()
    logger.info("Deleted %s session(s) for user %s", deleted, user_id)
    return deleted


def count_sessions_for_user(db: Session, user_id: str) -> int:
    with db_operation(db, "Failed to count sessions"):
        return db.query(UserSession).filter(UserSession.user_id == user_id).count()


def is_session_expired(session: UserSession, now: datetime | None = None) -> bool:
    """True once now has reached the session's expiry instant."""
    now = now or datetime.now(UTC)
    return as_utc(session.expires_at) <= now


def purge_expired_sessions(db: Session, settings: "Settings") -> int:
    """
    Delete sessions whose expiry has passed. Idempotent: safe to run repeatedly.

    Returns the number of rows deleted (0 when SESSION_CLEANUP_ENABLED is off).
    """
    if not settings.SESSION_CLEANUP_ENABLED:
        logger.info("Session cleanup is disabled (SESSION_CLEANUP_ENABLED=false); skipping.")
        return 0

    cutoff = datetime.now(UTC)
    with db_operation(db, "Failed to purge expired sessions"):
        deleted_count = (
            db.query(UserSession)
            .filter(UserSession.expires_at <= cutoff)
            .delete(synchronize_session=False)
        )
        db.commit()

    if deleted_count > 0:
        logger.info(
            "Session cleanup: cutoff=%s, sessions_deleted=%s",
            cutoff.isoformat(),
            deleted_count,
        )
    return deleted_count
