"""Per-request authentication: bearer token -> verified claims -> live user.

The pipeline is linear with early exits:

    no header                  -> MISSING_TOKEN
    header not "Bearer <tok>"  -> INVALID_TOKEN
    bad signature/claims       -> INVALID_TOKEN
    expired                    -> TOKEN_EXPIRED
    user gone                  -> USER_NOT_FOUND
    user not active            -> ACCOUNT_INACTIVE
    otherwise                  -> identity, last_active_at touched

The user row is re-read on every request so deactivation takes effect before
the token expires. Results are returned, not raised; the route layer turns a
failure into the matching AuthenticationError.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from formula_access.core.errors import AuthenticationError, DatabaseError
from formula_access.core.security import TokenError, verify_access_token
from formula_access.schemas.auth import CurrentUser
from formula_access.services.users import get_user_by_id, record_activity

if TYPE_CHECKING:
    from formula_access.core.config import Settings

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class AuthFailure(str, Enum):
    MISSING_TOKEN = "MISSING_TOKEN"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"


_FAILURE_MESSAGES = {
    AuthFailure.MISSING_TOKEN: "Access token required",
    AuthFailure.INVALID_TOKEN: "Invalid token",
    AuthFailure.TOKEN_EXPIRED: "Token expired",
    AuthFailure.USER_NOT_FOUND: "User not found",
    AuthFailure.ACCOUNT_INACTIVE: "Account is not active",
}


@dataclass(frozen=True)
class AuthResult:
    identity: CurrentUser | None = None
    token: str | None = None
    failure: AuthFailure | None = None

    @property
    def ok(self) -> bool:
        return self.identity is not None

    def to_error(self) -> AuthenticationError:
        failure = self.failure or AuthFailure.INVALID_TOKEN
        return AuthenticationError(_FAILURE_MESSAGES[failure], code=failure.value)


def extract_bearer_token(authorization: str | None) -> tuple[str | None, AuthFailure | None]:
    """Split an Authorization header into its token, or report why it cannot be used."""
    if authorization is None or not authorization.strip():
        return None, AuthFailure.MISSING_TOKEN
    if not authorization.startswith(BEARER_PREFIX):
        return None, AuthFailure.INVALID_TOKEN
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        return None, AuthFailure.INVALID_TOKEN
    return token, None


def authenticate(
    db: Session,
    authorization: str | None,
    settings: "Settings",
) -> AuthResult:
    """Run the full pipeline for one request."""
    token, failure = extract_bearer_token(authorization)
    if failure is not None:
        return AuthResult(failure=failure)

    verification = verify_access_token(token, settings)
    if not verification.ok:
        if verification.error is TokenError.EXPIRED:
            return AuthResult(failure=AuthFailure.TOKEN_EXPIRED)
        return AuthResult(failure=AuthFailure.INVALID_TOKEN)

    user = get_user_by_id(db, verification.user_id)
    if user is None:
        return AuthResult(failure=AuthFailure.USER_NOT_FOUND)
    if not user.is_active:
        return AuthResult(failure=AuthFailure.ACCOUNT_INACTIVE)

    identity = CurrentUser.model_validate(user)
    record_activity(db, user.id)
    return AuthResult(identity=identity, token=token)


def authenticate_optional(
    db: Session,
    authorization: str | None,
    settings: "Settings",
) -> CurrentUser | None:
    """Same pipeline, but any failure means anonymous instead of an error."""
    try:
        result = authenticate(db, authorization, settings)
    except DatabaseError:
        logger.warning("Optional authentication skipped: storage unavailable")
        return None
    if not result.ok:
        if result.failure is not AuthFailure.MISSING_TOKEN:
            logger.debug("Optional authentication ignored: %s", result.failure.value)
        return None
    return result.identity
