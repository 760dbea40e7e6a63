"""Password hashing and JWT issuance/verification for authentication.

Access and refresh tokens are signed with distinct secrets and bound to an
issuer/audience pair, so a refresh token can never be replayed as an access
token and tokens minted for another deployment are refused.

Verification returns an explicit TokenVerification result instead of raising,
so callers must handle TokenError.EXPIRED and TokenError.INVALID separately.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

import bcrypt
import jwt

if TYPE_CHECKING:
    from formula_access.core.config import Settings

# Default bcrypt cost (rounds); overridden by Settings.BCRYPT_ROUNDS.
BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72

PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

REFRESH_TOKEN_TYPE = "refresh"


class TokenSubject(Protocol):
    """Anything carrying the identity fields embedded in tokens (ORM User, CurrentUser)."""

    id: str
    email: str
    role: str
    first_name: str
    last_name: str


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash; malformed hashes never match."""
    if not hashed:
        return False
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def hash_refresh_token(token: str) -> str:
    """SHA-256 hex digest of a raw refresh token; only the digest is ever stored."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class TokenError(str, Enum):
    INVALID = "INVALID_TOKEN"
    EXPIRED = "TOKEN_EXPIRED"


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of verifying a token: decoded claims, or the reason it was refused."""

    claims: dict[str, Any] | None = None
    error: TokenError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.claims is not None

    @property
    def user_id(self) -> str | None:
        if self.claims is None:
            return None
        value = self.claims.get("userId")
        return str(value) if value else None


def _encode(
    claims: dict[str, Any],
    secret: str,
    lifetime: timedelta,
    settings: "Settings",
) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        **claims,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": now,
        "exp": now + lifetime,
        "jti": secrets.token_urlsafe(16),
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def access_token_lifetime(settings: "Settings") -> timedelta:
    return timedelta(minutes=settings.ACCESS_TOKEN_TTL_MINUTES)


def refresh_token_lifetime(settings: "Settings") -> timedelta:
    return timedelta(days=settings.REFRESH_TOKEN_TTL_DAYS)


def issue_access_token(
    user: TokenSubject,
    settings: "Settings",
    expires_delta: timedelta | None = None,
) -> str:
    """Create an access token carrying userId, email, role and display name."""
    claims = {
        "userId": str(user.id),
        "email": user.email,
        "role": user.role,
        "firstName": user.first_name,
        "lastName": user.last_name,
    }
    lifetime = expires_delta if expires_delta is not None else access_token_lifetime(settings)
    return _encode(
        claims,
        settings.ACCESS_TOKEN_SECRET.get_secret_value(),
        lifetime,
        settings,
    )


def issue_refresh_token(
    user: TokenSubject,
    settings: "Settings",
    expires_delta: timedelta | None = None,
) -> str:
    """Create a long-lived refresh token signed with the refresh secret."""
    claims = {"userId": str(user.id), "tokenType": REFRESH_TOKEN_TYPE}
    lifetime = expires_delta if expires_delta is not None else refresh_token_lifetime(settings)
    return _encode(
        claims,
        settings.REFRESH_TOKEN_SECRET.get_secret_value(),
        lifetime,
        settings,
    )


def verify_token(
    token: str,
    secret: str,
    *,
    issuer: str,
    audience: str,
    algorithm: str = "HS256",
) -> TokenVerification:
    """
    Decode and validate a JWT against secret, issuer and audience.

    Signature, issuer, audience or shape failures yield TokenError.INVALID;
    a token past its expiry yields TokenError.EXPIRED.
    """
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            issuer=issuer,
            audience=audience,
            options={"require": ["exp", "iat", "iss", "aud"]},
        )
    except jwt.ExpiredSignatureError:
        return TokenVerification(error=TokenError.EXPIRED)
    except jwt.PyJWTError:
        return TokenVerification(error=TokenError.INVALID)
    if not claims.get("userId"):
        return TokenVerification(error=TokenError.INVALID)
    return TokenVerification(claims=claims)


def verify_access_token(token: str, settings: "Settings") -> TokenVerification:
    """Verify an access token; refresh-typed tokens are refused as invalid."""
    result = verify_token(
        token,
        settings.ACCESS_TOKEN_SECRET.get_secret_value(),
        issuer=settings.JWT_ISSUER,
        audience=settings.JWT_AUDIENCE,
        algorithm=settings.JWT_ALGORITHM,
    )
    if result.ok and result.claims.get("tokenType") == REFRESH_TOKEN_TYPE:
        return TokenVerification(error=TokenError.INVALID)
    return result


def verify_refresh_token(token: str, settings: "Settings") -> TokenVerification:
    """Verify a refresh token against the refresh secret; requires tokenType=refresh."""
    result = verify_token(
        token,
        settings.REFRESH_TOKEN_SECRET.get_secret_value(),
        issuer=settings.JWT_ISSUER,
        audience=settings.JWT_AUDIENCE,
        algorithm=settings.JWT_ALGORITHM,
    )
    if result.ok and result.claims.get("tokenType") != REFRESH_TOKEN_TYPE:
        return TokenVerification(error=TokenError.INVALID)
    return result
