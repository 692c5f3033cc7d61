"""JWT access and refresh token issuance and access-token validation.

A single TokenService is built at startup from an explicit SigningConfig and
shared read-only by every request. Access tokens are stateless: validity is
signature plus expiry, never a server-side lookup. Refresh tokens are signed
too, but they carry no user binding and are only ever looked up by their
stored string value (see webadmin.services.refresh_tokens).
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Protocol

import jwt

if TYPE_CHECKING:
    from webadmin.core.config import Settings

logger = logging.getLogger(__name__)

TOKEN_TYPE = "Bearer"
INVALID_TOKEN_MESSAGE = "Invalid or expired token"


class TokenSigningError(Exception):
    """Raised when an access token cannot be signed."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidTokenError(Exception):
    """Raised for a bad signature, malformed token or expired token. The cause is not exposed."""

    def __init__(self, message: str = INVALID_TOKEN_MESSAGE) -> None:
        self.message = message
        super().__init__(message)


class TokenSubject(Protocol):
    id: int
    username: str
    role: str


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class SigningConfig:
    """Signing secret and lifetimes; set once before serving begins and never mutated."""

    secret: bytes = field(repr=False)
    algorithm: str = "HS256"
    access_token_ttl: timedelta = timedelta(hours=24)
    refresh_token_ttl: timedelta = timedelta(days=7)

    def __post_init__(self) -> None:
        if not self.secret:
            raise ValueError("signing secret must be non-empty")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "SigningConfig":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value().encode("utf-8"),
            algorithm=settings.JWT_ALGORITHM,
            access_token_ttl=timedelta(seconds=settings.ACCESS_TOKEN_EXPIRE_SECONDS),
            refresh_token_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )


@dataclass(frozen=True)
class AccessClaims:
    """Identity claims extracted from a validated access token."""

    user_id: int
    username: str
    role: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class IssuedRefreshToken:
    token: str
    expires_at: datetime


def _numeric_date(value: datetime) -> int:
    return int(value.timestamp())


class TokenService:
    """Token issuer and validator over one signing secret and algorithm."""

    def __init__(
        self,
        config: SigningConfig,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._config = config
        self._clock = clock

    @property
    def expires_in(self) -> int:
        """Access-token lifetime in whole seconds, as reported to clients."""
        return int(self._config.access_token_ttl.total_seconds())

    def _sign(self, payload: dict[str, Any]) -> str:
        return jwt.encode(payload, self._config.secret, algorithm=self._config.algorithm)

    def issue_access_token(self, user: TokenSubject) -> str:
        """Sign an access token for user. Raises TokenSigningError; never returns a degraded token."""
        now = self._clock()
        payload: dict[str, Any] = {
            "user_id": user.id,
            "username": user.username,
            "role": user.role,
            "iat": _numeric_date(now),
            "exp": _numeric_date(now + self._config.access_token_ttl),
        }
        try:
            return self._sign(payload)
        except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as e:
            logger.error("Access token signing failed: %s", type(e).__name__)
            raise TokenSigningError("Failed to generate access token") from e

    def issue_refresh_token(self) -> IssuedRefreshToken | None:
        """
        Sign a refresh token carrying only iat, exp and a random jti.

        Returns None when signing fails; callers treat that as "no persistent session".
        """
        now = self._clock()
        expires_at = now + self._config.refresh_token_ttl
        payload = {
            "jti": uuid.uuid4().hex,
            "iat": _numeric_date(now),
            "exp": _numeric_date(expires_at),
        }
        try:
            token = self._sign(payload)
        except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as e:
            logger.warning("Refresh token signing failed: %s", type(e).__name__)
            return None
        return IssuedRefreshToken(token=token, expires_at=expires_at)

    def validate(self, token: str) -> AccessClaims:
        """
        Verify signature, structure and expiry of an access token; return its claims.

        Expiry is checked against the injected clock: a token is accepted strictly
        before its exp instant and rejected from exp onwards.
        Raises InvalidTokenError on any failure.
        """
        if not token:
            raise InvalidTokenError()
        try:
            payload = jwt.decode(
                token,
                self._config.secret,
                algorithms=[self._config.algorithm],
                options={
                    "require": ["exp", "iat"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.PyJWTError as e:
            logger.debug("JWT decode failed: %s", type(e).__name__)
            raise InvalidTokenError() from e

        exp = payload.get("exp")
        iat = payload.get("iat")
        user_id = payload.get("user_id")
        username = payload.get("username")
        role = payload.get("role")
        if not _is_int(exp) or not _is_int(iat) or not _is_int(user_id):
            raise InvalidTokenError()
        if not isinstance(username, str) or not isinstance(role, str):
            raise InvalidTokenError()

        if self._clock().timestamp() >= exp:
            raise InvalidTokenError()

        return AccessClaims(
            user_id=user_id,
            username=username,
            role=role,
            issued_at=datetime.fromtimestamp(iat, UTC),
            expires_at=datetime.fromtimestamp(exp, UTC),
        )


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
