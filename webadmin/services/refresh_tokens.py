"""Refresh-token persistence: save, look up by value, delete, and expiry pruning."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from webadmin.core.tokens import utcnow
from webadmin.models import RefreshToken
from webadmin.services.errors import InternalError, UnauthenticatedError

logger = logging.getLogger(__name__)


class RefreshTokenNotFoundError(UnauthenticatedError):
    """No usable row for the token: never stored, already deleted, or expired."""

    def __init__(self, message: str = "Refresh token not found or expired") -> None:
        super().__init__(message)


class RefreshTokenStoreError(InternalError):
    """The database rejected or failed a refresh-token operation."""


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class RefreshTokenStore:
    """
    Refresh tokens are looked up by their exact stored string, never decoded.

    Expired rows are deleted when someone tries to use them. Bulk pruning is
    purge_expired, which only the operator CLI calls.
    """

    def __init__(self, session: Session, clock: Callable[[], datetime] = utcnow) -> None:
        self._session = session
        self._clock = clock

    def save(self, user_id: int, token: str, expires_at: datetime) -> RefreshToken:
        row = RefreshToken(user_id=user_id, token=token, expires_at=expires_at)
        self._session.add(row)
        try:
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            raise RefreshTokenStoreError("Failed to store refresh token") from e
        return row

    def validate(self, token: str) -> int:
        """Return the owning user id. Expired rows are deleted and reported as not found."""
        try:
            row = self._session.query(RefreshToken).filter(RefreshToken.token == token).first()
        except SQLAlchemyError as e:
            raise RefreshTokenStoreError("Failed to look up refresh token") from e
        if row is None:
            raise RefreshTokenNotFoundError()
        if _as_utc(row.expires_at) <= self._clock():
            logger.info("Refresh token expired; deleting", extra={"user_id": row.user_id})
            self.delete(token)
            raise RefreshTokenNotFoundError()
        return row.user_id

    def delete(self, token: str) -> int:
        """Delete every row holding token. Deleting a missing token is not an error."""
        try:
            deleted = (
                self._session.query(RefreshToken)
                .filter(RefreshToken.token == token)
                .delete(synchronize_session=False)
            )
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            raise RefreshTokenStoreError("Failed to delete refresh token") from e
        return deleted

    def exists(self, token: str) -> bool:
        return (
            self._session.query(RefreshToken.id).filter(RefreshToken.token == token).first()
            is not None
        )

    def delete_for_user(self, user_id: int) -> int:
        deleted = (
            self._session.query(RefreshToken)
            .filter(RefreshToken.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self._session.commit()
        return deleted

    def purge_expired(self) -> int:
        """Bulk delete of rows whose expiry has passed. Idempotent."""
        now = self._clock()
        deleted = (
            self._session.query(RefreshToken)
            .filter(RefreshToken.expires_at <= now)
            .delete(synchronize_session=False)
        )
        self._session.commit()
        if deleted > 0:
            logger.info(
                "Refresh token purge: cutoff=%s, tokens_deleted=%s",
                now.isoformat(),
                deleted,
            )
        return deleted
