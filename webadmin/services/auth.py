"""Login, refresh and logout flows over the user store, refresh-token store and token service."""

import logging
from functools import lru_cache

from sqlalchemy.exc import SQLAlchemyError

from webadmin.core.security import UserStatus, hash_password, verify_password
from webadmin.core.tokens import TOKEN_TYPE, TokenService, TokenSigningError
from webadmin.schemas.auth import TokenResponse
from webadmin.services.errors import BadRequestError, InternalError, UnauthenticatedError
from webadmin.services.refresh_tokens import (
    RefreshTokenNotFoundError,
    RefreshTokenStore,
    RefreshTokenStoreError,
)
from webadmin.services.user_store import UserNotFoundError, UserStore

logger = logging.getLogger(__name__)


@lru_cache
def _dummy_password_hash(rounds: int) -> str:
    """A hash no password matches, at the store's bcrypt cost."""
    return hash_password("no-such-user-placeholder", rounds=rounds)


class AuthBadRequestError(BadRequestError):
    pass


class InvalidCredentialsError(UnauthenticatedError):
    """Unknown user, disabled user and wrong password all look the same to the caller."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class InvalidRefreshTokenError(UnauthenticatedError):
    def __init__(self) -> None:
        super().__init__("Invalid or expired refresh token")


class AuthInternalError(InternalError):
    pass


class AuthService:
    def __init__(
        self,
        users: UserStore,
        refresh_tokens: RefreshTokenStore,
        tokens: TokenService,
    ) -> None:
        self._users = users
        self._refresh_tokens = refresh_tokens
        self._tokens = tokens

    def login(self, username: str, password: str, remember_me: bool = False) -> TokenResponse:
        """
        Verify credentials against active users and issue an access token.

        With remember_me a refresh token is also issued and stored. If that
        fails the login still succeeds, just without a refresh token.
        """
        if not username or not password:
            raise AuthBadRequestError("Username and password are required")

        try:
            user = self._users.get_user_by_username(username, active_only=True)
        except UserNotFoundError as e:
            # Unknown users pay the same bcrypt cost as a wrong password.
            verify_password(password, _dummy_password_hash(self._users.bcrypt_rounds))
            logger.info("Login failed: no active user", extra={"username": username})
            raise InvalidCredentialsError() from e
        except SQLAlchemyError as e:
            logger.error("Login failed: user lookup error: %s", type(e).__name__)
            raise AuthInternalError("Failed to authenticate") from e

        if not verify_password(password, user.password_hash):
            logger.info("Login failed: password mismatch", extra={"username": username})
            raise InvalidCredentialsError()

        response = TokenResponse(
            access_token=self._issue_access_token(user),
            token_type=TOKEN_TYPE,
            expires_in=self._tokens.expires_in,
        )
        if remember_me:
            response.refresh_token = self._persist_refresh_token(user.id)
        logger.info(
            "Login succeeded",
            extra={"user_id": user.id, "remember_me": remember_me},
        )
        return response

    def refresh(self, refresh_token: str) -> TokenResponse:
        """Exchange a stored refresh token for a new access token. The refresh token is not rotated."""
        if not refresh_token:
            raise AuthBadRequestError("Refresh token is required")

        try:
            user_id = self._refresh_tokens.validate(refresh_token)
        except RefreshTokenNotFoundError as e:
            raise InvalidRefreshTokenError() from e
        except RefreshTokenStoreError as e:
            logger.error("Refresh failed: %s", e.message)
            raise AuthInternalError("Failed to validate refresh token") from e

        try:
            user = self._users.get_user_by_id(user_id)
        except UserNotFoundError as e:
            raise InvalidRefreshTokenError() from e
        if user.status != UserStatus.ACTIVE.value:
            logger.info("Refresh refused for disabled user", extra={"user_id": user.id})
            raise InvalidRefreshTokenError()

        return TokenResponse(
            access_token=self._issue_access_token(user),
            token_type=TOKEN_TYPE,
            expires_in=self._tokens.expires_in,
        )

    def logout(self, refresh_token: str | None) -> None:
        """Best-effort delete of the given refresh token. Never raises."""
        if not refresh_token:
            return
        try:
            self._refresh_tokens.delete(refresh_token)
        except RefreshTokenStoreError as e:
            logger.warning("Logout could not delete refresh token: %s", e.message)

    def _issue_access_token(self, user) -> str:
        try:
            return self._tokens.issue_access_token(user)
        except TokenSigningError as e:
            raise AuthInternalError(e.message) from e

    def _persist_refresh_token(self, user_id: int) -> str | None:
        issued = self._tokens.issue_refresh_token()
        if issued is None:
            return None
        try:
            self._refresh_tokens.save(user_id, issued.token, issued.expires_at)
        except RefreshTokenStoreError as e:
            logger.warning(
                "Refresh token not persisted; continuing without one",
                extra={"user_id": user_id, "reason": e.message},
            )
            return None
        return issued.token
