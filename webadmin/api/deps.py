"""Request dependencies: service wiring plus the authentication and admin gates."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from webadmin.core.database import get_db
from webadmin.core.security import is_admin_role
from webadmin.core.tokens import TOKEN_TYPE, InvalidTokenError, TokenService
from webadmin.schemas.auth import CurrentUser
from webadmin.services.auth import AuthService
from webadmin.services.refresh_tokens import RefreshTokenStore
from webadmin.services.user_store import UserStore

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_user_store(request: Request, db: Annotated[Session, Depends(get_db)]) -> UserStore:
    settings = request.app.state.settings
    return UserStore(
        db,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
        default_avatar=settings.DEFAULT_AVATAR,
    )


def get_refresh_token_store(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> RefreshTokenStore:
    return RefreshTokenStore(db, clock=request.app.state.clock)


def get_auth_service(
    users: Annotated[UserStore, Depends(get_user_store)],
    refresh_tokens: Annotated[RefreshTokenStore, Depends(get_refresh_token_store)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> AuthService:
    return AuthService(users, refresh_tokens, tokens)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=_BEARER_CHALLENGE,
    )


def get_current_user(
    request: Request,
    tokens: Annotated[TokenService, Depends(get_token_service)],
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentUser:
    """
    Dependency: require `Authorization: Bearer <token>` with a valid access token.

    Missing header, malformed header and a bad token each get their own 401
    message; why a token was rejected is never disclosed. On success the
    identity is also left on request.state.current_user for later gates.
    """
    if not authorization:
        raise _unauthorized("Authorization header required")

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != TOKEN_TYPE:
        raise _unauthorized("Invalid authorization header format")

    try:
        claims = tokens.validate(parts[1])
    except InvalidTokenError as e:
        raise _unauthorized(e.message) from e

    current_user = CurrentUser(id=claims.user_id, username=claims.username, role=claims.role)
    request.state.current_user = current_user
    return current_user


def require_admin(request: Request) -> CurrentUser:
    """
    Dependency: 403 unless the authenticated role is exactly 'admin'.

    Reads the identity left by get_current_user; with no identity present it
    refuses rather than failing open.
    """
    current_user = getattr(request.state, "current_user", None)
    if current_user is None or not is_admin_role(current_user.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user
