"""Login, refresh and logout endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from webadmin.api.deps import get_auth_service
from webadmin.schemas.auth import LoginRequest, MessageResponse, RefreshRequest, TokenResponse
from webadmin.services.auth import AuthService
from webadmin.services.errors import ServiceError

router = APIRouter()


@router.post("/login", response_model=TokenResponse, response_model_exclude_none=True)
def login(
    body: LoginRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenResponse:
    """
    Authenticate with username and password; returns a JWT access token.
    With rememberMe, a refresh token is included when it could be stored.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    try:
        return auth.login(body.username, body.password, body.remember_me)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.post("/refresh", response_model=TokenResponse, response_model_exclude_none=True)
def refresh(
    body: RefreshRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenResponse:
    """Exchange a refresh token for a new access token."""
    try:
        return auth.refresh(body.refresh_token)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    """
    Delete the given refresh token, if any. Always succeeds: an empty, missing
    or unparsable body simply means there is nothing to delete.
    """
    refresh_token = None
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("refresh_token"), str):
        refresh_token = payload["refresh_token"]

    await run_in_threadpool(auth.logout, refresh_token)
    return MessageResponse(message="Logged out successfully")
