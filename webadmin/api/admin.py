"""Admin user management. Every route requires an authenticated admin."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from webadmin.api.deps import get_current_user, get_user_store, require_admin
from webadmin.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    Role,
    UserStatus,
)
from webadmin.schemas.auth import CurrentUser, MessageResponse
from webadmin.schemas.user import UserCreate, UserResponse, UsersListResponse, UserUpdate
from webadmin.services.errors import ServiceError
from webadmin.services.user_store import UserStore

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(get_current_user), Depends(require_admin)])

DEFAULT_PAGE_SIZE = 10

_ROLES = {r.value for r in Role}
_STATUSES = {s.value for s in UserStatus}


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _validate_role(role: str) -> None:
    if role and role not in _ROLES:
        raise _bad_request("Role must be 'admin' or 'user'")


def _validate_status(value: str) -> None:
    if value and value not in _STATUSES:
        raise _bad_request("Status must be 'active' or 'disabled'")


def _validate_new_user(body: UserCreate) -> None:
    if not (body.username and body.email and body.name and body.password):
        raise _bad_request("Username, email, name, and password are required")
    if not (USERNAME_MIN_LEN <= len(body.username) <= USERNAME_MAX_LEN):
        raise _bad_request("Invalid username length")
    if not (PASSWORD_MIN_LEN <= len(body.password) <= PASSWORD_MAX_LEN):
        raise _bad_request(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters"
        )
    _validate_role(body.role)


@router.get("/users", response_model=UsersListResponse)
def list_users(
    users: Annotated[UserStore, Depends(get_user_store)],
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> UsersListResponse:
    """List users newest first. Non-positive limit means the default page size; negative offset means 0."""
    if limit <= 0:
        limit = DEFAULT_PAGE_SIZE
    if offset < 0:
        offset = 0
    page, total = users.list_users(limit, offset)
    return UsersListResponse(
        users=[UserResponse.model_validate(u) for u in page],
        total=total,
    )


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    users: Annotated[UserStore, Depends(get_user_store)],
) -> UserResponse:
    _validate_new_user(body)
    try:
        user = users.create_user(body)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return UserResponse.model_validate(user)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    users: Annotated[UserStore, Depends(get_user_store)],
) -> UserResponse:
    try:
        user = users.get_user_by_id(user_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return UserResponse.model_validate(user)


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    body: UserUpdate,
    users: Annotated[UserStore, Depends(get_user_store)],
) -> UserResponse:
    """Partial update: omitted or empty fields keep their current value."""
    _validate_role(body.role)
    _validate_status(body.status)
    try:
        user = users.update_user(user_id, body)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return UserResponse.model_validate(user)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    users: Annotated[UserStore, Depends(get_user_store)],
) -> MessageResponse:
    if user_id == current_user.id:
        raise _bad_request("Cannot delete your own account")
    users.delete_user(user_id)
    logger.info(
        "Admin deleted user",
        extra={"admin_id": current_user.id, "user_id": user_id},
    )
    return MessageResponse(message="User deleted successfully")


@router.put("/users/{user_id}/enable", response_model=UserResponse)
def enable_user(
    user_id: int,
    users: Annotated[UserStore, Depends(get_user_store)],
) -> UserResponse:
    try:
        user = users.set_status(user_id, UserStatus.ACTIVE)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return UserResponse.model_validate(user)


@router.put("/users/{user_id}/disable", response_model=UserResponse)
def disable_user(
    user_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    users: Annotated[UserStore, Depends(get_user_store)],
) -> UserResponse:
    """Disable an account. Already-issued access tokens stay valid until they expire."""
    if user_id == current_user.id:
        raise _bad_request("Cannot disable your own account")
    try:
        user = users.set_status(user_id, UserStatus.DISABLED)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    logger.info(
        "Admin disabled user",
        extra={"admin_id": current_user.id, "user_id": user_id},
    )
    return UserResponse.model_validate(user)
