"""Pydantic request/response schemas."""

from webadmin.schemas.auth import (
    CurrentUser,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    TokenResponse,
)
from webadmin.schemas.health import HealthResponse
from webadmin.schemas.user import UserCreate, UserResponse, UsersListResponse, UserUpdate

__all__ = [
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "RefreshRequest",
    "TokenResponse",
    "UserCreate",
    "UserResponse",
    "UserUpdate",
    "UsersListResponse",
]
