"""Request/response schemas for the current-user and admin user routes."""

from datetime import datetime

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    """User as returned to clients (never includes the password hash)."""

    id: int
    name: str
    email: str
    avatar: str
    username: str
    role: str
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UsersListResponse(BaseModel):
    """Response for GET /admin/users: one page of users plus the total count."""

    users: list[UserResponse]
    total: int


class UserCreate(BaseModel):
    """
    Fields for a new user. Missing fields default to empty so the route can report
    them with one message; role and avatar fall back to 'user' and the default avatar.
    """

    username: str = Field(default="", max_length=255)
    email: str = Field(default="", max_length=255)
    name: str = Field(default="", max_length=255)
    password: str = Field(default="")
    role: str = Field(default="")
    avatar: str = Field(default="", max_length=1024)


class UserUpdate(BaseModel):
    """Partial update; empty or omitted fields are left untouched."""

    email: str = Field(default="", max_length=255)
    name: str = Field(default="", max_length=255)
    role: str = Field(default="")
    status: str = Field(default="")
    avatar: str = Field(default="", max_length=1024)
