"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Credentials for login. Emptiness is checked by the login flow, not here."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(default="", description="Username")
    password: str = Field(default="", description="Password")
    remember_me: bool = Field(
        default=False,
        alias="rememberMe",
        description="Also issue a persisted refresh token",
    )


class RefreshRequest(BaseModel):
    """Refresh token to exchange for a new access token."""

    refresh_token: str = Field(default="", description="Refresh token from login")


class TokenResponse(BaseModel):
    """JWT access token (and optional refresh token) returned by login and refresh."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    refresh_token: str | None = Field(
        default=None,
        description="Present only after login with rememberMe and successful persistence",
    )


class CurrentUser(BaseModel):
    """Authenticated user (id, username, role) for dependency injection."""

    id: int
    username: str
    role: str

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str
