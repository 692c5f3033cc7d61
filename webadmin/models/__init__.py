"""SQLAlchemy ORM models."""

from webadmin.models.base import Base
from webadmin.models.refresh_token import RefreshToken
from webadmin.models.user import User

__all__ = ["Base", "RefreshToken", "User"]
