"""ORM model for application users (auth and RBAC)."""

from sqlalchemy import Column, DateTime, Integer, String, func

from webadmin.models.base import Base


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'admin' or 'user' (stored as a free string; only 'admin' is privileged)
    status: 'active' or 'disabled'; disabled users cannot log in or refresh.
    username and email are unique across all users regardless of status.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    avatar = Column(String(1024), nullable=False, default="")
    role = Column(String(32), nullable=False, default="user")
    status = Column(String(32), nullable=False, default="active")
    password_hash = Column(String(255), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
