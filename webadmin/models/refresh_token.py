"""ORM model for persisted refresh tokens."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func

from webadmin.models.base import Base


class RefreshToken(Base):
    """
    A refresh token issued at login with remember-me.

    Looked up only by its token string; the token itself carries no user id, the
    binding is user_id here. Expired rows are removed when someone tries to use them.
    """

    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = Column(String(1024), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
