"""Core app configuration, database, security and tokens."""

from webadmin.core.config import Settings, get_settings
from webadmin.core.database import get_db
from webadmin.core.tokens import SigningConfig, TokenService

__all__ = ["Settings", "SigningConfig", "TokenService", "get_db", "get_settings"]
