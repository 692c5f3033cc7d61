"""Password hashing and role checks for authentication."""

import enum

import bcrypt

# Default bcrypt work factor; overridden by the BCRYPT_ROUNDS setting.
BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72

# Accepted lengths when an account is created (admin route and CLI).
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


class Role(str, enum.Enum):
    """Roles recognized by the authorization layer. The users table stores role as a free string."""

    ADMIN = "admin"
    USER = "user"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    DISABLED = "disabled"


def is_admin_role(role: str | None) -> bool:
    """Only the exact value 'admin' is privileged; anything else, known or not, is not."""
    return role == Role.ADMIN.value


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Return a salted bcrypt hash of plain_password, suitable for the password_hash column."""
    secret = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """True when plain_password matches hashed. A corrupt or empty hash is a mismatch, not an error."""
    secret = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(secret, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False
