"""
Create a user from the shell (there is no registration UI). Run from project root:
  python -m webadmin.scripts.create_user USERNAME PASSWORD EMAIL [role]
Example:
  python -m webadmin.scripts.create_user alice your-secure-password alice@example.com admin
"""
import argparse
import sys

from webadmin.core.config import get_settings
from webadmin.core.database import build_engine, build_session_factory, init_db
from webadmin.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    Role,
)
from webadmin.schemas.user import UserCreate
from webadmin.services.user_store import UserConflictError, UserStore


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a webadmin user (no registration UI).")
    parser.add_argument("username", help="Username (1-255 chars)")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument("email", help="Email address (must be unique)")
    parser.add_argument(
        "role", nargs="?", default=Role.USER.value, choices=[r.value for r in Role]
    )
    parser.add_argument("--name", default="", help="Display name (defaults to the username)")
    args = parser.parse_args(argv)

    username = args.username.strip()
    email = args.email.strip()
    if not username or len(username) > USERNAME_MAX_LEN:
        print("Invalid username length.", file=sys.stderr)
        return 1
    if len(args.password) < PASSWORD_MIN_LEN or len(args.password) > PASSWORD_MAX_LEN:
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1
    if not email:
        print("Email is required.", file=sys.stderr)
        return 1

    settings = get_settings()
    engine = build_engine(settings.DATABASE_URL)
    init_db(engine)
    db = build_session_factory(engine)()
    try:
        store = UserStore(
            db,
            bcrypt_rounds=settings.BCRYPT_ROUNDS,
            default_avatar=settings.DEFAULT_AVATAR,
        )
        try:
            store.create_user(
                UserCreate(
                    username=username,
                    email=email,
                    name=args.name.strip() or username,
                    password=args.password,
                    role=args.role,
                )
            )
        except UserConflictError as e:
            print(f"{e.message}.", file=sys.stderr)
            return 1
        print(f"Created user '{username}' with role '{args.role}'.")
        return 0
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
