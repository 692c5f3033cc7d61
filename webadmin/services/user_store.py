"""User persistence: lookups, CRUD and the first-start default admin."""

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from webadmin.core.config import DEFAULT_AVATAR, Settings
from webadmin.core.security import BCRYPT_ROUNDS, Role, UserStatus, hash_password
from webadmin.models import User
from webadmin.schemas.user import UserCreate, UserUpdate
from webadmin.services.errors import ConflictError, NotFoundError
from webadmin.services.refresh_tokens import RefreshTokenStore

logger = logging.getLogger(__name__)


class UserNotFoundError(NotFoundError):
    def __init__(self, message: str = "User not found") -> None:
        super().__init__(message)


class UserConflictError(ConflictError):
    """A unique column (username or email) already holds the requested value."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"{field.capitalize()} already exists")


class UserStore:
    """
    Credential store over one SQLAlchemy session.

    Uniqueness is enforced only by the database constraints; a violation is
    rolled back and reported as UserConflictError naming the offending field.
    """

    def __init__(
        self,
        session: Session,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
        default_avatar: str = DEFAULT_AVATAR,
    ) -> None:
        self._session = session
        self._bcrypt_rounds = bcrypt_rounds
        self._default_avatar = default_avatar

    @property
    def bcrypt_rounds(self) -> int:
        return self._bcrypt_rounds

    def get_user_by_username(self, username: str, active_only: bool = True) -> User:
        query = self._session.query(User).filter(User.username == username)
        if active_only:
            query = query.filter(User.status == UserStatus.ACTIVE.value)
        user = query.first()
        if user is None:
            raise UserNotFoundError()
        return user

    def get_user_by_id(self, user_id: int) -> User:
        user = self._session.get(User, user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    def create_user(self, fields: UserCreate) -> User:
        """Hash the password and insert; role defaults to 'user' and status to 'active'."""
        user = User(
            username=fields.username,
            email=fields.email,
            name=fields.name,
            avatar=fields.avatar or self._default_avatar,
            role=fields.role or Role.USER.value,
            status=UserStatus.ACTIVE.value,
            password_hash=hash_password(fields.password, rounds=self._bcrypt_rounds),
        )
        self._session.add(user)
        try:
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            raise UserConflictError(self._conflicting_field(fields.username)) from e
        self._session.refresh(user)
        logger.info("User created", extra={"user_id": user.id, "role": user.role})
        return user

    def update_user(self, user_id: int, fields: UserUpdate) -> User:
        """Apply the non-empty fields of a partial update. With none, the row is returned untouched."""
        user = self.get_user_by_id(user_id)
        changed = False
        for name in ("email", "name", "role", "status", "avatar"):
            value = getattr(fields, name)
            if value:
                setattr(user, name, value)
                changed = True
        if not changed:
            return user
        user.updated_at = func.now()
        try:
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            raise UserConflictError("email") from e
        self._session.refresh(user)
        return user

    def set_status(self, user_id: int, status: UserStatus) -> User:
        return self.update_user(user_id, UserUpdate(status=status.value))

    def delete_user(self, user_id: int) -> None:
        """Delete a user and its refresh tokens. A missing id is not an error."""
        RefreshTokenStore(self._session).delete_for_user(user_id)
        deleted = (
            self._session.query(User).filter(User.id == user_id).delete(synchronize_session=False)
        )
        self._session.commit()
        if deleted:
            logger.info("User deleted", extra={"user_id": user_id})

    def list_users(self, limit: int, offset: int) -> tuple[list[User], int]:
        """One page of users, newest first, plus the total count."""
        users = (
            self._session.query(User)
            .order_by(User.created_at.desc(), User.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return users, self.count_users()

    def count_users(self) -> int:
        return self._session.query(User).count()

    def _conflicting_field(self, username: str) -> str:
        taken = self._session.query(User.id).filter(User.username == username).first()
        return "username" if taken is not None else "email"


def ensure_default_admin(store: UserStore, settings: Settings) -> User | None:
    """
    Create the default admin when the users table is empty and seeding is enabled.

    Returns the new user, or None when nothing was created. Another process
    seeding at the same time shows up as a conflict and is not an error.
    """
    if not settings.SEED_DEFAULT_ADMIN:
        return None
    if store.count_users() > 0:
        return None
    try:
        user = store.create_user(
            UserCreate(
                username=settings.DEFAULT_ADMIN_USERNAME,
                email=settings.DEFAULT_ADMIN_EMAIL,
                name="Administrator",
                password=settings.DEFAULT_ADMIN_PASSWORD.get_secret_value(),
                role=Role.ADMIN.value,
                avatar=settings.DEFAULT_AVATAR,
            )
        )
    except UserConflictError:
        logger.info("Default admin already created by another process")
        return None
    logger.warning(
        "Created default admin user '%s'; change its password before exposing this service",
        user.username,
    )
    return user
