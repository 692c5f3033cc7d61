"""Shared builders for tests: settings, a frozen clock and an app on a private in-memory database."""

import unittest
from datetime import UTC, datetime, timedelta

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from webadmin.core.config import Settings
from webadmin.core.database import build_session_factory, init_db
from webadmin.main import create_app

FIXED_NOW = datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC)
TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


def build_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "APP_ENV": "dev",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": TEST_SECRET,
        "JWT_ALGORITHM": "HS256",
        "BCRYPT_ROUNDS": 4,
        "SEED_DEFAULT_ADMIN": True,
        "DEFAULT_ADMIN_USERNAME": "admin",
        "DEFAULT_ADMIN_EMAIL": "admin@example.com",
        "DEFAULT_ADMIN_PASSWORD": "adminpwd",
        "LOG_LEVEL": "WARNING",
        "VERBOSE": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def memory_engine() -> Engine:
    """One in-memory SQLite database shared by every connection of this engine."""
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def memory_session() -> Session:
    engine = memory_engine()
    init_db(engine)
    return build_session_factory(engine)()


def build_app(clock: FrozenClock | None = None, **overrides: object) -> FastAPI:
    return create_app(
        settings=build_settings(**overrides),
        engine=memory_engine(),
        clock=clock or FrozenClock(),
    )


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class ApiTestCase(unittest.TestCase):
    """Runs each test against a fresh app (lifespan included) with the default admin seeded."""

    def setUp(self) -> None:
        self.clock = FrozenClock()
        self.app = build_app(self.clock)
        self.client = TestClient(self.app)
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def login(self, username: str = "admin", password: str = "adminpwd", **extra: object):
        return self.client.post(
            "/auth/login",
            json={"username": username, "password": password, **extra},
        )

    def admin_token(self) -> str:
        response = self.login()
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["access_token"]

    def create_user(self, token: str, username: str = "alice", **fields: object):
        body = {
            "username": username,
            "email": f"{username}@example.com",
            "name": username.title(),
            "password": "password123",
        }
        body.update(fields)
        return self.client.post("/admin/users", json=body, headers=bearer(token))
