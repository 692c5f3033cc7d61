"""Tests for the command-line entry points: serve, create_user and purge_tokens."""

import tempfile
import unittest
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import OperationalError

from support import build_settings, memory_engine
from webadmin import purge_tokens, serve
from webadmin.core.database import build_engine, build_session_factory
from webadmin.core.security import verify_password
from webadmin.models import User
from webadmin.scripts import create_user


class TestServe(unittest.TestCase):
    def test_port_flag_overrides_env(self) -> None:
        args = serve.parse_args(["--port", "9090"])
        settings = serve.resolve_settings(args, build_settings(PORT=8000))
        self.assertEqual(settings.PORT, 9090)
        self.assertFalse(settings.VERBOSE)

    def test_env_port_used_without_flag(self) -> None:
        settings = serve.resolve_settings(serve.parse_args([]), build_settings(PORT=8000))
        self.assertEqual(settings.PORT, 8000)

    def test_verbose_flag(self) -> None:
        settings = serve.resolve_settings(serve.parse_args(["--verbose"]), build_settings())
        self.assertTrue(settings.VERBOSE)

    def test_main_runs_uvicorn(self) -> None:
        with (
            patch.object(serve, "get_settings", return_value=build_settings(PORT=8123)),
            patch.object(serve, "create_app", return_value=MagicMock()) as create_app,
            patch.object(serve.uvicorn, "run") as run,
        ):
            self.assertEqual(serve.main(["--verbose"]), 0)
        create_app.assert_called_once()
        kwargs = run.call_args.kwargs
        self.assertEqual(kwargs["port"], 8123)
        self.assertTrue(kwargs["access_log"])

    def test_main_rejects_bad_port(self) -> None:
        with (
            patch.object(serve, "get_settings", return_value=build_settings()),
            patch.object(serve.uvicorn, "run") as run,
        ):
            self.assertEqual(serve.main(["--port", "0"]), 1)
        run.assert_not_called()


class TestCreateUserScript(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.database_url = f"sqlite:///{tmp.name}/cli.db"
        settings = build_settings(DATABASE_URL=self.database_url)
        p = patch.object(create_user, "get_settings", return_value=settings)
        p.start()
        self.addCleanup(p.stop)

    def test_creates_user(self) -> None:
        code = create_user.main(["alice", "password123", "alice@example.com", "admin"])
        self.assertEqual(code, 0)
        engine = build_engine(self.database_url)
        self.addCleanup(engine.dispose)
        with build_session_factory(engine)() as db:
            user = db.query(User).filter(User.username == "alice").one()
            self.assertEqual(user.role, "admin")
            self.assertEqual(user.name, "alice")
            self.assertTrue(verify_password("password123", user.password_hash))

    def test_duplicate_fails(self) -> None:
        self.assertEqual(create_user.main(["alice", "password123", "alice@example.com"]), 0)
        self.assertEqual(create_user.main(["alice", "password123", "other@example.com"]), 1)

    def test_short_password_fails(self) -> None:
        self.assertEqual(create_user.main(["alice", "short", "alice@example.com"]), 1)


class TestPurgeTokensScript(unittest.TestCase):
    def setUp(self) -> None:
        patches = [
            patch.object(purge_tokens, "get_settings", return_value=build_settings()),
            patch.object(purge_tokens, "build_engine", return_value=memory_engine()),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)

    def test_success(self) -> None:
        with patch.object(purge_tokens, "RefreshTokenStore") as store_cls:
            store_cls.return_value.purge_expired.return_value = 3
            self.assertEqual(purge_tokens.main(), 0)
        store_cls.return_value.purge_expired.assert_called_once()

    def test_failure_returns_nonzero(self) -> None:
        with patch.object(purge_tokens, "RefreshTokenStore") as store_cls:
            store_cls.return_value.purge_expired.side_effect = OperationalError(
                "DELETE", {}, Exception("locked")
            )
            self.assertEqual(purge_tokens.main(), 1)


if __name__ == "__main__":
    unittest.main()
