"""Tests for the authentication gate (get_current_user) and the admin gate (require_admin)."""

import unittest

import jwt
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from support import FIXED_NOW, TEST_SECRET, ApiTestCase, bearer
from webadmin.api.deps import require_admin


class TestAuthenticationGate(ApiTestCase):
    """Each way of failing authentication has its own 401 message."""

    def assertUnauthorized(self, response, message: str) -> None:
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": message})
        self.assertEqual(response.headers.get("www-authenticate"), "Bearer")

    def test_missing_header(self) -> None:
        self.assertUnauthorized(self.client.get("/user"), "Authorization header required")

    def test_empty_header(self) -> None:
        response = self.client.get("/user", headers={"Authorization": ""})
        self.assertUnauthorized(response, "Authorization header required")

    def test_malformed_header(self) -> None:
        token = self.admin_token()
        for value in (token, f"Token {token}", f"bearer {token}", f"Bearer {token} extra", "Bearer"):
            with self.subTest(value=value):
                response = self.client.get("/user", headers={"Authorization": value})
                self.assertUnauthorized(response, "Invalid authorization header format")

    def test_invalid_token(self) -> None:
        response = self.client.get("/user", headers=bearer("not-a-jwt"))
        self.assertUnauthorized(response, "Invalid or expired token")

    def test_expired_token(self) -> None:
        token = self.admin_token()
        self.clock.advance(seconds=86399)
        self.assertEqual(self.client.get("/user", headers=bearer(token)).status_code, 200)
        self.clock.advance(seconds=1)
        self.assertUnauthorized(self.client.get("/user", headers=bearer(token)), "Invalid or expired token")

    def test_token_signed_with_other_secret(self) -> None:
        now = int(FIXED_NOW.timestamp())
        forged = jwt.encode(
            {"user_id": 1, "username": "admin", "role": "admin", "iat": now, "exp": now + 60},
            "some-other-secret-0123456789abcdef0123",
            algorithm="HS256",
        )
        self.assertUnauthorized(self.client.get("/user", headers=bearer(forged)), "Invalid or expired token")

    def test_valid_token_returns_caller(self) -> None:
        response = self.client.get("/user", headers=bearer(self.admin_token()))
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["username"], "admin")
        self.assertEqual(body["role"], "admin")
        self.assertNotIn("password_hash", body)


class TestAdminGate(ApiTestCase):
    def test_non_admin_forbidden(self) -> None:
        self.create_user(self.admin_token(), role="user")
        token = self.login("alice", "password123").json()["access_token"]
        response = self.client.get("/admin/users", headers=bearer(token))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "Admin access required"})

    def test_unknown_role_is_not_privileged(self) -> None:
        now = int(FIXED_NOW.timestamp())
        for role in ("Admin", "ADMIN", "superuser", ""):
            with self.subTest(role=role):
                token = jwt.encode(
                    {"user_id": 1, "username": "admin", "role": role, "iat": now, "exp": now + 60},
                    TEST_SECRET,
                    algorithm="HS256",
                )
                response = self.client.get("/admin/users", headers=bearer(token))
                self.assertEqual(response.status_code, 403)

    def test_unauthenticated_admin_route_is_401_not_403(self) -> None:
        self.assertEqual(self.client.get("/admin/users").status_code, 401)

    def test_role_change_not_seen_until_new_token(self) -> None:
        admin = self.admin_token()
        alice_id = self.create_user(admin, role="admin").json()["id"]
        alice = self.login("alice", "password123").json()["access_token"]
        self.client.put(f"/admin/users/{alice_id}", json={"role": "user"}, headers=bearer(admin))
        self.assertEqual(self.client.get("/admin/users", headers=bearer(alice)).status_code, 200)

        self.clock.advance(hours=24)
        self.assertEqual(self.client.get("/admin/users", headers=bearer(alice)).status_code, 401)
        alice = self.login("alice", "password123").json()["access_token"]
        self.assertEqual(self.client.get("/admin/users", headers=bearer(alice)).status_code, 403)


class TestRequireAdminAlone(unittest.TestCase):
    """Without the authentication gate in front, require_admin refuses instead of crashing."""

    def test_no_identity_is_forbidden(self) -> None:
        app = FastAPI()

        @app.get("/guarded", dependencies=[Depends(require_admin)])
        def guarded() -> dict[str, bool]:
            return {"ok": True}

        with TestClient(app) as client:
            response = client.get("/guarded")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"detail": "Admin access required"})


if __name__ == "__main__":
    unittest.main()
