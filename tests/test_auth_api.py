"""Route tests for /api/auth and the sign-up/sign-in services."""

import unittest
from unittest.mock import MagicMock

from google.api_core.exceptions import ServiceUnavailable

from app.schemas.user import RegisterRequest
from app.services import accounts
from app.services.identity import IdentityProviderError, SignInResult
from tests.fakes import FakeFirestore, bearer, make_client, make_identity, seed_user


class TestRegister(unittest.TestCase):
    def setUp(self) -> None:
        self.db = FakeFirestore()
        self.identity = make_identity()
        self.client, _ = make_client(self.db, identity=self.identity)

    def test_register_creates_regular_profile(self) -> None:
        self.identity.create_account.return_value = "new-uid"
        response = self.client.post(
            "/api/auth/register",
            json={"name": "Ana", "email": "ana@example.com", "password": "secret1"},
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["role"], "regular")
        profile = self.db.docs("users")["new-uid"]
        self.assertEqual(profile["email"], "ana@example.com")
        self.assertEqual(profile["role"], "regular")

    def test_duplicate_email_is_409(self) -> None:
        self.identity.create_account.side_effect = IdentityProviderError(
            "Email is already registered.", status_code=409
        )
        response = self.client.post(
            "/api/auth/register",
            json={"name": "Ana", "email": "ana@example.com", "password": "secret1"},
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(self.db.docs("users"), {})

    def test_short_password_is_422(self) -> None:
        response = self.client.post(
            "/api/auth/register",
            json={"name": "Ana", "email": "ana@example.com", "password": "123"},
        )
        self.assertEqual(response.status_code, 422)
        self.identity.create_account.assert_not_called()


class TestSignUpService(unittest.TestCase):
    def test_profile_failure_removes_auth_account(self) -> None:
        db = MagicMock()
        db.collection.return_value.document.return_value.set.side_effect = ServiceUnavailable("down")
        identity = make_identity()
        identity.create_account.return_value = "uid-1"
        body = RegisterRequest(name="Ana", email="ana@example.com", password="secret1")
        with self.assertRaises(ServiceUnavailable):
            accounts.sign_up(db, identity, body)
        identity.delete_account.assert_called_once_with("uid-1")


class TestLoginLogoutMe(unittest.TestCase):
    def setUp(self) -> None:
        self.db = FakeFirestore()
        seed_user(self.db, "u1", role="admin", name="Root")
        self.identity = make_identity({"tok": "u1", "tok-orphan": "no-profile"})
        self.client, _ = make_client(self.db, identity=self.identity)

    def test_login_returns_token_and_profile(self) -> None:
        self.identity.sign_in_with_password.return_value = SignInResult(
            uid="u1", id_token="id-tok", refresh_token="ref", expires_in=3600
        )
        response = self.client.post(
            "/api/auth/login", json={"email": "u1@example.com", "password": "pw"}
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["idToken"], "id-tok")
        self.assertEqual(body["expiresIn"], 3600)
        self.assertEqual(body["user"]["role"], "admin")

    def test_bad_credentials_is_401(self) -> None:
        self.identity.sign_in_with_password.side_effect = IdentityProviderError(
            "Invalid email or password.", status_code=401
        )
        response = self.client.post(
            "/api/auth/login", json={"email": "u1@example.com", "password": "nope"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Invalid email or password.")

    def test_me_resolves_role_from_profile(self) -> None:
        response = self.client.get("/api/auth/me", headers=bearer("tok"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["role"], "admin")
        self.assertEqual(response.json()["name"], "Root")

    def test_account_without_profile_is_regular(self) -> None:
        response = self.client.get("/api/auth/me", headers=bearer("tok-orphan"))
        self.assertEqual(response.json(), {"id": "no-profile", "email": None, "name": None, "role": "regular"})

    def test_me_without_token_is_401(self) -> None:
        self.assertEqual(self.client.get("/api/auth/me").status_code, 401)

    def test_logout_revokes_sessions(self) -> None:
        response = self.client.post("/api/auth/logout", headers=bearer("tok"))
        self.assertEqual(response.status_code, 204)
        self.identity.revoke_sessions.assert_called_once_with("u1")


if __name__ == "__main__":
    unittest.main()
