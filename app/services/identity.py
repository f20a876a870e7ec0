"""Firebase Auth bridge: ID token verification, account creation, password sign-in, sign-out."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import firebase_admin
import httpx
from fastapi import Request
from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

# Identity Toolkit error codes -> (HTTP status, user-facing message).
_SIGN_IN_ERRORS: dict[str, tuple[int, str]] = {
    "EMAIL_NOT_FOUND": (401, "Invalid email or password."),
    "INVALID_PASSWORD": (401, "Invalid email or password."),
    "INVALID_LOGIN_CREDENTIALS": (401, "Invalid email or password."),
    "USER_DISABLED": (403, "This account has been disabled."),
    "TOO_MANY_ATTEMPTS_TRY_LATER": (429, "Too many attempts. Try again later."),
}


class InvalidTokenError(Exception):
    """Raised when a bearer token is missing, malformed, expired or revoked."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class IdentityProviderError(Exception):
    """Raised when Firebase Auth rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class SignInResult:
    uid: str
    id_token: str
    refresh_token: str | None
    expires_in: int | None


class IdentityProvider:
    """Server-side access to Firebase Auth for one Firebase app."""

    def __init__(
        self,
        app: firebase_admin.App | None,
        api_key: str | None = None,
        toolkit_url: str = "https://identitytoolkit.googleapis.com/v1",
        timeout: float = 10.0,
    ) -> None:
        self._app = app
        self._api_key = api_key
        self._toolkit_url = toolkit_url.rstrip("/")
        self._timeout = timeout

    def verify_id_token(self, token: str) -> str:
        """Return the uid of a valid, unrevoked ID token. Raises InvalidTokenError otherwise."""
        try:
            decoded = auth.verify_id_token(token, app=self._app, check_revoked=True)
        except auth.ExpiredIdTokenError as e:
            raise InvalidTokenError("Token expired") from e
        except auth.RevokedIdTokenError as e:
            raise InvalidTokenError("Token revoked") from e
        except (auth.InvalidIdTokenError, auth.UserDisabledError, ValueError) as e:
            raise InvalidTokenError("Invalid token") from e
        except auth.CertificateFetchError as e:
            raise IdentityProviderError("Could not fetch token signing certificates") from e
        uid = decoded.get("uid")
        if not uid:
            raise InvalidTokenError("Invalid token payload")
        return uid

    def create_account(self, email: str, password: str, display_name: str) -> str:
        """Create an email/password account and return its uid."""
        try:
            record = auth.create_user(
                email=email,
                password=password,
                display_name=display_name,
                app=self._app,
            )
        except auth.EmailAlreadyExistsError as e:
            raise IdentityProviderError("Email is already registered.", status_code=409) from e
        except ValueError as e:
            raise IdentityProviderError(str(e), status_code=422) from e
        except FirebaseError as e:
            logger.error("Account creation failed", extra={"error": str(e)})
            raise IdentityProviderError("Failed to create account") from e
        return record.uid

    def delete_account(self, uid: str) -> None:
        try:
            auth.delete_user(uid, app=self._app)
        except auth.UserNotFoundError:
            logger.info("Auth account already gone", extra={"uid": uid})
        except FirebaseError as e:
            raise IdentityProviderError("Failed to delete account") from e

    def revoke_sessions(self, uid: str) -> None:
        """Sign the user out everywhere by revoking refresh tokens."""
        try:
            auth.revoke_refresh_tokens(uid, app=self._app)
        except FirebaseError as e:
            raise IdentityProviderError("Failed to sign out") from e

    def sign_in_with_password(self, email: str, password: str) -> SignInResult:
        """
        Exchange email and password for an ID token via the Identity Toolkit REST API.

        Raises IdentityProviderError (503 when not configured or unreachable,
        401/403/429 for rejected credentials).
        """
        if not self._api_key:
            raise IdentityProviderError(
                "Password sign-in is not configured (FIREBASE_WEB_API_KEY).", status_code=503
            )
        url = f"{self._toolkit_url}/accounts:signInWithPassword"
        payload = {"email": email, "password": password, "returnSecureToken": True}
        try:
            with httpx.Client(timeout=httpx.Timeout(self._timeout)) as client:
                response = client.post(url, params={"key": self._api_key}, json=payload)
        except httpx.TimeoutException as e:
            raise IdentityProviderError("Identity provider timed out.", status_code=503) from e
        except httpx.HTTPError as e:
            raise IdentityProviderError("Identity provider is unreachable.", status_code=503) from e

        try:
            body = response.json()
        except json.JSONDecodeError as e:
            raise IdentityProviderError("Identity provider returned invalid JSON.") from e

        if response.status_code != 200:
            code = (body.get("error") or {}).get("message", "") if isinstance(body, dict) else ""
            # Codes may carry a suffix, e.g. "TOO_MANY_ATTEMPTS_TRY_LATER : ...".
            code = code.split(" ", 1)[0]
            status, message = _SIGN_IN_ERRORS.get(code, (502, "Sign-in failed."))
            logger.info("Password sign-in rejected", extra={"code": code, "status": status})
            raise IdentityProviderError(message, status_code=status)

        try:
            expires_in = int(body["expiresIn"]) if body.get("expiresIn") else None
            return SignInResult(
                uid=body["localId"],
                id_token=body["idToken"],
                refresh_token=body.get("refreshToken"),
                expires_in=expires_in,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise IdentityProviderError("Identity provider response is incomplete.") from e


def build_identity_provider(app: firebase_admin.App, settings: Settings) -> IdentityProvider:
    api_key = settings.FIREBASE_WEB_API_KEY
    return IdentityProvider(
        app,
        api_key=api_key.get_secret_value() if api_key is not None else None,
        toolkit_url=settings.IDENTITY_TOOLKIT_URL,
        timeout=settings.IDENTITY_REQUEST_TIMEOUT_SEC,
    )


def get_identity(request: Request) -> IdentityProvider:
    """Dependency that returns the identity provider created at startup."""
    return request.app.state.identity
