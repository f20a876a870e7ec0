"""Request/response schemas for users, authentication and the admin panel."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from app.schemas.base import CamelModel

UserRole = Literal["admin", "regular"]

PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128
NAME_MAX_LEN = 255


class User(CamelModel):
    """Profile document from the `users` collection, keyed by the Firebase uid."""

    id: str
    name: str = ""
    email: str = ""
    role: UserRole = "regular"
    phone_number: str | None = None
    created_at: datetime | None = None


class CurrentUser(CamelModel):
    """Authenticated requester resolved from a bearer token, for dependency injection."""

    id: str
    email: str | None = None
    name: str | None = None
    role: UserRole = "regular"


class RegisterRequest(CamelModel):
    """Sign-up payload."""

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LEN)
    email: str = Field(..., min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class LoginRequest(CamelModel):
    """Credentials for password sign-in."""

    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)


class TokenResponse(CamelModel):
    """Firebase ID token returned after sign-in or sign-up."""

    id_token: str = Field(..., description="Firebase ID token; send as Authorization: Bearer <token>")
    refresh_token: str | None = None
    expires_in: int | None = Field(default=None, description="Token lifetime in seconds")
    user: User | None = None


class UserProfileUpdate(CamelModel):
    """Editable profile fields."""

    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LEN)
    phone_number: str | None = Field(default=None, max_length=32)


class RoleUpdate(CamelModel):
    role: UserRole


class UsersListResponse(CamelModel):
    """Response for GET /admin/users."""

    users: list[User]
