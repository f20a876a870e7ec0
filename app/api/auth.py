"""Sign-up, sign-in, sign-out and auth dependencies (get_current_user, require_admin)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from google.cloud.firestore import Client

from app.core.database import get_db
from app.core.security import is_admin
from app.schemas.user import CurrentUser, LoginRequest, RegisterRequest, TokenResponse, User
from app.services import accounts, users
from app.services.identity import (
    IdentityProvider,
    IdentityProviderError,
    InvalidTokenError,
    get_identity,
)

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Client, Depends(get_db)],
    identity: Annotated[IdentityProvider, Depends(get_identity)],
) -> CurrentUser | None:
    """Dependency: resolve the requester if a Bearer token is present. Invalid tokens still raise 401."""
    if credentials is None:
        return None
    try:
        uid = identity.verify_id_token(credentials.credentials)
    except InvalidTokenError as e:
        raise _unauthorized(e.message) from e
    except IdentityProviderError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e

    profile = users.get_user(db, uid)
    if profile is None:
        # Accounts without a profile document act as regular users.
        return CurrentUser(id=uid)
    return CurrentUser(id=uid, email=profile.email, name=profile.name, role=profile.role)


def get_current_user(
    user: Annotated[CurrentUser | None, Depends(get_optional_user)],
) -> CurrentUser:
    """Dependency: require a valid Firebase ID token. Raises 401 if missing or invalid."""
    if user is None:
        raise _unauthorized("Not authenticated")
    return user


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require an authenticated user with role 'admin'. Raises 403 otherwise."""
    if not is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Client, Depends(get_db)],
    identity: Annotated[IdentityProvider, Depends(get_identity)],
) -> User:
    """Create an account and its `regular` profile. Sign in afterwards to get a token."""
    try:
        return accounts.sign_up(db, identity, body)
    except IdentityProviderError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    db: Annotated[Client, Depends(get_db)],
    identity: Annotated[IdentityProvider, Depends(get_identity)],
) -> TokenResponse:
    """
    Authenticate with email and password; returns a Firebase ID token.
    Include the token in the Authorization header as: Bearer <idToken>
    """
    try:
        return accounts.sign_in(db, identity, body)
    except IdentityProviderError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    identity: Annotated[IdentityProvider, Depends(get_identity)],
) -> None:
    """Revoke the requester's refresh tokens; outstanding ID tokens stop verifying."""
    try:
        accounts.sign_out(identity, current_user.id)
    except IdentityProviderError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.get("/me", response_model=CurrentUser)
def me(current_user: Annotated[CurrentUser, Depends(get_current_user)]) -> CurrentUser:
    return current_user
