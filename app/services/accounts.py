"""Sign-up, sign-in and sign-out: identity account plus the matching profile document."""

import logging

from google.api_core.exceptions import GoogleAPICallError
from google.cloud.firestore import Client

from app.schemas.user import LoginRequest, RegisterRequest, TokenResponse, User
from app.services import users
from app.services.identity import IdentityProvider, IdentityProviderError

logger = logging.getLogger(__name__)


def sign_up(db: Client, identity: IdentityProvider, body: RegisterRequest) -> User:
    """
    Create the auth account, then the `regular` profile.

    If the profile write fails the fresh auth account is removed again so the
    email can be reused.
    """
    uid = identity.create_account(body.email, body.password, body.name)
    try:
        return users.create_user(db, uid, body.name, body.email)
    except GoogleAPICallError:
        logger.exception("Profile write failed after account creation", extra={"uid": uid})
        try:
            identity.delete_account(uid)
        except IdentityProviderError as cleanup_error:
            logger.error(
                "Could not remove orphaned auth account",
                extra={"uid": uid, "error": cleanup_error.message},
            )
        raise


def sign_in(db: Client, identity: IdentityProvider, body: LoginRequest) -> TokenResponse:
    result = identity.sign_in_with_password(body.email, body.password)
    profile = users.get_user(db, result.uid)
    if profile is None:
        logger.warning("Signed-in account has no profile document", extra={"uid": result.uid})
    return TokenResponse(
        id_token=result.id_token,
        refresh_token=result.refresh_token,
        expires_in=result.expires_in,
        user=profile,
    )


def sign_out(identity: IdentityProvider, uid: str) -> None:
    identity.revoke_sessions(uid)
    logger.info("Sessions revoked", extra={"uid": uid})
