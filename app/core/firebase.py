"""Firebase Admin app initialization from service-account settings."""

import logging
from typing import TYPE_CHECKING

import firebase_admin
from firebase_admin import credentials

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "marketplace"


class FirebaseConfigError(RuntimeError):
    """Raised when the Firebase service account settings are incomplete."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def _missing_credentials(settings: "Settings") -> list[str]:
    missing = []
    if not settings.FIREBASE_PROJECT_ID:
        missing.append("FIREBASE_PROJECT_ID")
    if not settings.FIREBASE_CLIENT_EMAIL:
        missing.append("FIREBASE_CLIENT_EMAIL")
    if settings.FIREBASE_PRIVATE_KEY is None:
        missing.append("FIREBASE_PRIVATE_KEY")
    return missing


def init_firebase_app(settings: "Settings") -> firebase_admin.App:
    """
    Initialize (or reuse) the named Firebase Admin app.

    Raises FirebaseConfigError when any service-account variable is missing.
    """
    missing = _missing_credentials(settings)
    if missing:
        raise FirebaseConfigError(f"Missing Firebase env vars: {', '.join(missing)}")

    try:
        return firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        pass

    cert = credentials.Certificate(
        {
            "type": "service_account",
            "project_id": settings.FIREBASE_PROJECT_ID,
            "client_email": settings.FIREBASE_CLIENT_EMAIL,
            "private_key": settings.FIREBASE_PRIVATE_KEY.get_secret_value(),
            "token_uri": "https://oauth2.googleapis.com/token",
        }
    )
    app = firebase_admin.initialize_app(
        cert,
        options={"projectId": settings.FIREBASE_PROJECT_ID},
        name=FIREBASE_APP_NAME,
    )
    logger.info("Firebase Admin initialized", extra={"project_id": settings.FIREBASE_PROJECT_ID})
    return app
