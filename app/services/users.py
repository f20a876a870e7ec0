"""Data access for the `users` collection. Documents are keyed by Firebase uid."""

import logging
from datetime import UTC, datetime

from google.cloud.firestore import SERVER_TIMESTAMP, Client

from app.core.database import USERS_COLLECTION
from app.schemas.user import User, UserProfileUpdate, UserRole

logger = logging.getLogger(__name__)


def _from_snapshot(snapshot) -> User:
    data = snapshot.to_dict() or {}
    data["id"] = snapshot.id
    return User.model_validate(data)


def create_user(
    db: Client,
    uid: str,
    name: str,
    email: str,
    role: UserRole = "regular",
) -> User:
    """Write the profile document for a new account."""
    db.collection(USERS_COLLECTION).document(uid).set(
        {
            "id": uid,
            "name": name,
            "email": email,
            "role": role,
            "createdAt": SERVER_TIMESTAMP,
        }
    )
    logger.info("User profile created", extra={"uid": uid, "role": role})
    # The server timestamp is not echoed back; report the local time for immediate use.
    return User(id=uid, name=name, email=email, role=role, created_at=datetime.now(UTC))


def get_user(db: Client, uid: str) -> User | None:
    snapshot = db.collection(USERS_COLLECTION).document(uid).get()
    if not snapshot.exists:
        return None
    return _from_snapshot(snapshot)


def list_users(db: Client) -> list[User]:
    return [_from_snapshot(s) for s in db.collection(USERS_COLLECTION).stream()]


def update_profile(db: Client, uid: str, changes: UserProfileUpdate) -> User | None:
    """Apply set profile fields. Returns the updated user, or None if the profile does not exist."""
    ref = db.collection(USERS_COLLECTION).document(uid)
    if not ref.get().exists:
        return None
    data = changes.model_dump(by_alias=True, exclude_unset=True)
    if data:
        ref.update(data)
    return get_user(db, uid)


def set_role(db: Client, uid: str, role: UserRole) -> User | None:
    ref = db.collection(USERS_COLLECTION).document(uid)
    if not ref.get().exists:
        return None
    ref.update({"role": role})
    logger.info("User role changed", extra={"uid": uid, "role": role})
    return get_user(db, uid)


def delete_user(db: Client, uid: str) -> bool:
    """Delete the profile document. Returns False when it did not exist."""
    ref = db.collection(USERS_COLLECTION).document(uid)
    if not ref.get().exists:
        return False
    ref.delete()
    logger.info("User profile deleted", extra={"uid": uid})
    return True
