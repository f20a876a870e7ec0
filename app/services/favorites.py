"""Data access for the `favorites` relation between users and listings."""

import logging

from google.cloud.firestore import SERVER_TIMESTAMP, Client
from google.cloud.firestore_v1.base_query import FieldFilter

from app.core.database import FAVORITES_COLLECTION
from app.schemas.favorite import Favorite

logger = logging.getLogger(__name__)


def favorite_id(user_id: str, car_id: str) -> str:
    """Document id of the (user, car) pair; makes the pair unique."""
    return f"{user_id}_{car_id}"


def add_favorite(db: Client, user_id: str, car_id: str) -> str:
    """Mark the car as favorited. Idempotent; returns the favorite id."""
    doc_id = favorite_id(user_id, car_id)
    db.collection(FAVORITES_COLLECTION).document(doc_id).set(
        {"userId": user_id, "carId": car_id, "createdAt": SERVER_TIMESTAMP}
    )
    return doc_id


def remove_favorite(db: Client, user_id: str, car_id: str) -> None:
    db.collection(FAVORITES_COLLECTION).document(favorite_id(user_id, car_id)).delete()


def is_favorited(db: Client, user_id: str, car_id: str) -> bool:
    snapshot = db.collection(FAVORITES_COLLECTION).document(favorite_id(user_id, car_id)).get()
    return snapshot.exists


def list_favorites(db: Client, user_id: str) -> list[Favorite]:
    query = db.collection(FAVORITES_COLLECTION).where(
        filter=FieldFilter("userId", "==", user_id)
    )
    favorites = []
    for snapshot in query.stream():
        data = snapshot.to_dict() or {}
        data["id"] = snapshot.id
        favorites.append(Favorite.model_validate(data))
    return favorites


def toggle_favorite(db: Client, user_id: str, car_id: str) -> bool:
    """
    Flip membership of the pair and return the new state.

    Not transactional: concurrent toggles of the same pair resolve last-write-wins.
    """
    if is_favorited(db, user_id, car_id):
        remove_favorite(db, user_id, car_id)
        return False
    add_favorite(db, user_id, car_id)
    return True


def remove_car_favorites(db: Client, car_id: str) -> int:
    """Delete every favorite that points at a listing. Returns how many were removed."""
    query = db.collection(FAVORITES_COLLECTION).where(filter=FieldFilter("carId", "==", car_id))
    removed = 0
    for snapshot in query.stream():
        snapshot.reference.delete()
        removed += 1
    if removed:
        logger.info("Favorites removed with listing", extra={"car_id": car_id, "count": removed})
    return removed
