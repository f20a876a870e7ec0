"""Data access for the `cars` collection and listing lifecycle (create, edit, hide, delete)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from google.cloud.firestore import SERVER_TIMESTAMP, Client, Query
from google.cloud.firestore_v1.base_query import FieldFilter

from app.core.database import CARS_COLLECTION
from app.schemas.car import Car, CarCreate, CarUpdate
from app.services.favorites import remove_car_favorites
from app.services.storage import StorageError

if TYPE_CHECKING:
    from app.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

MAX_COMPARE = 2


class ListingNotFoundError(Exception):
    """Raised when a listing id does not resolve to a document."""

    def __init__(self, car_id: str) -> None:
        self.car_id = car_id
        self.message = "Car not found"
        super().__init__(f"Car not found: {car_id}")


def car_from_snapshot(snapshot) -> Car:
    data = snapshot.to_dict() or {}
    data["id"] = snapshot.id
    return Car.model_validate(data)


def create_listing(db: Client, data: CarCreate, user_id: str) -> str:
    """Persist a new, visible listing owned by `user_id`. Returns the document id."""
    document = data.model_dump(by_alias=True)
    document.update(
        {
            "userId": user_id,
            "isVisible": True,
            "createdAt": SERVER_TIMESTAMP,
        }
    )
    _, ref = db.collection(CARS_COLLECTION).add(document)
    logger.info(
        "Listing created",
        extra={"car_id": ref.id, "user_id": user_id, "image_count": len(data.images)},
    )
    return ref.id


def get_car(db: Client, car_id: str) -> Car | None:
    snapshot = db.collection(CARS_COLLECTION).document(car_id).get()
    if not snapshot.exists:
        return None
    return car_from_snapshot(snapshot)


def require_car(db: Client, car_id: str) -> Car:
    car = get_car(db, car_id)
    if car is None:
        raise ListingNotFoundError(car_id)
    return car


def list_visible(db: Client, limit: int) -> list[Car]:
    query = (
        db.collection(CARS_COLLECTION)
        .where(filter=FieldFilter("isVisible", "==", True))
        .order_by("createdAt", direction=Query.DESCENDING)
        .limit(limit)
    )
    return [car_from_snapshot(s) for s in query.stream()]


def list_user_listings(db: Client, user_id: str) -> list[Car]:
    """All listings of one owner, hidden ones included, newest first."""
    query = (
        db.collection(CARS_COLLECTION)
        .where(filter=FieldFilter("userId", "==", user_id))
        .order_by("createdAt", direction=Query.DESCENDING)
    )
    return [car_from_snapshot(s) for s in query.stream()]


def list_all(db: Client) -> list[Car]:
    """Every listing regardless of visibility (admin view)."""
    return [car_from_snapshot(s) for s in db.collection(CARS_COLLECTION).stream()]


def get_cars_by_ids(db: Client, car_ids: list[str]) -> list[Car]:
    """Listings for a comparison, in the requested order; missing ids are skipped."""
    unique_ids = list(dict.fromkeys(car_ids))[:MAX_COMPARE]
    cars = []
    for car_id in unique_ids:
        car = get_car(db, car_id)
        if car is not None:
            cars.append(car)
    return cars


def _delete_images(storage: ObjectStorage, urls: list[str], car_id: str) -> int:
    """One delete per URL. Failures are logged; the listing change stands."""
    deleted = 0
    for url in urls:
        try:
            storage.delete_file(url)
            deleted += 1
        except StorageError as e:
            logger.warning(
                "Image delete failed",
                extra={"car_id": car_id, "url": url, "error": e.message},
            )
    return deleted


def update_listing(
    db: Client,
    storage: ObjectStorage,
    car: Car,
    changes: CarUpdate,
) -> Car:
    """
    Apply the set fields of `changes` to an existing listing.

    Owner and creation time are never touched. Images dropped from the list
    are deleted from storage after the document is written.
    """
    data = changes.model_dump(by_alias=True, exclude_unset=True)
    if not data:
        return car
    data["updatedAt"] = SERVER_TIMESTAMP
    db.collection(CARS_COLLECTION).document(car.id).update(data)

    if changes.images is not None:
        kept = set(changes.images)
        dropped = [url for url in car.images if url not in kept]
        if dropped:
            _delete_images(storage, dropped, car.id)

    logger.info("Listing updated", extra={"car_id": car.id, "fields": sorted(data)})
    return require_car(db, car.id)


def set_visibility(db: Client, car_id: str, is_visible: bool) -> None:
    db.collection(CARS_COLLECTION).document(car_id).update(
        {"isVisible": is_visible, "updatedAt": SERVER_TIMESTAMP}
    )
    logger.info("Listing visibility changed", extra={"car_id": car_id, "is_visible": is_visible})


def delete_listing(db: Client, storage: ObjectStorage, car: Car) -> int:
    """
    Hard-delete a listing: images, favorites pointing at it, then the document.

    The document goes last so a failed cleanup leaves the listing in place
    and the delete can be retried.

    Returns the number of images deleted from storage.
    """
    deleted = _delete_images(storage, car.images, car.id)
    remove_car_favorites(db, car.id)
    db.collection(CARS_COLLECTION).document(car.id).delete()
    logger.info(
        "Listing deleted",
        extra={"car_id": car.id, "images_deleted": deleted, "image_count": len(car.images)},
    )
    return deleted
