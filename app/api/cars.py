"""Listing routes: filtered browse, compare, create, edit, hide and delete."""

import math
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from google.cloud.firestore import Client

from app.api.auth import get_current_user
from app.core.config import settings
from app.core.database import get_db
from app.core.security import PermissionDeniedError, ensure_can_mutate
from app.schemas.car import (
    Car,
    CarCompareResponse,
    CarCreate,
    CarCreatedResponse,
    CarListResponse,
    CarUpdate,
    Pagination,
    VisibilityUpdate,
)
from app.schemas.filters import CarFilters
from app.schemas.user import CurrentUser
from app.services import cars
from app.services.cars import MAX_COMPARE, ListingNotFoundError
from app.services.filters import InvalidFilterError, search_cars
from app.services.storage import ObjectStorage, get_storage

router = APIRouter()


def get_filters(
    brand: str | None = None,
    model: str | None = None,
    min_price: Annotated[str | None, Query(alias="minPrice")] = None,
    max_price: Annotated[str | None, Query(alias="maxPrice")] = None,
    min_year: Annotated[str | None, Query(alias="minYear")] = None,
    max_year: Annotated[str | None, Query(alias="maxYear")] = None,
    fuel: str | None = None,
    condition: str | None = None,
    body_type: Annotated[str | None, Query(alias="bodyType")] = None,
    drive_type: Annotated[str | None, Query(alias="driveType")] = None,
    gearbox: str | None = None,
    query: str | None = None,
) -> CarFilters:
    """Dependency: collect browse filters from the query string."""
    return CarFilters(
        brand=brand,
        model=model,
        min_price=min_price,
        max_price=max_price,
        min_year=min_year,
        max_year=max_year,
        fuel=fuel,
        condition=condition,
        body_type=body_type,
        drive_type=drive_type,
        gearbox=gearbox,
        query=query,
    )


def _get_car_or_404(db: Client, car_id: str) -> Car:
    try:
        return cars.require_car(db, car_id)
    except ListingNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e


def _get_mutable_car(db: Client, car_id: str, user: CurrentUser) -> Car:
    """Load a listing and check owner-or-admin before any write. 404 before 403."""
    car = _get_car_or_404(db, car_id)
    try:
        ensure_can_mutate(user, car.user_id)
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message) from e
    return car


@router.get("", response_model=CarListResponse)
def list_cars(
    db: Annotated[Client, Depends(get_db)],
    filters: Annotated[CarFilters, Depends(get_filters)],
    limit: Annotated[int | None, Query(ge=1)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
) -> CarListResponse:
    """
    Visible listings matching the filters, newest first, one page at a time.

    Empty values and "any" apply no filter; price and year bounds equal to the
    default range are ignored. At most CARS_SEARCH_MAX_RESULTS matches are
    fetched, so `total` never exceeds it.
    """
    page_size = min(limit or settings.CARS_DEFAULT_LIMIT, settings.CARS_MAX_LIMIT)
    try:
        matches = search_cars(db, filters, settings, limit=settings.CARS_SEARCH_MAX_RESULTS)
    except InvalidFilterError as e:
        raise HTTPException(status_code=422, detail=e.message) from e

    total = len(matches)
    start = (page - 1) * page_size
    return CarListResponse(
        cars=matches[start : start + page_size],
        pagination=Pagination(
            total=total,
            page=page,
            limit=page_size,
            total_pages=math.ceil(total / page_size),
        ),
    )


@router.post("", response_model=CarCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_car(
    body: CarCreate,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Client, Depends(get_db)],
) -> CarCreatedResponse:
    """Create a visible listing owned by the requester."""
    return CarCreatedResponse(id=cars.create_listing(db, body, current_user.id))


@router.get("/compare", response_model=CarCompareResponse)
def compare_cars(
    db: Annotated[Client, Depends(get_db)],
    ids: Annotated[str, Query(description="Comma-separated listing ids")],
) -> CarCompareResponse:
    """Up to two listings side by side; unknown ids are skipped."""
    car_ids = [i.strip() for i in ids.split(",") if i.strip()]
    if not car_ids:
        raise HTTPException(status_code=422, detail="At least one id is required.")
    if len(car_ids) > MAX_COMPARE:
        raise HTTPException(
            status_code=422,
            detail=f"At most {MAX_COMPARE} listings can be compared.",
        )
    return CarCompareResponse(cars=cars.get_cars_by_ids(db, car_ids))


@router.get("/{car_id}", response_model=Car)
def get_car(car_id: str, db: Annotated[Client, Depends(get_db)]) -> Car:
    return _get_car_or_404(db, car_id)


@router.put("/{car_id}", response_model=Car)
def update_car(
    car_id: str,
    body: CarUpdate,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Client, Depends(get_db)],
    storage: Annotated[ObjectStorage, Depends(get_storage)],
) -> Car:
    """Edit a listing (owner or admin). Images no longer listed are deleted from storage."""
    car = _get_mutable_car(db, car_id, current_user)
    return cars.update_listing(db, storage, car, body)


@router.patch("/{car_id}/visibility", response_model=Car)
def set_car_visibility(
    car_id: str,
    body: VisibilityUpdate,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Client, Depends(get_db)],
) -> Car:
    _get_mutable_car(db, car_id, current_user)
    cars.set_visibility(db, car_id, body.is_visible)
    return _get_car_or_404(db, car_id)


@router.delete("/{car_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_car(
    car_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Client, Depends(get_db)],
    storage: Annotated[ObjectStorage, Depends(get_storage)],
) -> None:
    """Hard-delete a listing with its favorites and stored images (owner or admin)."""
    car = _get_mutable_car(db, car_id, current_user)
    cars.delete_listing(db, storage, car)
