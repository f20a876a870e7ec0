"""Favorites routes for the signed-in user."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from google.cloud.firestore import Client

from app.api.auth import get_current_user
from app.core.database import get_db
from app.schemas.favorite import (
    FavoriteMutationResponse,
    FavoriteRequest,
    FavoritesListResponse,
    FavoriteStatusResponse,
    FavoriteToggleResponse,
)
from app.schemas.user import CurrentUser
from app.services import favorites

router = APIRouter()

CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
DbDep = Annotated[Client, Depends(get_db)]


@router.get("", response_model=FavoritesListResponse | FavoriteStatusResponse)
def get_favorites(
    current_user: CurrentUserDep,
    db: DbDep,
    car_id: Annotated[str | None, Query(alias="carId")] = None,
) -> FavoritesListResponse | FavoriteStatusResponse:
    """List the requester's favorites, or with `carId` report whether that car is one."""
    if car_id:
        return FavoriteStatusResponse(
            is_favorited=favorites.is_favorited(db, current_user.id, car_id)
        )
    return FavoritesListResponse(favorites=favorites.list_favorites(db, current_user.id))


@router.post("", response_model=FavoriteMutationResponse)
def add_favorite(
    body: FavoriteRequest, current_user: CurrentUserDep, db: DbDep
) -> FavoriteMutationResponse:
    doc_id = favorites.add_favorite(db, current_user.id, body.car_id)
    return FavoriteMutationResponse(message="Added to favorites", favorite_id=doc_id)


@router.delete("", response_model=FavoriteMutationResponse)
def remove_favorite(
    body: FavoriteRequest, current_user: CurrentUserDep, db: DbDep
) -> FavoriteMutationResponse:
    favorites.remove_favorite(db, current_user.id, body.car_id)
    return FavoriteMutationResponse(message="Removed from favorites")


@router.post("/toggle", response_model=FavoriteToggleResponse)
def toggle_favorite(
    body: FavoriteRequest, current_user: CurrentUserDep, db: DbDep
) -> FavoriteToggleResponse:
    """Flip favorite membership; the response carries the new state."""
    now_favorited = favorites.toggle_favorite(db, current_user.id, body.car_id)
    return FavoriteToggleResponse(
        is_favorited=now_favorited,
        message="Added to favorites" if now_favorited else "Removed from favorites",
    )
