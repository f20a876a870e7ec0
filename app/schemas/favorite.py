"""Request/response schemas for favorites endpoints."""

from datetime import datetime

from pydantic import Field

from app.schemas.base import CamelModel


class Favorite(CamelModel):
    """A (user, car) bookmark from the `favorites` collection."""

    id: str
    user_id: str
    car_id: str
    created_at: datetime | None = None


class FavoriteRequest(CamelModel):
    car_id: str = Field(..., min_length=1, max_length=1500)


class FavoritesListResponse(CamelModel):
    favorites: list[Favorite]


class FavoriteStatusResponse(CamelModel):
    is_favorited: bool


class FavoriteMutationResponse(CamelModel):
    success: bool = True
    message: str
    favorite_id: str | None = None


class FavoriteToggleResponse(CamelModel):
    success: bool = True
    is_favorited: bool
    message: str
