"""Pydantic request/response schemas."""

from app.schemas.car import Car, CarCreate, CarListResponse, CarUpdate, Pagination
from app.schemas.car_form import CarFormValues
from app.schemas.favorite import Favorite
from app.schemas.filters import CarFilters
from app.schemas.health import HealthResponse
from app.schemas.upload import DirectUploadResponse, PresignedUploadResponse
from app.schemas.user import CurrentUser, User

__all__ = [
    "Car",
    "CarCreate",
    "CarFilters",
    "CarFormValues",
    "CarListResponse",
    "CarUpdate",
    "CurrentUser",
    "DirectUploadResponse",
    "Favorite",
    "HealthResponse",
    "Pagination",
    "PresignedUploadResponse",
    "User",
]
