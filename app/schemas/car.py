"""Pydantic schemas for car listings: stored document, create/update payloads, list responses."""

from datetime import date, datetime
from typing import Annotated

from pydantic import Field, field_validator

from app.schemas.base import CamelModel

MIN_YEAR = 1900
TEXT_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 10_000
MAX_IMAGES_PER_LISTING = 20

RequiredText = Annotated[str, Field(min_length=1, max_length=TEXT_MAX_LENGTH)]
Year = Annotated[int, Field(ge=MIN_YEAR)]
Mileage = Annotated[int, Field(ge=0)]
Power = Annotated[int, Field(gt=0)]
Price = Annotated[int, Field(ge=0)]
Doors = Annotated[int, Field(ge=1, le=7)]
Seats = Annotated[int, Field(ge=1, le=12)]
EngineSize = Annotated[float, Field(gt=0)]
Description = Annotated[
    str, Field(min_length=DESCRIPTION_MIN_LENGTH, max_length=DESCRIPTION_MAX_LENGTH)
]
ImageUrls = Annotated[list[str], Field(max_length=MAX_IMAGES_PER_LISTING)]


def _validate_year_not_future(value: int | None) -> int | None:
    if value is not None and value > date.today().year:
        raise ValueError("year must not be in the future")
    return value


class Car(CamelModel):
    """A listing as stored in the `cars` collection. Lenient so older documents still load."""

    id: str
    brand: str = ""
    model: str = ""
    year: int = 0
    mileage: int = 0
    fuel: str = ""
    gearbox: str = ""
    power: int = 0
    price: int = 0
    condition: str = ""
    body_type: str = ""
    drive_type: str = ""
    color: str = ""
    doors: int = 0
    seats: int = 0
    engine_size: float = 0.0
    vin: str | None = None
    license_plate: str | None = None
    features: str | None = None
    description: str = ""
    images: list[str] = Field(default_factory=list)
    user_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    is_visible: bool = True


class CarCreate(CamelModel):
    """Payload for a new listing. Owner, timestamps and visibility are set server-side."""

    brand: RequiredText
    model: RequiredText
    year: Year
    mileage: Mileage
    fuel: RequiredText
    gearbox: RequiredText
    power: Power
    price: Price
    condition: RequiredText
    body_type: RequiredText
    drive_type: RequiredText
    color: RequiredText
    doors: Doors
    seats: Seats
    engine_size: EngineSize
    vin: str | None = None
    license_plate: str | None = None
    features: str | None = None
    description: Description
    images: ImageUrls = Field(
        ...,
        min_length=1,
        description="Ordered image URLs; the first one is the cover image.",
    )

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: int) -> int:
        return _validate_year_not_future(v)


class CarUpdate(CamelModel):
    """Partial update of a listing. Only fields that are set are written."""

    brand: RequiredText | None = None
    model: RequiredText | None = None
    year: Year | None = None
    mileage: Mileage | None = None
    fuel: RequiredText | None = None
    gearbox: RequiredText | None = None
    power: Power | None = None
    price: Price | None = None
    condition: RequiredText | None = None
    body_type: RequiredText | None = None
    drive_type: RequiredText | None = None
    color: RequiredText | None = None
    doors: Doors | None = None
    seats: Seats | None = None
    engine_size: EngineSize | None = None
    vin: str | None = None
    license_plate: str | None = None
    features: str | None = None
    description: Description | None = None
    images: ImageUrls | None = None
    is_visible: bool | None = None

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: int | None) -> int | None:
        return _validate_year_not_future(v)

    @field_validator("images")
    @classmethod
    def validate_images_not_empty(cls, v: list[str] | None) -> list[str] | None:
        if v is not None and not v:
            raise ValueError("a listing must keep at least one image")
        return v


class VisibilityUpdate(CamelModel):
    """Body of PATCH /cars/{id}/visibility."""

    is_visible: bool


class Pagination(CamelModel):
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)


class CarListResponse(CamelModel):
    """Response for GET /cars."""

    cars: list[Car]
    pagination: Pagination


class CarCreatedResponse(CamelModel):
    id: str


class CarCompareResponse(CamelModel):
    """Response for GET /cars/compare."""

    cars: list[Car]
