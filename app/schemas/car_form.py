"""Raw listing form values (as typed by the user) and their validation rules."""

from datetime import date

from pydantic import Field, ValidationInfo, field_validator

from app.schemas.base import CamelModel
from app.schemas.car import DESCRIPTION_MIN_LENGTH, MIN_YEAR, CarCreate

_NUMERIC_MESSAGES = {
    "mileage": "Mileage must be a non-negative number",
    "power": "Power must be a positive number",
    "price": "Price must be a non-negative number",
}


def _parse_int(value: str) -> int | None:
    try:
        return int(value.strip())
    except (TypeError, ValueError):
        return None


def _parse_float(value: str) -> float | None:
    try:
        return float(value.strip())
    except (TypeError, ValueError):
        return None


def _required(value: str, label: str) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{label} is required")
    return value


class CarFormValues(CamelModel):
    """
    Listing form state. Every field is the string the user typed.

    Validation mirrors what the form enforces before the user may advance;
    `to_car_create` performs the numeric coercion at submission.
    """

    brand: str = ""
    model: str = ""
    year: str = Field(default_factory=lambda: str(date.today().year))
    mileage: str = ""
    fuel: str = ""
    gearbox: str = ""
    power: str = ""
    price: str = ""
    condition: str = ""
    body_type: str = ""
    drive_type: str = ""
    color: str = ""
    doors: str = "4"
    seats: str = "5"
    engine_size: str = ""
    vin: str | None = ""
    license_plate: str | None = ""
    features: str | None = ""
    description: str = ""

    @field_validator(
        "brand", "model", "fuel", "gearbox", "condition", "body_type", "drive_type", "color"
    )
    @classmethod
    def validate_required_text(cls, v: str, info: ValidationInfo) -> str:
        return _required(v, info.field_name.replace("_", " ").capitalize())

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: str) -> str:
        _required(v, "Year")
        year = _parse_int(v)
        if year is None or not MIN_YEAR <= year <= date.today().year:
            raise ValueError("Invalid year")
        return v

    @field_validator("mileage", "price")
    @classmethod
    def validate_non_negative(cls, v: str, info: ValidationInfo) -> str:
        _required(v, info.field_name.capitalize())
        number = _parse_int(v)
        if number is None or number < 0:
            raise ValueError(_NUMERIC_MESSAGES[info.field_name])
        return v

    @field_validator("power")
    @classmethod
    def validate_power(cls, v: str) -> str:
        _required(v, "Power")
        number = _parse_int(v)
        if number is None or number <= 0:
            raise ValueError(_NUMERIC_MESSAGES["power"])
        return v

    @field_validator("doors")
    @classmethod
    def validate_doors(cls, v: str) -> str:
        _required(v, "Doors")
        number = _parse_int(v)
        if number is None or not 1 <= number <= 7:
            raise ValueError("Doors must be between 1 and 7")
        return v

    @field_validator("seats")
    @classmethod
    def validate_seats(cls, v: str) -> str:
        _required(v, "Seats")
        number = _parse_int(v)
        if number is None or not 1 <= number <= 12:
            raise ValueError("Seats must be between 1 and 12")
        return v

    @field_validator("engine_size")
    @classmethod
    def validate_engine_size(cls, v: str) -> str:
        _required(v, "Engine size")
        number = _parse_float(v)
        if number is None or number <= 0:
            raise ValueError("Engine size must be a positive number")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        if len(v.strip()) < DESCRIPTION_MIN_LENGTH:
            raise ValueError(
                f"Description must be at least {DESCRIPTION_MIN_LENGTH} characters"
            )
        return v

    def to_car_create(self, images: list[str]) -> CarCreate:
        """Coerce the numeric fields and build the listing payload."""
        return CarCreate(
            brand=self.brand.strip(),
            model=self.model.strip(),
            year=int(self.year),
            mileage=int(self.mileage),
            fuel=self.fuel,
            gearbox=self.gearbox,
            power=int(self.power),
            price=int(self.price),
            condition=self.condition,
            body_type=self.body_type,
            drive_type=self.drive_type,
            color=self.color,
            doors=int(self.doors),
            seats=int(self.seats),
            engine_size=float(self.engine_size),
            vin=self.vin or None,
            license_plate=self.license_plate or None,
            features=self.features or None,
            description=self.description,
            images=images,
        )
