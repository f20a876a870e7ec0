"""
Five-step listing form: basic info, technical details, features, images, review.

`CarFormWizard` holds the form state for one user session and gates each
step on its own fields. Calling `next()` on the last step submits: new images
are uploaded first, then the listing is created or updated.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from google.api_core.exceptions import GoogleAPICallError
from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from app.core.security import PermissionDeniedError, ensure_can_mutate
from app.schemas.car import Car, CarUpdate
from app.schemas.car_form import CarFormValues
from app.schemas.user import CurrentUser
from app.services import cars
from app.services.cars import ListingNotFoundError
from app.services.storage import ImageFile, StorageError

if TYPE_CHECKING:
    from google.cloud.firestore import Client

    from app.core.config import Settings
    from app.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

FormMode = Literal["create", "edit"]
LOGIN_URL = "/auth/login"


@dataclass(frozen=True)
class FormStep:
    id: str
    label: str
    fields: tuple[str, ...] = ()


STEPS: tuple[FormStep, ...] = (
    FormStep("basic-info", "Basic info", ("brand", "model", "year", "condition", "price")),
    FormStep(
        "technical",
        "Technical details",
        (
            "mileage",
            "fuel",
            "gearbox",
            "power",
            "body_type",
            "drive_type",
            "color",
            "doors",
            "seats",
            "engine_size",
        ),
    ),
    FormStep("features", "Features", ("description",)),
    FormStep("images", "Images"),
    FormStep("review", "Review"),
)
IMAGES_STEP = 3
LAST_STEP = len(STEPS) - 1

# Accept both snake_case names and camelCase aliases for form fields.
_FIELD_NAMES: dict[str, str] = {}
for _name in CarFormValues.model_fields:
    _FIELD_NAMES[_name] = _name
    _FIELD_NAMES[to_camel(_name)] = _name

MSG_SIGN_IN = "Sign in to publish a listing."
MSG_NEED_IMAGES = "Upload at least one image of the car."
MSG_UPLOAD_FAILED = "Image upload failed. Try again with smaller files."
MSG_NO_PERMISSION = "You do not have permission to edit this listing."
MSG_NOT_FOUND = "This listing no longer exists."
MSG_GENERIC = "Something went wrong. Please try again."


@dataclass(frozen=True)
class SubmissionResult:
    car_id: str
    redirect_url: str
    redirect_after: float


@dataclass
class StepResult:
    """Outcome of a wizard transition."""

    ok: bool
    active_step: int
    errors: dict[str, str] = field(default_factory=dict)
    message: str | None = None
    redirect_url: str | None = None
    submission: SubmissionResult | None = None


def _error_message(error: dict[str, Any]) -> str:
    msg = error.get("msg", "Invalid value")
    return msg.removeprefix("Value error, ")


def _collect_errors(values: dict[str, str | None]) -> dict[str, str]:
    """Validate every field; return the first message per invalid field."""
    try:
        CarFormValues.model_validate(values)
    except ValidationError as e:
        errors: dict[str, str] = {}
        for err in e.errors():
            if not err["loc"]:
                continue
            name = _FIELD_NAMES.get(str(err["loc"][0]), str(err["loc"][0]))
            errors.setdefault(name, _error_message(err))
        return errors
    return {}


def form_values_from_car(car: Car) -> dict[str, str]:
    """Prefill values for editing an existing listing."""
    return {
        "brand": car.brand,
        "model": car.model,
        "year": str(car.year),
        "mileage": str(car.mileage),
        "fuel": car.fuel,
        "gearbox": car.gearbox,
        "power": str(car.power),
        "price": str(car.price),
        "condition": car.condition,
        "body_type": car.body_type,
        "drive_type": car.drive_type,
        "color": car.color,
        "doors": str(car.doors),
        "seats": str(car.seats),
        "engine_size": f"{car.engine_size:g}",
        "vin": car.vin or "",
        "license_plate": car.license_plate or "",
        "features": car.features or "",
        "description": car.description,
    }


class CarFormWizard:
    """Linear five-step form with per-step validation and a submit side effect on the last step."""

    def __init__(
        self,
        db: Client,
        storage: ObjectStorage,
        settings: Settings,
        user: CurrentUser | None,
        mode: FormMode = "create",
        car_id: str | None = None,
        initial_values: dict[str, Any] | None = None,
        existing_images: list[str] | None = None,
        on_progress: Callable[[int], None] | None = None,
    ) -> None:
        if mode == "edit" and not car_id:
            raise ValueError("car_id is required in edit mode")
        self._db = db
        self._storage = storage
        self._settings = settings
        self._on_progress = on_progress
        self.user = user
        self.mode = mode
        self.car_id = car_id
        self.values: dict[str, str | None] = CarFormValues().model_dump()
        if initial_values:
            self.update(initial_values)
        self.active_step = 0
        self.furthest_step = 0
        self.images: list[ImageFile] = []
        self.remaining_images: list[str] = list(existing_images or [])
        self.errors: dict[str, str] = {}
        self.message: str | None = None
        self.progress = 0
        self.is_submitting = False
        self.is_success = False
        self.result: SubmissionResult | None = None

    @property
    def step(self) -> FormStep:
        return STEPS[self.active_step]

    def update(self, values: dict[str, Any]) -> None:
        """Set form fields by snake_case name or camelCase alias. Unknown keys raise KeyError."""
        for key, value in values.items():
            name = _FIELD_NAMES.get(key)
            if name is None:
                raise KeyError(f"Unknown form field: {key}")
            self.values[name] = None if value is None else str(value)

    def add_image(self, image: ImageFile) -> None:
        self.images.append(image)

    def remove_image(self, index: int) -> ImageFile:
        return self.images.pop(index)

    def remove_existing_image(self, index: int) -> str:
        """Drop a previously stored image; it is deleted from storage when the edit is saved."""
        return self.remaining_images.pop(index)

    def validate_step(self, step: int) -> dict[str, str]:
        fields = STEPS[step].fields
        if not fields:
            return {}
        errors = _collect_errors(self.values)
        return {name: msg for name, msg in errors.items() if name in fields}

    def next(self) -> StepResult:
        """Validate the current step, then advance; on the last step, submit."""
        if self.is_submitting or self.is_success:
            return StepResult(ok=False, active_step=self.active_step, message=self.message)
        self.errors = self.validate_step(self.active_step)
        if self.errors:
            return StepResult(ok=False, active_step=self.active_step, errors=dict(self.errors))
        if self.active_step == LAST_STEP:
            return self.submit()
        self.active_step += 1
        self.furthest_step = max(self.furthest_step, self.active_step)
        return StepResult(ok=True, active_step=self.active_step)

    def back(self) -> StepResult:
        self.active_step = max(0, self.active_step - 1)
        return StepResult(ok=True, active_step=self.active_step)

    def go_to(self, step: int) -> bool:
        """Jump to a completed step or the one right after the current step."""
        if not 0 <= step <= LAST_STEP or step > self.active_step + 1:
            return False
        self.active_step = step
        self.furthest_step = max(self.furthest_step, step)
        return True

    def _set_progress(self, value: int) -> None:
        self.progress = value
        if self._on_progress is not None:
            self._on_progress(value)

    def _upload_progress(self, done: int, total: int) -> None:
        # Uploads fill the bar up to 90; persistence completes it.
        self._set_progress(10 + (80 * done) // total)

    def _fail(self, message: str, step: int | None = None, **kwargs: Any) -> StepResult:
        if step is not None:
            self.active_step = step
        self.message = message
        self.is_submitting = False
        self._set_progress(0)
        return StepResult(ok=False, active_step=self.active_step, message=message, **kwargs)

    def submit(self) -> StepResult:
        """
        Upload new images, then create or update the listing.

        Never touches persistence when no image is attached. Integration
        failures are logged and returned as a retryable message.
        """
        if self.user is None:
            return self._fail(MSG_SIGN_IN, redirect_url=LOGIN_URL)
        if not self.remaining_images and not self.images:
            return self._fail(MSG_NEED_IMAGES, step=IMAGES_STEP, errors={"images": MSG_NEED_IMAGES})

        errors = _collect_errors(self.values)
        if errors:
            first_step = next((i for i, s in enumerate(STEPS) if set(s.fields) & set(errors)), 0)
            self.errors = errors
            return self._fail(next(iter(errors.values())), step=first_step, errors=errors)

        self.is_submitting = True
        self.message = None
        self._set_progress(10)
        uploaded: list[str] = []
        try:
            uploaded = self._storage.upload_files(self.images, on_progress=self._upload_progress)
            final_images = self.remaining_images + uploaded
            payload = CarFormValues.model_validate(self.values).to_car_create(final_images)
            if self.mode == "create":
                car_id = cars.create_listing(self._db, payload, self.user.id)
            else:
                car = cars.require_car(self._db, self.car_id)
                ensure_can_mutate(self.user, car.user_id)
                changes = CarUpdate.model_validate(payload.model_dump())
                car_id = cars.update_listing(self._db, self._storage, car, changes).id
        except StorageError as e:
            logger.error("Listing submission failed during upload", extra={"error": e.message})
            return self._fail(MSG_UPLOAD_FAILED)
        except PermissionDeniedError:
            self._discard_uploads(uploaded)
            return self._fail(MSG_NO_PERMISSION)
        except ListingNotFoundError:
            self._discard_uploads(uploaded)
            return self._fail(MSG_NOT_FOUND)
        except (GoogleAPICallError, ValidationError):
            logger.exception("Listing submission failed", extra={"mode": self.mode})
            self._discard_uploads(uploaded)
            return self._fail(MSG_GENERIC)

        self.is_submitting = False
        self.is_success = True
        self.car_id = car_id
        self._set_progress(100)
        self.result = SubmissionResult(
            car_id=car_id,
            redirect_url=f"/cars/{car_id}",
            redirect_after=self._settings.FORM_REDIRECT_DELAY_SEC,
        )
        logger.info("Listing form submitted", extra={"mode": self.mode, "car_id": car_id})
        return StepResult(ok=True, active_step=self.active_step, submission=self.result)

    def _discard_uploads(self, urls: list[str]) -> None:
        """Remove images uploaded for a submission that was not persisted."""
        for url in urls:
            try:
                self._storage.delete_file(url)
            except StorageError as e:
                logger.warning("Orphaned upload not removed", extra={"url": url, "error": e.message})


def open_edit_form(
    db: Client,
    storage: ObjectStorage,
    settings: Settings,
    user: CurrentUser | None,
    car_id: str,
    on_progress: Callable[[int], None] | None = None,
) -> CarFormWizard:
    """
    Load a listing into an edit-mode wizard.

    Raises ListingNotFoundError, or PermissionDeniedError carrying the
    redirect a UI should perform (login for anonymous users, the listing
    page for everyone else).
    """
    car = cars.require_car(db, car_id)
    if user is None:
        raise PermissionDeniedError(
            "Sign in to edit this listing.",
            redirect_url=f"{LOGIN_URL}?redirect=/listings/edit/{car_id}",
            redirect_after=settings.FORM_REDIRECT_DELAY_SEC,
        )
    ensure_can_mutate(
        user,
        car.user_id,
        redirect_url=f"/cars/{car_id}",
        redirect_after=settings.UNAUTHORIZED_REDIRECT_DELAY_SEC,
    )
    return CarFormWizard(
        db,
        storage,
        settings,
        user,
        mode="edit",
        car_id=car.id,
        initial_values=form_values_from_car(car),
        existing_images=car.images,
        on_progress=on_progress,
    )
