"""
Compose Firestore predicates from browse-page filter fields.

Composition is pure (`compose_predicates`) so it can be checked without a
database; `search_cars` binds the predicates to the `cars` collection.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, NamedTuple

from google.cloud.firestore import Client, Query
from google.cloud.firestore_v1.base_query import FieldFilter

from app.core.database import CARS_COLLECTION
from app.schemas.car import Car
from app.schemas.filters import CarFilters
from app.services.cars import car_from_snapshot

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

ANY_VALUE = "any"
# Upper bound for a prefix range scan: sorts after any other character in a string.
PREFIX_RANGE_END = "\uf8ff"

# Filter attribute -> Firestore field, for equality filters.
_EQUALITY_FIELDS: tuple[tuple[str, str], ...] = (
    ("brand", "brand"),
    ("model", "model"),
    ("fuel", "fuel"),
    ("condition", "condition"),
    ("body_type", "bodyType"),
    ("drive_type", "driveType"),
    ("gearbox", "gearbox"),
)


class InvalidFilterError(ValueError):
    """Raised when a numeric filter bound is not an integer."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class Predicate(NamedTuple):
    field: str
    op: str
    value: Any


def _clean(value: str | None) -> str | None:
    """Strip a filter value; empty and "any" mean no filter."""
    if value is None:
        return None
    value = value.strip()
    if not value or value.lower() == ANY_VALUE:
        return None
    return value


def _parse_bound(name: str, value: str | None) -> int | None:
    cleaned = _clean(value)
    if cleaned is None:
        return None
    try:
        return int(cleaned)
    except ValueError as e:
        raise InvalidFilterError(f"{name} must be an integer, got {value!r}") from e


def compose_predicates(filters: CarFilters, settings: Settings) -> list[Predicate]:
    """
    Turn filter fields into AND-ed predicates, visibility first.

    Bounds equal to the configured full range are dropped, as are empty and
    "any" values. The free-text query is a prefix range on `model` and is
    skipped when an exact model is already requested.
    """
    predicates = [Predicate("isVisible", "==", True)]

    for attr, field in _EQUALITY_FIELDS:
        value = _clean(getattr(filters, attr))
        if value is not None:
            predicates.append(Predicate(field, "==", value))

    min_price = _parse_bound("minPrice", filters.min_price)
    if min_price is not None and min_price != settings.FILTER_MIN_PRICE:
        predicates.append(Predicate("price", ">=", min_price))
    max_price = _parse_bound("maxPrice", filters.max_price)
    if max_price is not None and max_price != settings.FILTER_MAX_PRICE:
        predicates.append(Predicate("price", "<=", max_price))
    min_year = _parse_bound("minYear", filters.min_year)
    if min_year is not None and min_year != settings.FILTER_MIN_YEAR:
        predicates.append(Predicate("year", ">=", min_year))
    max_year = _parse_bound("maxYear", filters.max_year)
    if max_year is not None and max_year != settings.filter_max_year:
        predicates.append(Predicate("year", "<=", max_year))

    query = filters.query.strip() if filters.query else ""
    if query:
        if any(p.field == "model" for p in predicates):
            logger.debug("Ignoring free-text query %r: exact model filter present", query)
        else:
            predicates.append(Predicate("model", ">=", query))
            predicates.append(Predicate("model", "<=", query + PREFIX_RANGE_END))

    return predicates


def apply_predicates(query: Query, predicates: list[Predicate]) -> Query:
    for p in predicates:
        query = query.where(filter=FieldFilter(p.field, p.op, p.value))
    return query


def search_cars(
    db: Client,
    filters: CarFilters,
    settings: Settings,
    limit: int | None = None,
) -> list[Car]:
    """Visible listings matching the filters, newest first, at most `limit` results."""
    predicates = compose_predicates(filters, settings)
    query = apply_predicates(db.collection(CARS_COLLECTION), predicates)
    query = query.order_by("createdAt", direction=Query.DESCENDING)
    if limit is not None:
        query = query.limit(limit)

    cars = [car_from_snapshot(s) for s in query.stream()]
    logger.info(
        "Car search completed",
        extra={"predicate_count": len(predicates), "result_count": len(cars)},
    )
    return cars
