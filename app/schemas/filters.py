"""Search filter fields as they arrive from the browse page query string."""

from app.schemas.base import CamelModel


class CarFilters(CamelModel):
    """
    Flat record of optional filter strings.

    Values are kept as raw strings; the composer decides which ones become
    predicates (empty, "any" and default-range values are ignored).
    """

    brand: str | None = None
    model: str | None = None
    min_price: str | None = None
    max_price: str | None = None
    min_year: str | None = None
    max_year: str | None = None
    fuel: str | None = None
    condition: str | None = None
    body_type: str | None = None
    drive_type: str | None = None
    gearbox: str | None = None
    query: str | None = None
