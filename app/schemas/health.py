"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field

ConnectivityStatus = Literal["connected", "disconnected"]


class HealthResponse(BaseModel):
    """Response body for the health check endpoint."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    database: ConnectivityStatus | None = Field(
        default=None,
        description="Firestore connectivity when the check is performed",
    )
    storage: ConnectivityStatus | None = Field(
        default=None,
        description="Image bucket reachability when the check is performed",
    )
