"""Health check endpoint with Firestore and bucket connectivity checks."""

from typing import Annotated

from fastapi import APIRouter, Depends
from google.cloud.firestore import Client

from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse
from app.services.storage import ObjectStorage, get_storage

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(
    db: Annotated[Client, Depends(get_db)],
    storage: Annotated[ObjectStorage, Depends(get_storage)],
) -> HealthResponse:
    """
    Return service health status and backing-service connectivity.
    Used by load balancers and monitoring.
    """
    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database="connected" if check_db_connected(db) else "disconnected",
        storage="connected" if storage.check_bucket() else "disconnected",
    )
