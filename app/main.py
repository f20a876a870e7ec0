"""FastAPI application entrypoint. No business logic; only wiring, middleware and error handlers."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from google.api_core.exceptions import GoogleAPICallError

from app.api import router as api_router
from app.core.config import settings
from app.core.database import create_firestore_client
from app.core.firebase import init_firebase_app
from app.core.logging import setup_logging
from app.services.identity import build_identity_provider
from app.services.storage import StorageError, build_storage

setup_logging(settings)

logger = logging.getLogger(__name__)


async def _firestore_error_handler(request: Request, exc: GoogleAPICallError) -> JSONResponse:
    logger.exception("Firestore request failed", extra={"path": request.url.path}, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Database request failed"})


async def _storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.exception("Storage request failed", extra={"path": request.url.path}, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": exc.message})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the Firestore, identity and storage clients into app.state."""
    firebase_app = init_firebase_app(settings)
    app.state.db = create_firestore_client(firebase_app)
    app.state.identity = build_identity_provider(firebase_app, settings)
    app.state.storage = build_storage(settings)
    logger.info(
        "Clients initialized",
        extra={"project_id": settings.FIREBASE_PROJECT_ID, "bucket": settings.AWS_S3_BUCKET_NAME},
    )
    yield
    logger.info("Shutting down")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Car Marketplace API",
        version="0.1.0",
        debug=settings.DEBUG,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(GoogleAPICallError, _firestore_error_handler)
    app.add_exception_handler(StorageError, _storage_error_handler)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Car Marketplace API"}

    return app


app = create_app()
