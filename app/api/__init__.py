"""API routes."""

from fastapi import APIRouter

from app.api import admin, auth, cars, favorites, health, upload, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(cars.router, prefix="/cars", tags=["cars"])
router.include_router(favorites.router, prefix="/favorites", tags=["favorites"])
router.include_router(upload.router, prefix="/upload", tags=["upload"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
