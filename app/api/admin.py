"""Admin panel routes: user management and the full listing inventory."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from google.cloud.firestore import Client

from app.api.auth import require_admin
from app.core.database import get_db
from app.schemas.car import Car
from app.schemas.user import CurrentUser, RoleUpdate, User, UsersListResponse
from app.services import cars, users

logger = logging.getLogger(__name__)

router = APIRouter()

AdminDep = Annotated[CurrentUser, Depends(require_admin)]
DbDep = Annotated[Client, Depends(get_db)]


@router.get("/users", response_model=UsersListResponse)
def list_users(_admin: AdminDep, db: DbDep) -> UsersListResponse:
    """List all user profiles (admin only)."""
    return UsersListResponse(users=users.list_users(db))


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: str, admin: AdminDep, db: DbDep) -> None:
    """Delete a profile document. The auth account and listings are left in place."""
    if user_id == admin.id:
        raise HTTPException(status_code=422, detail="Admins cannot delete their own profile.")
    if not users.delete_user(db, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    logger.info("Admin deleted user profile", extra={"admin_id": admin.id, "uid": user_id})


@router.patch("/users/{user_id}/role", response_model=User)
def set_user_role(user_id: str, body: RoleUpdate, admin: AdminDep, db: DbDep) -> User:
    user = users.set_role(db, user_id, body.role)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    logger.info(
        "Admin changed user role",
        extra={"admin_id": admin.id, "uid": user_id, "role": body.role},
    )
    return user


@router.get("/listings", response_model=list[Car])
def list_listings(_admin: AdminDep, db: DbDep) -> list[Car]:
    """Every listing, hidden ones included."""
    return cars.list_all(db)
