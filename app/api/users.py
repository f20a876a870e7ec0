"""Profile routes for the signed-in user."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from google.cloud.firestore import Client

from app.api.auth import get_current_user
from app.core.database import get_db
from app.core.security import can_mutate
from app.schemas.car import Car
from app.schemas.user import CurrentUser, User, UserProfileUpdate
from app.services import cars, users

router = APIRouter()


@router.get("/me/listings", response_model=list[Car])
def my_listings(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Client, Depends(get_db)],
) -> list[Car]:
    """The requester's listings, hidden ones included."""
    return cars.list_user_listings(db, current_user.id)


@router.patch("/{user_id}", response_model=User)
def update_profile(
    user_id: str,
    body: UserProfileUpdate,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Client, Depends(get_db)],
) -> User:
    if not can_mutate(current_user, user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to modify this resource.",
        )
    user = users.update_profile(db, user_id, body)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
