"""Ownership authorization shared by every mutating handler."""

from app.schemas.user import CurrentUser

ADMIN_ROLE = "admin"


class PermissionDeniedError(Exception):
    """
    Raised when a requester may not mutate a resource.

    Carries where a UI should send the user and after how long.
    """

    def __init__(
        self,
        message: str = "You do not have permission to modify this resource.",
        redirect_url: str | None = None,
        redirect_after: float | None = None,
    ) -> None:
        self.message = message
        self.redirect_url = redirect_url
        self.redirect_after = redirect_after
        super().__init__(message)


def is_admin(requester: CurrentUser | None) -> bool:
    return requester is not None and requester.role == ADMIN_ROLE


def can_mutate(requester: CurrentUser | None, owner_id: str | None) -> bool:
    """True iff the requester owns the resource or is an admin."""
    if requester is None:
        return False
    if is_admin(requester):
        return True
    return bool(owner_id) and requester.id == owner_id


def ensure_can_mutate(
    requester: CurrentUser | None,
    owner_id: str | None,
    redirect_url: str | None = None,
    redirect_after: float | None = None,
) -> None:
    """Raise PermissionDeniedError unless can_mutate(requester, owner_id)."""
    if not can_mutate(requester, owner_id):
        raise PermissionDeniedError(redirect_url=redirect_url, redirect_after=redirect_after)
