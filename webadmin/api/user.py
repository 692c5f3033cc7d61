"""Current-user endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from webadmin.api.deps import get_current_user, get_user_store
from webadmin.schemas.auth import CurrentUser
from webadmin.schemas.user import UserResponse
from webadmin.services.user_store import UserNotFoundError, UserStore

router = APIRouter()


@router.get("", response_model=UserResponse)
def get_me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    users: Annotated[UserStore, Depends(get_user_store)],
) -> UserResponse:
    """Return the full record of the authenticated user. 404 if it was deleted since login."""
    try:
        user = users.get_user_by_id(current_user.id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    return UserResponse.model_validate(user)
