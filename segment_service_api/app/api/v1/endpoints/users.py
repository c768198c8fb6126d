"""
User endpoints for API v1.

Registration, listing and deletion of users.  Deleting a user removes
its segment memberships; its history rows are kept for reports.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from segment_service_api.app.api.deps import get_store
from segment_service_api.app.core.errors import NotFoundError
from segment_service_api.app.schemas.response import ApiResponse
from segment_service_api.app.schemas.user import UserCreate, UserRead
from segment_service_api.app.services.outcome_reporter import api_response
from segment_service_api.app.services.store import EntityStore

router = APIRouter()


@router.get("", response_model=List[UserRead])
def list_users(store: EntityStore = Depends(get_store)) -> List[UserRead]:
    """Return all users ordered by id."""
    return store.list_users()


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
def register_user(user: UserCreate, store: EntityStore = Depends(get_store)) -> dict:
    created = store.create_user(user.name)
    return api_response("success", f"User '{created.name}' was added with id {created.id}!")


@router.delete("/{user_id}", response_model=ApiResponse, responses={404: {"model": ApiResponse}})
def delete_user(user_id: int, store: EntityStore = Depends(get_store)):
    """Delete a user by id.

    Memberships of the user are removed by the database cascade.
    Returns 404 when no such user exists.
    """
    try:
        store.delete_user(user_id)
    except NotFoundError:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=api_response("error", f"User '{user_id}' does not exist!"),
        )
    return api_response("success", f"User '{user_id}' was deleted!")
