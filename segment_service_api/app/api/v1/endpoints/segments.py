"""
Segment catalog endpoints for API v1.

Segments are created and deleted by name.  Whether a request name has
to match a stored name exactly (ignoring case) or is treated as a
``LIKE`` pattern depends on ``SEGMENT_MATCH_MODE``.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from segment_service_api.app.api.deps import get_store
from segment_service_api.app.core.errors import AlreadyExistsError, NotFoundError
from segment_service_api.app.schemas.response import ApiResponse
from segment_service_api.app.schemas.segment import SegmentCreate, SegmentRead
from segment_service_api.app.services.outcome_reporter import api_response
from segment_service_api.app.services.store import EntityStore

router = APIRouter()


@router.get("", response_model=List[SegmentRead])
def list_segments(store: EntityStore = Depends(get_store)) -> List[SegmentRead]:
    return store.list_segments()


@router.post(
    "",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ApiResponse}},
)
def create_segment(segment: SegmentCreate, store: EntityStore = Depends(get_store)):
    """Register a segment.  409 if a segment with that name exists."""
    try:
        created = store.create_segment(segment.name)
    except AlreadyExistsError:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=api_response("error", f"Segment '{segment.name}' already exists!"),
        )
    return api_response("success", f"Segment '{created.name}' was added")


@router.delete("/{segment_name}", response_model=ApiResponse, responses={404: {"model": ApiResponse}})
def delete_segment(segment_name: str, store: EntityStore = Depends(get_store)):
    """Delete the matching segment(s) and their memberships."""
    try:
        deleted = store.delete_segment(segment_name)
    except NotFoundError:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=api_response("error", f"Segment '{segment_name}' does not exist!"),
        )
    names = ", ".join(segment.name for segment in deleted)
    return api_response("success", f"Segment '{names}' was deleted!")
