"""
Membership endpoints for API v1.

``POST /user-segments`` runs a reconciliation batch for one user and
answers with one ``{status, message}`` object per processed item.  The
``GET`` routes expose the current memberships with segment names joined
by commas.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from segment_service_api.app.api.deps import get_reconciler, get_store
from segment_service_api.app.schemas.response import ApiResponse
from segment_service_api.app.schemas.user_segment import UserSegmentsRead, UserSegmentsUpdate
from segment_service_api.app.services.membership_service import MembershipReconciler
from segment_service_api.app.services.outcome_reporter import api_response, render, status_code_for
from segment_service_api.app.services.store import EntityStore

router = APIRouter()


@router.post(
    "",
    response_model=List[ApiResponse],
    responses={
        404: {"description": "The user does not exist"},
        500: {"description": "Storage failure; the remaining items were skipped"},
    },
)
def update_user_segments(
    body: UserSegmentsUpdate,
    reconciler: MembershipReconciler = Depends(get_reconciler),
) -> JSONResponse:
    """Add ``segments`` and remove ``segments-for-delete`` for a user.

    Per-item problems (unknown segment, duplicate add, removing a
    segment the user does not have) are reported in the list and do not
    stop the batch.  The status code is 404 if the user does not exist
    and 500 if a storage failure stopped the batch part-way.
    """
    outcomes = reconciler.reconcile(body.user_id, body.segments, body.segments_for_delete)
    return JSONResponse(status_code=status_code_for(outcomes), content=render(outcomes))


@router.get("", response_model=List[UserSegmentsRead])
def list_user_segments(store: EntityStore = Depends(get_store)) -> List[UserSegmentsRead]:
    """Return every user that has at least one segment."""
    return [
        UserSegmentsRead(user_id=user_id, segment_names=",".join(names))
        for user_id, names in store.list_all_memberships().items()
    ]


@router.get("/{user_id}", response_model=UserSegmentsRead, responses={404: {"model": ApiResponse}})
def get_user_segments(user_id: int, store: EntityStore = Depends(get_store)):
    names = store.list_memberships_by_user(user_id)
    if not names:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=api_response("error", f"Segments for user '{user_id}' do not exist!"),
        )
    return UserSegmentsRead(user_id=user_id, segment_names=",".join(names))
