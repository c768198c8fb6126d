"""
Turn reconciliation outcomes into API payloads.

All mutating endpoints answer with ``{"status": ..., "message": ...}``
objects.  ``render`` maps a list of ``Outcome`` values to that shape;
``api_response`` builds a single one for the CRUD endpoints.
Storage details never appear in messages: failures always read
``GENERIC_ERROR``.
"""

from typing import Dict, Iterable, List

from fastapi import status

from segment_service_api.app.services.membership_service import Outcome, OutcomeKind

GENERIC_ERROR = "Something went wrong!"

_MESSAGES = {
    OutcomeKind.ADDED: "Segment '{segment}' for user '{user_id}' was added",
    OutcomeKind.REMOVED: "Segment '{segment}' for user '{user_id}' was deleted",
    OutcomeKind.ALREADY_MEMBER: "Segment '{segment}' for user '{user_id}' already exists!",
    OutcomeKind.NOT_A_MEMBER: "There is no segment '{segment}' for user '{user_id}'",
    OutcomeKind.SEGMENT_NOT_FOUND: "Segment '{segment}' does not exist!",
    OutcomeKind.USER_NOT_FOUND: "User '{user_id}' does not exist!",
}


def api_response(status_tag: str, message: str) -> Dict[str, str]:
    return {"status": status_tag, "message": message}


def render_one(outcome: Outcome) -> Dict[str, str]:
    if outcome.kind is OutcomeKind.FAILURE:
        return api_response("error", GENERIC_ERROR)
    message = _MESSAGES[outcome.kind].format(segment=outcome.segment, user_id=outcome.user_id)
    return api_response("success" if outcome.ok else "error", message)


def render(outcomes: Iterable[Outcome]) -> List[Dict[str, str]]:
    return [render_one(outcome) for outcome in outcomes]


def status_code_for(outcomes: List[Outcome]) -> int:
    """HTTP status for a reconciliation response.

    404 when the user was not found, 500 when an infrastructure failure
    stopped the batch, 200 otherwise (per-item errors included).
    """
    kinds = {outcome.kind for outcome in outcomes}
    if OutcomeKind.FAILURE in kinds:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if OutcomeKind.USER_NOT_FOUND in kinds:
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_200_OK
