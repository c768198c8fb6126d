"""
Pydantic models for user/segment membership payloads.

The wire format uses dashed keys (``user-id``, ``segments-for-delete``)
which are not valid Python identifiers, so every field declares an
alias.  ``populate_by_name`` lets service code and tests build the
models with the Python names as well.
"""

from typing import List

from pydantic import BaseModel, Field


class UserSegmentsUpdate(BaseModel):
    """Batch of segment additions and removals for one user.

    Both lists are processed in the order given.  A name may appear in
    both lists; it is then added first and removed afterwards.
    """

    user_id: int = Field(..., alias="user-id")
    segments: List[str] = Field(default_factory=list, description="Segment names to add")
    segments_for_delete: List[str] = Field(
        default_factory=list,
        alias="segments-for-delete",
        description="Segment names to remove",
    )

    model_config = {
        "populate_by_name": True,
    }


class UserSegmentsRead(BaseModel):
    """A user's segment names joined with commas."""

    user_id: int = Field(..., alias="user-id")
    segment_names: str = Field(..., alias="segment-names")

    model_config = {
        "populate_by_name": True,
    }
