"""
Pydantic models for segments.

A segment is a named tag that can be attached to users.  Names are
unique; surrounding whitespace is stripped before storage.
"""

from pydantic import BaseModel, Field, field_validator


class SegmentCreate(BaseModel):
    """Schema for registering a segment."""

    name: str = Field(..., min_length=1, max_length=255, examples=["AVITO_VOICE_MESSAGES"])

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Segment name must not be blank")
        return v


class SegmentRead(BaseModel):
    id: int
    name: str

    model_config = {
        "from_attributes": True,
    }
