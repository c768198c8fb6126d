"""
Pydantic models for user data.
"""

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    """Schema for registering a user."""

    name: str = Field(..., min_length=1, examples=["Ivan Ivanov"])


class UserRead(BaseModel):
    """Schema for reading a user from the API."""

    id: int
    name: str

    model_config = {
        "from_attributes": True,
    }
