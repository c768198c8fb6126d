"""
Uniform status payload returned by mutating endpoints.
"""

from typing import Literal

from pydantic import BaseModel


class ApiResponse(BaseModel):
    status: Literal["success", "error"]
    message: str
