"""
Pydantic models for the history report.
"""

from pydantic import BaseModel, Field


class ReportRequest(BaseModel):
    """Calendar month for which the history report is produced."""

    year: int = Field(..., ge=1970, le=9999, examples=[2023])
    month: int = Field(..., ge=1, le=12, examples=[8])
