"""
Service information endpoint for API v1.
"""

from typing import Any, Dict

from fastapi import APIRouter

from segment_service_api.app.core.config import settings

router = APIRouter()


@router.get("", response_model=Dict[str, Any])
def get_info() -> Dict[str, Any]:
    """Return the project name, version and segment name matching mode."""
    return {
        "project": settings.project_name,
        "version": settings.api_version,
        "segment_match_mode": settings.segment_match_mode,
    }
