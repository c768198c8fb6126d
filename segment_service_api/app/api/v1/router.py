"""
Top-level router for version 1 of the API.

Aggregates the domain routers.  When a new endpoint module is added,
include its router here.
"""

from fastapi import APIRouter

from .endpoints import info, reports, segments, user_segments, users

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(segments.router, prefix="/segments", tags=["segments"])
router.include_router(user_segments.router, prefix="/user-segments", tags=["user-segments"])
# The reports router declares the full "/csv-report" path itself.
router.include_router(reports.router, tags=["reports"])
router.include_router(info.router, prefix="/info", tags=["info"])
