"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts with a local SQLite file and no extra setup.  In a
production deployment override them via environment variables.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Segment Service API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # Path to the SQLite database file.  A relative path is resolved
    # against the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "segments.db")

    # Prefix under which the v1 routes are mounted, e.g. "/api/v1".
    # Empty by default so that paths are ``/users``, ``/user-segments``.
    api_prefix: str = os.getenv("API_PREFIX", "")

    # How segment names from requests are matched against stored names:
    # "exact"   - case-insensitive exact match
    # "pattern" - SQL LIKE, the request name is used as the pattern
    segment_match_mode: str = os.getenv("SEGMENT_MATCH_MODE", "exact").strip().lower()

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# must be set before importing this module.
settings = Settings()
