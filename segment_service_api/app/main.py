"""
Main entrypoint for the Segment Service API.

This module assembles the FastAPI application, sets up logging and
includes the versioned routers.  ``create_app`` builds and configures
the app, which is then instantiated at module import time as ``app``::

    uvicorn segment_service_api.app.main:app --reload

The application title and version come from ``Settings`` in
``core.config``.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import init_db
from .core.errors import StoreError
from .core.logging_config import setup_logging
from .services.outcome_reporter import GENERIC_ERROR, api_response

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Creates the database file on first start and applies pending
    # migrations.
    init_db()
    logger.info("Database ready at %s", settings.database_url)
    yield


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=api_response("error", GENERIC_ERROR),
    )


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Logging is configured first so that everything imported or started
    afterwards can log.  Storage failures that escape an endpoint are
    turned into a generic 500 response; their details only go to the log.
    """
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(
        title=settings.project_name,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.add_exception_handler(StoreError, store_error_handler)
    app.include_router(v1_router, prefix=settings.api_prefix)
    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
