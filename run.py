"""Entry point that serves the Segment Service API with uvicorn.

Intended to be executed from the project root, for example in Docker,
where only a single Python file is specified::

    python run.py

Host and port are read from the ``HOST`` and ``PORT`` environment
variables (defaults ``0.0.0.0`` and ``8000``); the database location
from ``DATABASE_URL``.  See ``segment_service_api.app.core.config``
for every supported variable.
"""
import asyncio
import logging

from uvicorn import Config, Server

from segment_service_api.app.core.config import settings
from segment_service_api.app.main import app


async def main() -> None:
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logging.getLogger(__name__).info("Shutting down")
