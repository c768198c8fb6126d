"""
Logging setup for the segment service.

Only the ``segment_service_api`` logger tree (store, history log,
reconciler, request handlers) is configured here; uvicorn sets up its
own loggers when the server starts.  Records go to the console at
``LOG_LEVEL`` and, when ``LOG_FILE`` is set, to that file as well.
They still propagate to the root logger, so anything attached there
(pytest's ``caplog`` included) sees them too.
"""

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Optional

SERVICE_LOGGER = "segment_service_api"


def _level_name(level: str) -> str:
    name = level.upper()
    return name if isinstance(logging.getLevelName(name), int) else "INFO"


def build_logging_config(level: str = "INFO", logfile: Optional[str] = None) -> Dict[str, Any]:
    """Return a ``dictConfig`` mapping for the service logger tree.

    Parameters
    ----------
    level : str
        Level name, case insensitive.  Unknown names fall back to
        ``INFO``.
    logfile : Optional[str]
        File to mirror records into.  Empty or ``None`` disables file
        logging.

    Returns
    -------
    Dict[str, Any]
        Mapping accepted by ``logging.config.dictConfig``.
    """
    handlers: Dict[str, Dict[str, Any]] = {
        "console": {"class": "logging.StreamHandler", "formatter": "service"},
    }
    if logfile:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "service",
            "filename": str(Path(logfile).resolve()),
            "encoding": "utf-8",
        }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "service": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": handlers,
        "loggers": {
            SERVICE_LOGGER: {"level": _level_name(level), "handlers": list(handlers)},
        },
    }


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the service logger tree once per process."""
    if logging.getLogger(SERVICE_LOGGER).handlers:
        return
    logging.config.dictConfig(build_logging_config(level, logfile))
