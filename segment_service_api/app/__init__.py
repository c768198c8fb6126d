"""
Application package for the segment service.

The service keeps users, a catalog of named segments and the
membership between them.  Layout:

* ``core``     - configuration, logging, database bootstrap, errors
* ``schemas``  - pydantic request/response models
* ``services`` - storage, history, membership reconciliation, reports
* ``api``      - versioned FastAPI routers
"""

from .main import app  # noqa: F401
