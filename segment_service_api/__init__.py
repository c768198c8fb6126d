"""
Top-level package for the Segment Service API.

Makes ``segment_service_api`` importable so that modules under ``app``
can be referenced by fully qualified names such as
``segment_service_api.app.main``.  All functionality lives in ``app``.
"""

__all__ = []
