"""
Pydantic schema definitions for API payloads.

Schemas are kept apart from the storage layer so that the JSON field
names used on the wire (``user-id``, ``segment-names``) do not leak
into service code.
"""
