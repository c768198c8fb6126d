"""
Shared error types for the service layer.

Domain errors derive from ``ValueError`` because endpoints already map
``ValueError`` to a client error.  ``StoreError`` marks infrastructure
failures: the storage backend is unreachable or rejected a statement
for a reason none of the domain errors explain.
"""


class SegmentServiceError(Exception):
    """Base class for all errors raised by the service layer."""


class NotFoundError(SegmentServiceError, ValueError):
    """A referenced user or segment does not exist."""


class AlreadyExistsError(SegmentServiceError, ValueError):
    """A segment with the same name is already registered."""


class AlreadyMemberError(SegmentServiceError, ValueError):
    """The user already belongs to the segment."""

    def __init__(self, user_id: int, segment_id: int):
        super().__init__(f"User {user_id} is already a member of segment {segment_id}")
        self.user_id = user_id
        self.segment_id = segment_id


class NotMemberError(SegmentServiceError, ValueError):
    """The user does not belong to the segment."""

    def __init__(self, user_id: int, segment_id: int):
        super().__init__(f"User {user_id} is not a member of segment {segment_id}")
        self.user_id = user_id
        self.segment_id = segment_id


class StoreError(SegmentServiceError, RuntimeError):
    """Raised when the storage backend fails."""
