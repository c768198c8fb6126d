"""
Membership reconciliation.

``MembershipReconciler.reconcile`` applies a batch of segment additions
and removals for a single user and reports one ``Outcome`` per
requested item.

Items are independent: a missing segment, a duplicate add or a remove
of a segment the user does not have is recorded as an error outcome and
the batch carries on.  Earlier items are never rolled back.  A storage
failure is different: it is recorded as ``FAILURE`` and the rest of the
batch is skipped.  An unknown user short-circuits the whole batch with
a single ``USER_NOT_FOUND`` outcome and touches nothing.

Each committed insert or delete is followed by one history entry.  If
that write fails the error is logged and the mutation is still
reported as successful.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, List, Optional

from segment_service_api.app.core.errors import AlreadyMemberError, NotMemberError, StoreError
from segment_service_api.app.schemas.segment import SegmentRead
from segment_service_api.app.services.history_service import HistoryAction, HistoryLog
from segment_service_api.app.services.store import EntityStore

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    ALREADY_MEMBER = "already_member"
    NOT_A_MEMBER = "not_a_member"
    SEGMENT_NOT_FOUND = "segment_not_found"
    USER_NOT_FOUND = "user_not_found"
    FAILURE = "failure"


SUCCESS_KINDS = frozenset({OutcomeKind.ADDED, OutcomeKind.REMOVED})


@dataclass(frozen=True)
class Outcome:
    """Result of one reconciliation step.

    ``segment`` is the stored segment name when the segment was found,
    otherwise the name as it appeared in the request.  It is ``None``
    only for ``USER_NOT_FOUND`` and for a failure while resolving the
    user.
    """

    kind: OutcomeKind
    user_id: int
    segment: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind in SUCCESS_KINDS


class MembershipReconciler:
    """Apply add/remove batches against an ``EntityStore``."""

    def __init__(
        self,
        store: EntityStore,
        history: HistoryLog,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.history = history
        self._now = clock or (lambda: datetime.now(timezone.utc))

    def reconcile(
        self,
        user_id: int,
        to_add: Iterable[str],
        to_remove: Iterable[str],
    ) -> List[Outcome]:
        """Add ``to_add`` and then remove ``to_remove`` for ``user_id``.

        Names are processed in the order given, all additions before
        all removals.  Returns the outcomes in processing order.
        """
        try:
            user = self.store.find_user(user_id)
        except StoreError:
            logger.exception("Looking up user %s failed", user_id)
            return [Outcome(OutcomeKind.FAILURE, user_id)]
        if user is None:
            logger.info("Reconciliation skipped: user %s does not exist", user_id)
            return [Outcome(OutcomeKind.USER_NOT_FOUND, user_id)]

        outcomes: List[Outcome] = []
        steps = [(name, self._add) for name in to_add] + [(name, self._remove) for name in to_remove]
        for name, step in steps:
            outcome = step(user_id, name)
            outcomes.append(outcome)
            if outcome.kind is OutcomeKind.FAILURE:
                logger.error(
                    "Reconciliation for user %s aborted at segment %r; %d item(s) skipped",
                    user_id,
                    name,
                    len(steps) - len(outcomes),
                )
                break
        return outcomes

    def _add(self, user_id: int, name: str) -> Outcome:
        try:
            segment = self.store.find_segment(name)
            if segment is None:
                return Outcome(OutcomeKind.SEGMENT_NOT_FOUND, user_id, name)
            if self.store.has_membership(user_id, segment.id):
                return Outcome(OutcomeKind.ALREADY_MEMBER, user_id, segment.name)
            self.store.add_membership(user_id, segment.id)
        except AlreadyMemberError:
            # lost a race against a concurrent add of the same pair
            return Outcome(OutcomeKind.ALREADY_MEMBER, user_id, segment.name)
        except StoreError:
            logger.exception("Adding segment %r for user %s failed", name, user_id)
            return Outcome(OutcomeKind.FAILURE, user_id, name)
        logger.info("Segment %r added for user %s", segment.name, user_id)
        self._record(user_id, segment, HistoryAction.ADD)
        return Outcome(OutcomeKind.ADDED, user_id, segment.name)

    def _remove(self, user_id: int, name: str) -> Outcome:
        try:
            segment = self.store.find_segment(name)
            if segment is None:
                return Outcome(OutcomeKind.SEGMENT_NOT_FOUND, user_id, name)
            if not self.store.has_membership(user_id, segment.id):
                return Outcome(OutcomeKind.NOT_A_MEMBER, user_id, segment.name)
            self.store.remove_membership(user_id, segment.id)
        except NotMemberError:
            return Outcome(OutcomeKind.NOT_A_MEMBER, user_id, segment.name)
        except StoreError:
            logger.exception("Removing segment %r for user %s failed", name, user_id)
            return Outcome(OutcomeKind.FAILURE, user_id, name)
        logger.info("Segment %r removed for user %s", segment.name, user_id)
        self._record(user_id, segment, HistoryAction.REMOVE)
        return Outcome(OutcomeKind.REMOVED, user_id, segment.name)

    def _record(self, user_id: int, segment: SegmentRead, action: HistoryAction) -> None:
        try:
            self.history.record(user_id, segment.id, action, self._now())
        except StoreError:
            logger.exception(
                "History entry (%s, user %s, segment %r) was not written",
                action.value,
                user_id,
                segment.name,
            )
