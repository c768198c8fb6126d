"""
Append-only history of membership changes.

Every membership row that the reconciler inserts or deletes is
mirrored by one row in the ``history`` table.  Rows are never updated
or deleted.  The segment name is copied into the row at write time so
that reports still show it after the segment itself has been removed.

Timestamps are stored as UTC text (``YYYY-MM-DD HH:MM:SS``) so that a
month filter can be expressed as a plain string range.
"""

from __future__ import annotations

import calendar
import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterator, Optional

from segment_service_api.app.core.db import get_connection
from segment_service_api.app.core.errors import StoreError

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class HistoryAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True)
class HistoryEntry:
    user_id: int
    segment_id: int
    segment_name: str
    action: HistoryAction
    created_at: datetime


def _to_utc_text(timestamp: datetime) -> str:
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def month_bounds(year: int, month: int) -> tuple[str, str]:
    """Return the first and last second of a calendar month.

    Both bounds are inclusive and stay inside ``year``, so December 9999
    is a valid month.
    """
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1)
    end = datetime(year, month, last_day, 23, 59, 59)
    return start.strftime(TIMESTAMP_FORMAT), end.strftime(TIMESTAMP_FORMAT)


class HistoryLog:
    """Writer and reader for the ``history`` table."""

    def __init__(self, connection_factory: Callable[[], sqlite3.Connection] = get_connection) -> None:
        self._connect = connection_factory

    def record(
        self,
        user_id: int,
        segment_id: int,
        action: HistoryAction | str,
        timestamp: Optional[datetime] = None,
    ) -> None:
        """Append one history row.

        The segment name is copied from the ``segments`` table in the same
        statement.

        Parameters
        ----------
        user_id : int
            User whose membership changed.
        segment_id : int
            Segment that was added or removed.
        action : HistoryAction | str
            ``"add"`` or ``"remove"``.  Any other value raises
            ``ValueError``.
        timestamp : Optional[datetime]
            Time of the change.  Naive values are taken as UTC.  Defaults
            to now.

        Raises
        ------
        StoreError
            The row could not be written, including the case where the
            segment no longer exists and its name cannot be copied.
        """
        action = HistoryAction(action)
        created_at = _to_utc_text(timestamp or datetime.now(timezone.utc))
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open database: {exc}") from exc
        try:
            cursor = conn.execute(
                """
                INSERT INTO history (user_id, segment_id, segment_name, action, created_at)
                SELECT ?, id, name, ?, ? FROM segments WHERE id = ?
                """,
                (user_id, action.value, created_at, segment_id),
            )
            if cursor.rowcount == 0:
                conn.rollback()
                raise StoreError(f"Segment {segment_id} vanished before history was written")
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()
        logger.debug("History: user %s %s segment %s", user_id, action.value, segment_id)

    def query(self, year: int, month: int) -> Iterator[HistoryEntry]:
        """Yield the entries of one calendar month in insertion order.

        This is a generator: the connection is opened on the first
        ``next()`` and closed when the iteration finishes or the
        generator is closed.

        Parameters
        ----------
        year : int
            Calendar year, 1 to 9999.
        month : int
            Calendar month, 1 to 12.

        Returns
        -------
        Iterator[HistoryEntry]
            Entries with ``created_at`` as an aware UTC datetime.
        """
        start, end = month_bounds(year, month)
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open database: {exc}") from exc
        try:
            cursor = conn.execute(
                """
                SELECT user_id, segment_id, segment_name, action, created_at
                FROM history
                WHERE created_at >= ? AND created_at <= ?
                ORDER BY id
                """,
                (start, end),
            )
            for row in cursor:
                yield HistoryEntry(
                    user_id=row["user_id"],
                    segment_id=row["segment_id"],
                    segment_name=row["segment_name"],
                    action=HistoryAction(row["action"]),
                    created_at=datetime.strptime(row["created_at"], TIMESTAMP_FORMAT).replace(
                        tzinfo=timezone.utc
                    ),
                )
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()
