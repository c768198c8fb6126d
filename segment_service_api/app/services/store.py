"""
Durable storage for users, segments and their memberships.

``EntityStore`` wraps the ``users``, ``segments`` and ``user_segments``
tables.  It is instantiated with a connection factory rather than
reaching for a global connection so that the membership reconciler can
be handed a different store in tests.

Every public method opens its own connection and commits before
returning; there is no transaction spanning several calls.  Domain
failures raise the ``ValueError`` subclasses from ``core.errors``.  Any
other ``sqlite3.Error`` is re-raised as ``StoreError``.

Segment names are matched according to ``match_mode``:

``"exact"``
    case-insensitive equality (``"Vip"`` finds ``"vip"``, ``"vi"`` does
    not).
``"pattern"``
    ``LIKE`` with the requested name as the pattern, so ``%`` and ``_``
    act as wildcards.  Lookups take the oldest match; deletion removes
    every match.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

from segment_service_api.app.core.config import settings
from segment_service_api.app.core.db import get_connection
from segment_service_api.app.core.errors import (
    AlreadyExistsError,
    AlreadyMemberError,
    NotFoundError,
    NotMemberError,
    StoreError,
)
from segment_service_api.app.schemas.segment import SegmentRead
from segment_service_api.app.schemas.user import UserRead

logger = logging.getLogger(__name__)

MATCH_MODES = ("exact", "pattern")

# SQLite stores INTEGER columns as signed 64-bit values.
MIN_ROW_ID = -(2**63)
MAX_ROW_ID = 2**63 - 1


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    return "UNIQUE" in str(exc).upper()


def _fits_row_id(value: int) -> bool:
    return MIN_ROW_ID <= value <= MAX_ROW_ID


class EntityStore:
    """SQLite-backed store for users, segments and memberships."""

    def __init__(
        self,
        connection_factory: Callable[[], sqlite3.Connection] = get_connection,
        match_mode: Optional[str] = None,
    ) -> None:
        mode = (match_mode or settings.segment_match_mode).lower()
        if mode not in MATCH_MODES:
            raise ValueError(f"Unknown segment match mode {mode!r}; expected one of {MATCH_MODES}")
        self._connect = connection_factory
        self.match_mode = mode

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open database: {exc}") from exc
        try:
            yield conn.cursor()
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(str(exc)) from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def create_user(self, name: str) -> UserRead:
        """Insert a user.

        Parameters
        ----------
        name : str
            Display name.  Names are not required to be unique.

        Returns
        -------
        UserRead
            The stored user including its generated id.
        """
        with self._cursor() as cursor:
            cursor.execute("INSERT INTO users (name) VALUES (?)", (name,))
            user_id = cursor.lastrowid
        logger.info("User %s (%s) created", user_id, name)
        return UserRead(id=user_id, name=name)

    def delete_user(self, user_id: int) -> None:
        """Delete a user; memberships go with it, history rows stay.

        Raises
        ------
        NotFoundError
            No user has this id.
        """
        if not _fits_row_id(user_id):
            raise NotFoundError(f"User {user_id} not found")
        with self._cursor() as cursor:
            row = cursor.execute("SELECT id FROM users WHERE id = ?", (user_id,)).fetchone()
            if not row:
                raise NotFoundError(f"User {user_id} not found")
            cursor.execute("DELETE FROM users WHERE id = ?", (user_id,))
        logger.info("User %s deleted", user_id)

    def find_user(self, user_id: int) -> Optional[UserRead]:
        """Return the user with ``user_id`` or ``None``.

        Ids outside the 64-bit range SQLite can store cannot belong to
        any user and are reported as absent.
        """
        if not _fits_row_id(user_id):
            return None
        with self._cursor() as cursor:
            row = cursor.execute("SELECT id, name FROM users WHERE id = ?", (user_id,)).fetchone()
        if row:
            return UserRead(id=row["id"], name=row["name"])
        return None

    def list_users(self) -> List[UserRead]:
        """Return all users ordered by id."""
        with self._cursor() as cursor:
            rows = cursor.execute("SELECT id, name FROM users ORDER BY id").fetchall()
        return [UserRead(id=row["id"], name=row["name"]) for row in rows]

    # ------------------------------------------------------------------
    # Segments
    # ------------------------------------------------------------------
    def _match_clause(self) -> str:
        if self.match_mode == "pattern":
            return "name LIKE ?"
        return "name = ? COLLATE NOCASE"

    def _match_segments(self, cursor: sqlite3.Cursor, name: str) -> List[SegmentRead]:
        rows = cursor.execute(
            f"SELECT id, name FROM segments WHERE {self._match_clause()} ORDER BY id",
            (name,),
        ).fetchall()
        return [SegmentRead(id=row["id"], name=row["name"]) for row in rows]

    def _find_segment(self, cursor: sqlite3.Cursor, name: str) -> Optional[SegmentRead]:
        row = cursor.execute(
            f"SELECT id, name FROM segments WHERE {self._match_clause()} ORDER BY id LIMIT 1",
            (name,),
        ).fetchone()
        if row:
            return SegmentRead(id=row["id"], name=row["name"])
        return None

    def find_segment(self, name: str) -> Optional[SegmentRead]:
        """Resolve a requested segment name.

        Parameters
        ----------
        name : str
            Name as given by the client.  In ``pattern`` mode it is a
            ``LIKE`` pattern.

        Returns
        -------
        Optional[SegmentRead]
            The matching segment with the lowest id, or ``None``.
        """
        with self._cursor() as cursor:
            return self._find_segment(cursor, name)

    def create_segment(self, name: str) -> SegmentRead:
        """Register a segment.

        Raises
        ------
        AlreadyExistsError
            ``name`` matches an existing segment, or a concurrent insert
            of the same name won.
        """
        with self._cursor() as cursor:
            existing = self._find_segment(cursor, name)
            if existing:
                raise AlreadyExistsError(f"Segment '{existing.name}' already exists")
            try:
                cursor.execute("INSERT INTO segments (name) VALUES (?)", (name,))
            except sqlite3.IntegrityError as exc:
                if _is_unique_violation(exc):
                    raise AlreadyExistsError(f"Segment '{name}' already exists") from exc
                raise
            segment = SegmentRead(id=cursor.lastrowid, name=name)
        logger.info("Segment %s (%s) created", segment.id, segment.name)
        return segment

    def delete_segment(self, name: str) -> List[SegmentRead]:
        """Delete every segment matching ``name``.

        In ``exact`` mode at most one segment matches.  In ``pattern``
        mode all segments matching the ``LIKE`` pattern are removed in
        one transaction.  Memberships of deleted segments are removed by
        the database cascade.

        Returns
        -------
        List[SegmentRead]
            The deleted segments ordered by id.

        Raises
        ------
        NotFoundError
            Nothing matches ``name``.
        """
        with self._cursor() as cursor:
            segments = self._match_segments(cursor, name)
            if not segments:
                raise NotFoundError(f"Segment '{name}' not found")
            cursor.executemany(
                "DELETE FROM segments WHERE id = ?",
                [(segment.id,) for segment in segments],
            )
        for segment in segments:
            logger.info("Segment %s (%s) deleted", segment.id, segment.name)
        return segments

    def list_segments(self) -> List[SegmentRead]:
        """Return all segments ordered by id."""
        with self._cursor() as cursor:
            rows = cursor.execute("SELECT id, name FROM segments ORDER BY id").fetchall()
        return [SegmentRead(id=row["id"], name=row["name"]) for row in rows]

    # ------------------------------------------------------------------
    # Memberships
    # ------------------------------------------------------------------
    def has_membership(self, user_id: int, segment_id: int) -> bool:
        """Return ``True`` if the user currently belongs to the segment."""
        with self._cursor() as cursor:
            row = cursor.execute(
                "SELECT 1 FROM user_segments WHERE user_id = ? AND segment_id = ?",
                (user_id, segment_id),
            ).fetchone()
        return row is not None

    def add_membership(self, user_id: int, segment_id: int) -> None:
        """Insert a membership row.

        A UNIQUE violation means another request added the same pair
        first; it is reported as ``AlreadyMemberError``.
        """
        with self._cursor() as cursor:
            try:
                cursor.execute(
                    "INSERT INTO user_segments (user_id, segment_id) VALUES (?, ?)",
                    (user_id, segment_id),
                )
            except sqlite3.IntegrityError as exc:
                if _is_unique_violation(exc):
                    raise AlreadyMemberError(user_id, segment_id) from exc
                raise

    def remove_membership(self, user_id: int, segment_id: int) -> None:
        """Delete a membership row.

        Raises
        ------
        NotMemberError
            No row existed, usually because a concurrent request removed
            it first.
        """
        with self._cursor() as cursor:
            cursor.execute(
                "DELETE FROM user_segments WHERE user_id = ? AND segment_id = ?",
                (user_id, segment_id),
            )
            if cursor.rowcount == 0:
                raise NotMemberError(user_id, segment_id)

    def list_memberships_by_user(self, user_id: int) -> List[str]:
        """Segment names of a user in the order they were added."""
        if not _fits_row_id(user_id):
            return []
        with self._cursor() as cursor:
            rows = cursor.execute(
                """
                SELECT segments.name FROM user_segments
                INNER JOIN segments ON segments.id = user_segments.segment_id
                WHERE user_segments.user_id = ?
                ORDER BY user_segments.id
                """,
                (user_id,),
            ).fetchall()
        return [row["name"] for row in rows]

    def list_all_memberships(self) -> Dict[int, List[str]]:
        """Map every user with at least one segment to its segment names.

        Returns
        -------
        Dict[int, List[str]]
            Keys in ascending user id; names in the order they were
            added.
        """
        with self._cursor() as cursor:
            rows = cursor.execute(
                """
                SELECT user_segments.user_id, segments.name FROM user_segments
                INNER JOIN segments ON segments.id = user_segments.segment_id
                ORDER BY user_segments.user_id, user_segments.id
                """
            ).fetchall()
        memberships: Dict[int, List[str]] = {}
        for row in rows:
            memberships.setdefault(row["user_id"], []).append(row["name"])
        return memberships
