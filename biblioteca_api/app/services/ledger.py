"""
Append-only lending ledger.

Every borrow and every return is written as a new ``BorrowEvent``;
nothing is ever updated or deleted.  Whether a book is available, and
who holds it, is derived from the book's latest event, so there is no
status column that could drift from the history.

Ordering of a book's events is by ``timestamp``.  Two events of the
same book with an identical timestamp are ordered by insertion: the one
written last is the latest.  ``LendingLedger`` stores events in SQLite
(the ``seq`` column carries insertion order); ``InMemoryLendingLedger``
keeps them in a list and is used as a test double.
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from biblioteca_api.app.core.db import get_cursor

# Fixed width so that lexicographic order in SQLite matches time order.
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


class LendingAction(str, Enum):
    BORROWED = "borrowed"
    RETURNED = "returned"


class StorageError(Exception):
    """The underlying store failed; the original error is the ``__cause__``."""


@dataclass(frozen=True)
class BorrowEvent:
    """One ledger entry.  Immutable once written."""

    id: str
    book_id: str
    user_id: str
    timestamp: datetime
    action: LendingAction
    # For returns: the borrow event this return closes.
    closes_event_id: Optional[str] = None

    @classmethod
    def create(
        cls,
        book_id: str,
        user_id: str,
        action: LendingAction,
        timestamp: datetime,
        closes_event_id: Optional[str] = None,
    ) -> "BorrowEvent":
        return cls(
            id=str(uuid.uuid4()),
            book_id=book_id,
            user_id=user_id,
            timestamp=timestamp,
            action=action,
            closes_event_id=closes_event_id,
        )


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def _row_to_event(row: sqlite3.Row) -> BorrowEvent:
    return BorrowEvent(
        id=row["id"],
        book_id=row["book_id"],
        user_id=row["user_id"],
        timestamp=parse_timestamp(row["timestamp"]),
        action=LendingAction(row["action"]),
        closes_event_id=row["closes_event_id"],
    )


class LendingLedger:
    """SQLite-backed ledger over the ``lending_events`` table."""

    async def append(self, event: BorrowEvent) -> None:
        """Write one event.  Raises ``StorageError`` if the insert fails.

        The insert runs in its own transaction, so either the row is
        committed or nothing is.
        """
        try:
            with get_cursor() as cursor:
                cursor.execute(
                    """
                    INSERT INTO lending_events (id, book_id, user_id, timestamp, action, closes_event_id)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        event.id,
                        event.book_id,
                        event.user_id,
                        format_timestamp(event.timestamp),
                        event.action.value,
                        event.closes_event_id,
                    ),
                )
        except sqlite3.Error as e:
            raise StorageError(f"Could not append lending event {event.id}") from e

    async def latest_event_for_book(self, book_id: str) -> Optional[BorrowEvent]:
        try:
            with get_cursor() as cursor:
                row = cursor.execute(
                    """
                    SELECT id, book_id, user_id, timestamp, action, closes_event_id
                    FROM lending_events
                    WHERE book_id = ?
                    ORDER BY timestamp DESC, seq DESC
                    LIMIT 1
                    """,
                    (book_id,),
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Could not read lending state of book {book_id}") from e
        return _row_to_event(row) if row else None

    async def count_currently_held(self, user_id: str) -> int:
        """Count books whose latest event is a borrow by ``user_id``."""
        try:
            with get_cursor() as cursor:
                row = cursor.execute(
                    """
                    SELECT COUNT(DISTINCT e.book_id) AS held
                    FROM lending_events e
                    WHERE e.user_id = ?
                      AND e.action = 'borrowed'
                      AND NOT EXISTS (
                          SELECT 1 FROM lending_events later
                          WHERE later.book_id = e.book_id
                            AND (later.timestamp > e.timestamp
                                 OR (later.timestamp = e.timestamp AND later.seq > e.seq))
                      )
                    """,
                    (user_id,),
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Could not count books held by user {user_id}") from e
        return row["held"] if row else 0

    async def history_for_book(self, book_id: str) -> List[BorrowEvent]:
        """Return every event of a book, oldest first."""
        try:
            with get_cursor() as cursor:
                rows = cursor.execute(
                    """
                    SELECT id, book_id, user_id, timestamp, action, closes_event_id
                    FROM lending_events
                    WHERE book_id = ?
                    ORDER BY timestamp ASC, seq ASC
                    """,
                    (book_id,),
                ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Could not read lending history of book {book_id}") from e
        return [_row_to_event(row) for row in rows]


class InMemoryLendingLedger:
    """List-backed ledger with the same ordering rules as ``LendingLedger``."""

    def __init__(self, events: Optional[List[BorrowEvent]] = None) -> None:
        self.events: List[BorrowEvent] = list(events or [])

    async def append(self, event: BorrowEvent) -> None:
        if any(existing.id == event.id for existing in self.events):
            raise StorageError(f"Duplicate lending event id {event.id}")
        self.events.append(event)

    def _ordered(self, book_id: str) -> List[BorrowEvent]:
        indexed = [(e.timestamp, i, e) for i, e in enumerate(self.events) if e.book_id == book_id]
        indexed.sort(key=lambda item: (item[0], item[1]))
        return [e for _, _, e in indexed]

    async def latest_event_for_book(self, book_id: str) -> Optional[BorrowEvent]:
        ordered = self._ordered(book_id)
        return ordered[-1] if ordered else None

    async def count_currently_held(self, user_id: str) -> int:
        held = 0
        for book_id in {e.book_id for e in self.events}:
            latest = self._ordered(book_id)[-1]
            if latest.action is LendingAction.BORROWED and latest.user_id == user_id:
                held += 1
        return held

    async def history_for_book(self, book_id: str) -> List[BorrowEvent]:
        return self._ordered(book_id)
