"""
Business logic for catalog books.

Books are plain records; the only rules are that a book references an
existing author, and that a book which is currently out on loan cannot
be removed from the catalog.  Its lending history stays in the ledger
either way.
"""

import logging
import sqlite3
import uuid
from typing import Any, Dict, List

from biblioteca_api.app.core.db import get_connection
from biblioteca_api.app.core.errors import NotFoundError
from biblioteca_api.app.schemas.book import BookCreate, BookRead
from biblioteca_api.app.services.ledger import LendingAction, LendingLedger


logger = logging.getLogger(__name__)


def _author_exists(cursor: sqlite3.Cursor, author_id: str) -> bool:
    row = cursor.execute("SELECT 1 FROM authors WHERE id = ?", (author_id,)).fetchone()
    return row is not None


class BookService:
    """Service for managing the book catalog."""

    @classmethod
    async def create_book(cls, data: BookCreate) -> BookRead:
        """Add a book to the catalog.

        Raises ``ValueError`` if ``data.author_id`` does not reference an
        existing author.
        """
        book_id = str(uuid.uuid4())
        author_id = str(data.author_id)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if not _author_exists(cursor, author_id):
                raise ValueError(f"Author {author_id} does not exist in catalog")
            cursor.execute(
                "INSERT INTO books (id, name, description, language, author_id) VALUES (?, ?, ?, ?, ?)",
                (book_id, data.name, data.description, data.language, author_id),
            )
            conn.commit()
            logger.info("Book %s created (%s)", book_id, data.name)
            return BookRead(id=book_id, **data.model_dump())
        finally:
            conn.close()

    @classmethod
    async def list_books(cls) -> List[BookRead]:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            rows = cursor.execute(
                "SELECT id, name, description, language, author_id FROM books ORDER BY name"
            ).fetchall()
            return [BookRead(**dict(row)) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_book(cls, book_id: str) -> BookRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute(
                "SELECT id, name, description, language, author_id FROM books WHERE id = ?",
                (book_id,),
            ).fetchone()
            if not row:
                raise NotFoundError(f"Book {book_id} not found")
            return BookRead(**dict(row))
        finally:
            conn.close()

    @classmethod
    async def book_exists(cls, book_id: str) -> bool:
        conn = get_connection()
        try:
            row = conn.execute("SELECT COUNT(*) AS count FROM books WHERE id = ?", (book_id,)).fetchone()
            return row["count"] == 1
        finally:
            conn.close()

    @classmethod
    async def update_book(cls, book_id: str, updates: Dict[str, Any]) -> BookRead:
        """Apply a partial update.

        Changing ``author_id`` is allowed as long as the new author exists.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT id FROM books WHERE id = ?", (book_id,)).fetchone()
            if not row:
                raise NotFoundError(f"Book {book_id} not found")
            if updates.get("author_id") is not None:
                updates["author_id"] = str(updates["author_id"])
                if not _author_exists(cursor, updates["author_id"]):
                    raise ValueError(f"Author {updates['author_id']} does not exist in catalog")
            allowed = {"name", "description", "language", "author_id"}
            fields = [k for k in updates if k in allowed]
            if fields:
                set_clause = ", ".join(f"{field} = ?" for field in fields)
                values = [updates[field] for field in fields]
                values.append(book_id)
                cursor.execute(f"UPDATE books SET {set_clause} WHERE id = ?", tuple(values))
                conn.commit()
                logger.info("Book %s updated", book_id)
        finally:
            conn.close()
        return await cls.get_book(book_id)

    @classmethod
    async def delete_book(cls, book_id: str) -> None:
        """Remove a book from the catalog.

        Refused while the book is borrowed.  Ledger rows are kept.
        """
        if not await cls.book_exists(book_id):
            raise NotFoundError(f"Book {book_id} not found")
        latest = await LendingLedger().latest_event_for_book(book_id)
        if latest is not None and latest.action is LendingAction.BORROWED:
            raise ValueError(f"Book {book_id} is currently borrowed by user {latest.user_id}")
        conn = get_connection()
        try:
            conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
            conn.commit()
            logger.info("Book %s deleted", book_id)
        finally:
            conn.close()
