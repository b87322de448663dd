"""
Service layer for catalog authors.

Plain create/read/update/delete over the ``authors`` table.  An author
cannot be deleted while books still reference them.
"""

import logging
import uuid
from typing import Any, Dict, List

from biblioteca_api.app.core.db import get_connection
from biblioteca_api.app.core.errors import NotFoundError
from biblioteca_api.app.schemas.author import AuthorCreate, AuthorRead


class AuthorService:
    """Service for managing authors."""

    @classmethod
    async def create_author(cls, data: AuthorCreate) -> AuthorRead:
        logger = logging.getLogger(__name__)
        author_id = str(uuid.uuid4())
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO authors (id, name, description, country, language) VALUES (?, ?, ?, ?, ?)",
                (author_id, data.name, data.description, data.country, data.language),
            )
            conn.commit()
            logger.info("Author %s created (%s)", author_id, data.name)
            return AuthorRead(id=author_id, **data.model_dump())
        finally:
            conn.close()

    @classmethod
    async def list_authors(cls) -> List[AuthorRead]:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            rows = cursor.execute(
                "SELECT id, name, description, country, language FROM authors ORDER BY name"
            ).fetchall()
            return [AuthorRead(**dict(row)) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_author(cls, author_id: str) -> AuthorRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute(
                "SELECT id, name, description, country, language FROM authors WHERE id = ?",
                (author_id,),
            ).fetchone()
            if not row:
                raise NotFoundError(f"Author {author_id} not found")
            return AuthorRead(**dict(row))
        finally:
            conn.close()

    @classmethod
    async def update_author(cls, author_id: str, updates: Dict[str, Any]) -> AuthorRead:
        """Apply a partial update; unspecified fields keep their value."""
        logger = logging.getLogger(__name__)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT id FROM authors WHERE id = ?", (author_id,)).fetchone()
            if not row:
                raise NotFoundError(f"Author {author_id} not found")
            allowed = {"name", "description", "country", "language"}
            fields = [k for k in updates if k in allowed]
            if fields:
                set_clause = ", ".join(f"{field} = ?" for field in fields)
                values = [updates[field] for field in fields]
                values.append(author_id)
                cursor.execute(f"UPDATE authors SET {set_clause} WHERE id = ?", tuple(values))
                conn.commit()
                logger.info("Author %s updated", author_id)
        finally:
            conn.close()
        return await cls.get_author(author_id)

    @classmethod
    async def delete_author(cls, author_id: str) -> None:
        logger = logging.getLogger(__name__)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT id FROM authors WHERE id = ?", (author_id,)).fetchone()
            if not row:
                raise NotFoundError(f"Author {author_id} not found")
            books = cursor.execute(
                "SELECT COUNT(*) AS count FROM books WHERE author_id = ?", (author_id,)
            ).fetchone()
            if books["count"]:
                raise ValueError(f"Author {author_id} still has {books['count']} book(s) in the catalog")
            cursor.execute("DELETE FROM authors WHERE id = ?", (author_id,))
            conn.commit()
            logger.info("Author %s deleted", author_id)
        finally:
            conn.close()
