"""
Business logic for users.

Users are registered under a role, and the role decides their borrow
quota.  The lending core only asks two things of this service: does a
user exist, and how many books may they hold (``max_borrowable``).
"""

import logging
import sqlite3
import uuid
from typing import List

from biblioteca_api.app.core.db import get_connection
from biblioteca_api.app.core.errors import NotFoundError
from biblioteca_api.app.schemas.user import UserCreate, UserRead, UserRoleRead
from biblioteca_api.app.services.ledger import LendingLedger


_USER_SELECT = """
    SELECT u.id, u.username, r.id AS role_id, r.role_name, r.num_borrowable_books
    FROM users u
    LEFT JOIN user_roles r ON u.user_role_id = r.id
"""


def _row_to_user(row: sqlite3.Row) -> UserRead:
    role = None
    if row["role_id"] is not None:
        role = UserRoleRead(
            id=row["role_id"],
            name=row["role_name"],
            num_borrowable_books=row["num_borrowable_books"],
        )
    return UserRead(id=row["id"], username=row["username"], user_role=role)


class UserService:
    """Service for managing library users."""

    @classmethod
    async def create_user(cls, data: UserCreate) -> UserRead:
        """Register a user.

        Raises ``ValueError`` if the role does not exist or the username
        is already taken.
        """
        logger = logging.getLogger(__name__)
        user_id = str(uuid.uuid4())
        role_id = str(data.user_role_id)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            role_row = cursor.execute("SELECT id FROM user_roles WHERE id = ?", (role_id,)).fetchone()
            if not role_row:
                raise ValueError(f"Role {role_id} does not exist")
            try:
                cursor.execute(
                    "INSERT INTO users (id, username, user_role_id) VALUES (?, ?, ?)",
                    (user_id, data.username, role_id),
                )
            except sqlite3.IntegrityError as e:
                raise ValueError(f"Username {data.username} is already taken") from e
            conn.commit()
            logger.info("Registered user %s (%s)", user_id, data.username)
        finally:
            conn.close()
        return await cls.get_user(user_id)

    @classmethod
    async def list_users(cls) -> List[UserRead]:
        conn = get_connection()
        try:
            rows = conn.execute(_USER_SELECT + " ORDER BY u.username").fetchall()
            return [_row_to_user(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_user(cls, user_id: str) -> UserRead:
        conn = get_connection()
        try:
            row = conn.execute(_USER_SELECT + " WHERE u.id = ?", (user_id,)).fetchone()
            if not row:
                raise NotFoundError(f"User {user_id} not found")
            return _row_to_user(row)
        finally:
            conn.close()

    @classmethod
    async def user_exists(cls, user_id: str) -> bool:
        conn = get_connection()
        try:
            row = conn.execute("SELECT COUNT(*) AS count FROM users WHERE id = ?", (user_id,)).fetchone()
            return row["count"] == 1
        finally:
            conn.close()

    @classmethod
    async def max_borrowable(cls, user_id: str) -> int:
        """Quota of the user's role.  0 for unknown users or users with no role."""
        conn = get_connection()
        try:
            row = conn.execute(
                """
                SELECT r.num_borrowable_books
                FROM users u
                LEFT JOIN user_roles r ON u.user_role_id = r.id
                WHERE u.id = ?
                """,
                (user_id,),
            ).fetchone()
            if not row or row["num_borrowable_books"] is None:
                return 0
            return row["num_borrowable_books"]
        finally:
            conn.close()

    @classmethod
    async def delete_user(cls, user_id: str) -> None:
        """Remove a user.  Refused while they still hold books."""
        logger = logging.getLogger(__name__)
        if not await cls.user_exists(user_id):
            raise NotFoundError(f"User {user_id} not found")
        held = await LendingLedger().count_currently_held(user_id)
        if held:
            raise ValueError(f"User {user_id} still holds {held} book(s)")
        conn = get_connection()
        try:
            conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            conn.commit()
            logger.info("User %s deleted", user_id)
        finally:
            conn.close()
