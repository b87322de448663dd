"""
Service layer for user roles.

Roles define how many books a user may hold at once
(``num_borrowable_books``).  Two roles, ``member`` and ``staff``, are
seeded by the migrations; more can be created through the API.  A role
cannot be deleted while users are assigned to it.
"""

import logging
import sqlite3
import uuid
from typing import List

from biblioteca_api.app.core.db import get_connection
from biblioteca_api.app.core.errors import NotFoundError
from biblioteca_api.app.schemas.user import UserRoleCreate, UserRoleRead


def _row_to_role(row: sqlite3.Row) -> UserRoleRead:
    return UserRoleRead(
        id=row["id"],
        name=row["role_name"],
        num_borrowable_books=row["num_borrowable_books"],
    )


class RoleService:
    """Service for managing roles and their borrow quotas."""

    @classmethod
    async def list_roles(cls) -> List[UserRoleRead]:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            rows = cursor.execute(
                "SELECT id, role_name, num_borrowable_books FROM user_roles ORDER BY role_name"
            ).fetchall()
            return [_row_to_role(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_role(cls, role_id: str) -> UserRoleRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute(
                "SELECT id, role_name, num_borrowable_books FROM user_roles WHERE id = ?",
                (role_id,),
            ).fetchone()
            if not row:
                raise NotFoundError(f"Role {role_id} not found")
            return _row_to_role(row)
        finally:
            conn.close()

    @classmethod
    async def create_role(cls, data: UserRoleCreate) -> UserRoleRead:
        logger = logging.getLogger(__name__)
        role_id = str(uuid.uuid4())
        conn = get_connection()
        try:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    "INSERT INTO user_roles (id, role_name, num_borrowable_books) VALUES (?, ?, ?)",
                    (role_id, data.name, data.num_borrowable_books),
                )
            except sqlite3.IntegrityError as e:
                raise ValueError(f"Role {data.name} already exists") from e
            conn.commit()
            logger.info("Role %s created with quota %s", data.name, data.num_borrowable_books)
            return UserRoleRead(id=role_id, **data.model_dump())
        finally:
            conn.close()

    @classmethod
    async def delete_role(cls, role_id: str) -> None:
        logger = logging.getLogger(__name__)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT id FROM user_roles WHERE id = ?", (role_id,)).fetchone()
            if not row:
                raise NotFoundError(f"Role {role_id} not found")
            users = cursor.execute(
                "SELECT COUNT(*) AS count FROM users WHERE user_role_id = ?", (role_id,)
            ).fetchone()
            if users["count"]:
                raise ValueError(f"Role {role_id} is still assigned to {users['count']} user(s)")
            cursor.execute("DELETE FROM user_roles WHERE id = ?", (role_id,))
            conn.commit()
            logger.info("Role %s deleted", role_id)
        finally:
            conn.close()
