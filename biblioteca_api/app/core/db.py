"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), a cursor context manager that commits or rolls
back as a unit (``get_cursor``) and ``init_db`` which applies
migrations on application start.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import logging
import os
import sqlite3
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import settings


logger = logging.getLogger(__name__)


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: catalog
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS authors (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT,
            country TEXT NOT NULL,
            language TEXT
        );

        CREATE TABLE IF NOT EXISTS books (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            language TEXT NOT NULL DEFAULT '',
            author_id TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(author_id) REFERENCES authors(id)
        );

        CREATE INDEX IF NOT EXISTS idx_books_author_id ON books(author_id);
        """,
    ),
    # Migration 2: membership
    (
        2,
        """
        CREATE TABLE IF NOT EXISTS user_roles (
            id TEXT PRIMARY KEY,
            role_name TEXT NOT NULL UNIQUE,
            num_borrowable_books INTEGER NOT NULL CHECK(num_borrowable_books >= 0)
        );

        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            username TEXT NOT NULL UNIQUE,
            user_role_id TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(user_role_id) REFERENCES user_roles(id)
        );
        """,
    ),
    # Migration 3: lending ledger
    (
        3,
        """
        -- Append-only.  ``seq`` records insertion order and breaks ties
        -- between events of the same book that share a timestamp.  No
        -- foreign keys: history outlives the book and user rows.
        CREATE TABLE IF NOT EXISTS lending_events (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            book_id TEXT NOT NULL,
            user_id TEXT NOT NULL,
            timestamp TEXT NOT NULL,
            action TEXT NOT NULL CHECK(action IN ('borrowed', 'returned')),
            closes_event_id TEXT
        );

        CREATE INDEX IF NOT EXISTS idx_lending_events_book
            ON lending_events(book_id, timestamp, seq);
        CREATE INDEX IF NOT EXISTS idx_lending_events_user_action
            ON lending_events(user_id, action);
        """,
    ),
]


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the ``biblioteca_api`` package.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # biblioteca_api/
    return str((base_dir / db_url).resolve())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` so columns can be accessed by
    name, and foreign key enforcement is switched on for the lifetime
    of the connection (SQLite leaves it off by default).
    """
    conn = sqlite3.connect(get_database_path())
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Yield a cursor; commit on success, roll back on error, always close."""
    conn = get_connection()
    try:
        yield conn.cursor()
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new migrations from
    ``MIGRATIONS``.  Default roles are seeded afterwards; seeding is
    keyed on the role name so repeated start-ups are harmless.
    """
    with get_cursor() as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                logger.debug("Applying migration %s", version)
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version

        for role_name, quota in (
            ("member", settings.default_member_quota),
            ("staff", settings.default_staff_quota),
        ):
            cursor.execute(
                "INSERT OR IGNORE INTO user_roles (id, role_name, num_borrowable_books) VALUES (?, ?, ?)",
                (str(uuid.uuid4()), role_name, quota),
            )
