"""
Collaborator interfaces consumed by the lending service.

The lending core does not own books or users; it asks the catalog and
membership stores for a few facts.  The protocols below describe what
it needs, and the ``Store*`` classes answer from the SQLite tables via
``BookService`` and ``UserService``.  Tests substitute fakes.
"""

from __future__ import annotations

import sqlite3
from typing import List, Optional, Protocol

from biblioteca_api.app.services.book_service import BookService
from biblioteca_api.app.services.ledger import BorrowEvent, StorageError
from biblioteca_api.app.services.user_service import UserService


class CatalogGateway(Protocol):
    async def book_exists(self, book_id: str) -> bool: ...


class MembershipGateway(Protocol):
    async def user_exists(self, user_id: str) -> bool: ...

    async def max_borrowable(self, user_id: str) -> int: ...


class Ledger(Protocol):
    async def append(self, event: BorrowEvent) -> None: ...

    async def latest_event_for_book(self, book_id: str) -> Optional[BorrowEvent]: ...

    async def count_currently_held(self, user_id: str) -> int: ...

    async def history_for_book(self, book_id: str) -> List[BorrowEvent]: ...


class StoreCatalogGateway:
    async def book_exists(self, book_id: str) -> bool:
        try:
            return await BookService.book_exists(book_id)
        except sqlite3.Error as e:
            raise StorageError(f"Could not look up book {book_id}") from e


class StoreMembershipGateway:
    async def user_exists(self, user_id: str) -> bool:
        try:
            return await UserService.user_exists(user_id)
        except sqlite3.Error as e:
            raise StorageError(f"Could not look up user {user_id}") from e

    async def max_borrowable(self, user_id: str) -> int:
        try:
            return await UserService.max_borrowable(user_id)
        except sqlite3.Error as e:
            raise StorageError(f"Could not look up quota of user {user_id}") from e
