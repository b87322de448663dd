"""Test doubles and fixed ids for the lending tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Set

from biblioteca_api.app.services.ledger import InMemoryLendingLedger, StorageError
from biblioteca_api.app.services.lending_service import LendingService


BOOK_A = "00000000-0000-4000-8000-00000000000a"
BOOK_B = "00000000-0000-4000-8000-00000000000b"
USER_1 = "00000000-0000-4000-8000-000000000001"
USER_2 = "00000000-0000-4000-8000-000000000002"
UNKNOWN = "00000000-0000-4000-8000-0000000000ff"

T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class TickingClock:
    """Returns ``start``, ``start + step``, ... on successive calls."""

    def __init__(self, start: datetime = T0, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current += self.step
        return now


class FakeCatalog:
    """Catalog gateway over a set of book ids.

    Every lookup yields to the event loop once so that concurrent
    requests interleave the way they would against a real store.
    """

    def __init__(self, books: Set[str]):
        self.books = set(books)
        self.fail = False

    async def book_exists(self, book_id: str) -> bool:
        await asyncio.sleep(0)
        if self.fail:
            raise StorageError("catalog unavailable")
        return book_id in self.books


class FakeMembership:
    """Membership gateway over ``{user_id: quota}``."""

    def __init__(self, quotas: Dict[str, int]):
        self.quotas = dict(quotas)

    async def user_exists(self, user_id: str) -> bool:
        await asyncio.sleep(0)
        return user_id in self.quotas

    async def max_borrowable(self, user_id: str) -> int:
        await asyncio.sleep(0)
        return self.quotas.get(user_id, 0)


class FailingLedger(InMemoryLendingLedger):
    """In-memory ledger whose appends (and optionally reads) fail."""

    def __init__(self, fail_reads: bool = False):
        super().__init__()
        self.fail_reads = fail_reads

    async def append(self, event) -> None:
        raise StorageError("disk full")

    async def latest_event_for_book(self, book_id: str):
        if self.fail_reads:
            raise StorageError("disk unreadable")
        return await super().latest_event_for_book(book_id)


def make_service(
    ledger=None,
    books: Optional[Set[str]] = None,
    quotas: Optional[Dict[str, int]] = None,
) -> LendingService:
    return LendingService(
        FakeCatalog(books if books is not None else {BOOK_A, BOOK_B}),
        FakeMembership(quotas if quotas is not None else {USER_1: 1, USER_2: 2}),
        ledger if ledger is not None else InMemoryLendingLedger(),
        clock=TickingClock(),
    )
