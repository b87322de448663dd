"""
Borrow and return orchestration.

``LendingService`` handles one request end to end: it gathers facts
from the catalog, membership and ledger, asks the validator for a
decision and, if the request is permitted, appends the event to the
ledger.  Rejections raise ``LendingError`` and append nothing.

The read-decide-append sequence for a book runs under that book's lock,
so two concurrent borrows of the same book cannot both see it as
available.  Borrows additionally hold the borrower's lock so that
parallel borrows of different books by one user cannot overshoot the
quota.  Locks are always taken user first, then book.  Requests for
different books by different users proceed in parallel.

The locks live in the process.  Run a single worker per database file.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Dict, List, Optional

from biblioteca_api.app.core.errors import LendingError, LendingErrorKind
from biblioteca_api.app.schemas.lending import BookLendingStatus, BorrowedCount
from biblioteca_api.app.services.gateways import (
    CatalogGateway,
    Ledger,
    MembershipGateway,
    StoreCatalogGateway,
    StoreMembershipGateway,
)
from biblioteca_api.app.services.ledger import (
    BorrowEvent,
    LendingAction,
    LendingLedger,
    StorageError,
)
from biblioteca_api.app.services.lending_validator import (
    BorrowFacts,
    LendingDecision,
    Rejected,
    ReturnFacts,
    validate_borrow,
    validate_return,
)


logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class KeyedLockRegistry:
    """One ``asyncio.Lock`` per key, dropped once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class LendingService:
    """Validates and records borrow and return requests."""

    def __init__(
        self,
        catalog: CatalogGateway,
        membership: MembershipGateway,
        ledger: Ledger,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.catalog = catalog
        self.membership = membership
        self.ledger = ledger
        self.clock = clock
        self.book_locks = KeyedLockRegistry()
        self.user_locks = KeyedLockRegistry()

    async def borrow_book(self, book_id: str, user_id: str) -> BorrowEvent:
        """Lend ``book_id`` to ``user_id`` and return the appended event."""
        book_id, user_id = str(book_id), str(user_id)
        logger.debug("Borrow request for book %s by user %s", book_id, user_id)
        async with self.user_locks.hold(user_id), self.book_locks.hold(book_id):
            try:
                book_exists, user_exists, currently_held, max_borrowable, latest = await asyncio.gather(
                    self.catalog.book_exists(book_id),
                    self.membership.user_exists(user_id),
                    self.ledger.count_currently_held(user_id),
                    self.membership.max_borrowable(user_id),
                    self.ledger.latest_event_for_book(book_id),
                )
            except StorageError as e:
                raise self._storage_failure("borrow", book_id, user_id) from e
            facts = BorrowFacts(
                book_id=book_id,
                user_id=user_id,
                book_exists=book_exists,
                user_exists=user_exists,
                latest_book_event=latest,
                currently_held=currently_held,
                max_borrowable=max_borrowable,
            )
            return await self._commit(validate_borrow(facts, self._now_after(latest)))

    async def return_book(self, book_id: str, user_id: str) -> BorrowEvent:
        """Take ``book_id`` back from ``user_id`` and return the appended event."""
        book_id, user_id = str(book_id), str(user_id)
        logger.debug("Return request for book %s by user %s", book_id, user_id)
        async with self.book_locks.hold(book_id):
            try:
                book_exists, user_exists, latest = await asyncio.gather(
                    self.catalog.book_exists(book_id),
                    self.membership.user_exists(user_id),
                    self.ledger.latest_event_for_book(book_id),
                )
            except StorageError as e:
                raise self._storage_failure("return", book_id, user_id) from e
            facts = ReturnFacts(
                book_id=book_id,
                user_id=user_id,
                book_exists=book_exists,
                user_exists=user_exists,
                latest_book_event=latest,
            )
            return await self._commit(validate_return(facts, self._now_after(latest)))

    async def book_status(self, book_id: str) -> BookLendingStatus:
        """Current availability of a book, derived from its latest event."""
        book_id = str(book_id)
        try:
            if not await self.catalog.book_exists(book_id):
                raise LendingError(LendingErrorKind.BOOK_NOT_FOUND, book_id=book_id)
            latest = await self.ledger.latest_event_for_book(book_id)
        except StorageError as e:
            raise self._storage_failure("status", book_id, None) from e
        if latest is None:
            return BookLendingStatus(book_id=book_id, available=True)
        if latest.action is LendingAction.BORROWED:
            return BookLendingStatus(
                book_id=book_id,
                available=False,
                holder_user_id=latest.user_id,
                since=latest.timestamp,
            )
        return BookLendingStatus(book_id=book_id, available=True, since=latest.timestamp)

    async def book_history(self, book_id: str) -> List[BorrowEvent]:
        book_id = str(book_id)
        try:
            if not await self.catalog.book_exists(book_id):
                raise LendingError(LendingErrorKind.BOOK_NOT_FOUND, book_id=book_id)
            return await self.ledger.history_for_book(book_id)
        except StorageError as e:
            raise self._storage_failure("history", book_id, None) from e

    async def borrowed_count(self, user_id: str) -> BorrowedCount:
        user_id = str(user_id)
        try:
            if not await self.membership.user_exists(user_id):
                raise LendingError(LendingErrorKind.USER_NOT_FOUND, user_id=user_id)
            held, quota = await asyncio.gather(
                self.ledger.count_currently_held(user_id),
                self.membership.max_borrowable(user_id),
            )
        except StorageError as e:
            raise self._storage_failure("count", None, user_id) from e
        return BorrowedCount(user_id=user_id, currently_held=held, max_borrowable=quota)

    def _now_after(self, latest: Optional[BorrowEvent]) -> datetime:
        """Current time, but never earlier than the book's latest event.

        If the clock has stepped back, the new event takes the latest
        event's timestamp and the insertion-order tie rule makes it the
        book's latest state.
        """
        now = self.clock()
        if latest is not None and latest.timestamp > now:
            logger.warning(
                "Clock is behind the latest event of book %s (%s < %s)",
                latest.book_id,
                now.isoformat(),
                latest.timestamp.isoformat(),
            )
            return latest.timestamp
        return now

    async def _commit(self, decision: LendingDecision) -> BorrowEvent:
        if isinstance(decision, Rejected):
            logger.debug(
                "Rejected %s for book %s by user %s",
                decision.kind.value,
                decision.book_id,
                decision.user_id,
            )
            raise decision.to_error()
        event = decision.event
        try:
            await self.ledger.append(event)
        except StorageError as e:
            raise self._storage_failure(event.action.value, event.book_id, event.user_id) from e
        logger.info("Book %s %s by user %s (event %s)", event.book_id, event.action.value, event.user_id, event.id)
        return event

    @staticmethod
    def _storage_failure(operation: str, book_id: Optional[str], user_id: Optional[str]) -> LendingError:
        logger.exception("Storage failure during %s (book %s, user %s)", operation, book_id, user_id)
        return LendingError(LendingErrorKind.STORAGE, book_id=book_id, user_id=user_id)


_lending_service: Optional[LendingService] = None


def get_lending_service() -> LendingService:
    """Process-wide service backed by the SQLite stores.

    A single instance is required: the per-book locks only serialize
    requests that go through the same service.
    """
    global _lending_service
    if _lending_service is None:
        _lending_service = LendingService(
            catalog=StoreCatalogGateway(),
            membership=StoreMembershipGateway(),
            ledger=LendingLedger(),
        )
    return _lending_service
