"""
Decision logic for borrow and return requests.

The functions here do no I/O.  The caller gathers the facts (does the
book exist, does the user exist, what is the book's latest ledger
event, how many books does the user hold and may hold) and receives a
decision: ``Permitted`` with the event to append, or ``Rejected`` with
the reason.

Checks run in a fixed order and the first failing one wins.  Existence
checks come first; for borrows the quota check comes before the
availability check.  Tests rely on this precedence.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from biblioteca_api.app.core.errors import LendingError, LendingErrorKind
from biblioteca_api.app.services.ledger import BorrowEvent, LendingAction


@dataclass(frozen=True)
class BorrowFacts:
    book_id: str
    user_id: str
    book_exists: bool
    user_exists: bool
    latest_book_event: Optional[BorrowEvent]
    currently_held: int
    max_borrowable: int


@dataclass(frozen=True)
class ReturnFacts:
    book_id: str
    user_id: str
    book_exists: bool
    user_exists: bool
    latest_book_event: Optional[BorrowEvent]


@dataclass(frozen=True)
class Permitted:
    event: BorrowEvent


@dataclass(frozen=True)
class Rejected:
    kind: LendingErrorKind
    book_id: str
    user_id: str
    max_borrowable: Optional[int] = None

    def to_error(self) -> LendingError:
        return LendingError(self.kind, self.book_id, self.user_id, self.max_borrowable)


LendingDecision = Union[Permitted, Rejected]


def validate_borrow(facts: BorrowFacts, now: datetime) -> LendingDecision:
    """Decide a borrow request.

    Order: book exists, user exists, quota, availability.
    """
    if not facts.book_exists:
        return Rejected(LendingErrorKind.BOOK_NOT_FOUND, facts.book_id, facts.user_id)
    if not facts.user_exists:
        return Rejected(LendingErrorKind.USER_NOT_FOUND, facts.book_id, facts.user_id)
    if facts.currently_held >= facts.max_borrowable:
        return Rejected(
            LendingErrorKind.QUOTA_EXCEEDED,
            facts.book_id,
            facts.user_id,
            max_borrowable=facts.max_borrowable,
        )
    latest = facts.latest_book_event
    if latest is not None and latest.action is LendingAction.BORROWED:
        return Rejected(LendingErrorKind.ALREADY_BORROWED, facts.book_id, facts.user_id)
    return Permitted(
        BorrowEvent.create(facts.book_id, facts.user_id, LendingAction.BORROWED, now)
    )


def validate_return(facts: ReturnFacts, now: datetime) -> LendingDecision:
    """Decide a return request.

    Order: book exists, user exists, book currently borrowed, borrowed
    by this user.  A book that was never borrowed counts as returned.
    """
    if not facts.book_exists:
        return Rejected(LendingErrorKind.BOOK_NOT_FOUND, facts.book_id, facts.user_id)
    if not facts.user_exists:
        return Rejected(LendingErrorKind.USER_NOT_FOUND, facts.book_id, facts.user_id)
    latest = facts.latest_book_event
    if latest is None or latest.action is LendingAction.RETURNED:
        return Rejected(LendingErrorKind.ALREADY_RETURNED, facts.book_id, facts.user_id)
    if latest.user_id != facts.user_id:
        return Rejected(LendingErrorKind.NOT_BORROWED_BY_USER, facts.book_id, facts.user_id)
    return Permitted(
        BorrowEvent.create(
            facts.book_id,
            facts.user_id,
            LendingAction.RETURNED,
            now,
            closes_event_id=latest.id,
        )
    )
