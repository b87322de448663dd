"""
Pydantic models for the lending endpoints.

Borrow and return requests carry only the requesting user; the book is
taken from the URL.  Responses expose ledger events as they were
written.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from biblioteca_api.app.services.ledger import BorrowEvent, LendingAction


class LendingRequest(BaseModel):
    user_id: UUID = Field(..., description="User borrowing or returning the book")


class BorrowEventRead(BaseModel):
    id: UUID
    book_id: UUID
    user_id: UUID
    timestamp: datetime
    action: LendingAction
    closes_event_id: UUID | None = None

    @classmethod
    def from_event(cls, event: BorrowEvent) -> "BorrowEventRead":
        return cls(
            id=event.id,
            book_id=event.book_id,
            user_id=event.user_id,
            timestamp=event.timestamp,
            action=event.action,
            closes_event_id=event.closes_event_id,
        )


class BookLendingStatus(BaseModel):
    """Current lending state of a book, derived from its latest event."""

    book_id: UUID
    available: bool
    holder_user_id: UUID | None = None
    since: datetime | None = None


class BorrowedCount(BaseModel):
    user_id: UUID
    currently_held: int
    max_borrowable: int
