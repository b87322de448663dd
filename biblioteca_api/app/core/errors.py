"""Error types shared by the services.

``LendingErrorKind`` is the closed set of reasons a borrow or return can
fail.  Every kind except ``STORAGE`` is caused by the request itself and
is reported back with the ids involved; ``STORAGE`` is a server fault
and is reported opaquely.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class LendingErrorKind(str, Enum):
    BOOK_NOT_FOUND = "book_not_found"
    USER_NOT_FOUND = "user_not_found"
    QUOTA_EXCEEDED = "quota_exceeded"
    ALREADY_BORROWED = "already_borrowed"
    ALREADY_RETURNED = "already_returned"
    NOT_BORROWED_BY_USER = "not_borrowed_by_user"
    STORAGE = "storage"


class LendingError(Exception):
    """A borrow or return request that did not go through."""

    def __init__(
        self,
        kind: LendingErrorKind,
        book_id: Optional[str] = None,
        user_id: Optional[str] = None,
        max_borrowable: Optional[int] = None,
    ) -> None:
        self.kind = kind
        self.book_id = book_id
        self.user_id = user_id
        self.max_borrowable = max_borrowable
        super().__init__(self.message)

    @property
    def is_client_error(self) -> bool:
        return self.kind is not LendingErrorKind.STORAGE

    @property
    def message(self) -> str:
        if self.kind is LendingErrorKind.BOOK_NOT_FOUND:
            return f"book {self.book_id} does not exist in catalog"
        if self.kind is LendingErrorKind.USER_NOT_FOUND:
            return f"user {self.user_id} does not exist"
        if self.kind is LendingErrorKind.QUOTA_EXCEEDED:
            return f"user {self.user_id} may not borrow more than {self.max_borrowable} books"
        if self.kind is LendingErrorKind.ALREADY_BORROWED:
            return f"book {self.book_id} has already been borrowed"
        if self.kind is LendingErrorKind.ALREADY_RETURNED:
            return f"book {self.book_id} has already been returned"
        if self.kind is LendingErrorKind.NOT_BORROWED_BY_USER:
            return f"book {self.book_id} is not borrowed by user {self.user_id}"
        return "internal server error, check logs for more details"

    def to_dict(self) -> dict:
        """Response body for the HTTP layer.  Storage faults carry no ids."""
        if not self.is_client_error:
            return {"code": self.kind.value, "message": self.message}
        body = {
            "code": self.kind.value,
            "message": self.message,
            "book_id": self.book_id,
            "user_id": self.user_id,
        }
        if self.kind is LendingErrorKind.QUOTA_EXCEEDED:
            body["max_borrowable"] = self.max_borrowable
        return body


class NotFoundError(ValueError):
    """A referenced catalog or membership record does not exist.

    Subclasses ``ValueError`` so handlers that only care about "bad
    input" can keep catching ``ValueError``.
    """
