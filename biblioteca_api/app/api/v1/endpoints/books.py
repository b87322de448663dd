"""
Book catalog endpoints for API v1.

CRUD over the catalog, plus two read-only views of the lending ledger
for a book: its current state and its full history.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from biblioteca_api.app.core.errors import NotFoundError
from biblioteca_api.app.schemas.book import BookCreate, BookRead, BookUpdate
from biblioteca_api.app.schemas.lending import BookLendingStatus, BorrowEventRead
from biblioteca_api.app.services.book_service import BookService
from biblioteca_api.app.services.lending_service import LendingService, get_lending_service


router = APIRouter()


@router.post("/", response_model=BookRead, status_code=status.HTTP_201_CREATED)
async def create_book(book: BookCreate) -> BookRead:
    """Add a book.  The referenced author must exist (400 otherwise)."""
    try:
        return await BookService.create_book(book)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


@router.get("/", response_model=List[BookRead])
async def list_books() -> List[BookRead]:
    return await BookService.list_books()


@router.get("/{book_id}", response_model=BookRead)
async def get_book(book_id: UUID) -> BookRead:
    try:
        return await BookService.get_book(str(book_id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.put("/{book_id}", response_model=BookRead)
async def update_book(book_id: UUID, updates: BookUpdate) -> BookRead:
    """Partially update a book; unspecified fields remain unchanged."""
    update_dict = {k: v for k, v in updates.model_dump().items() if v is not None}
    try:
        return await BookService.update_book(str(book_id), update_dict)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_book(
    book_id: UUID,
    lending: LendingService = Depends(get_lending_service),
) -> None:
    """Remove a book from the catalog.

    Refused with 400 while the book is borrowed.  The book's lock is held
    so that a concurrent borrow cannot slip in between the check and the
    delete.
    """
    async with lending.book_locks.hold(str(book_id)):
        try:
            await BookService.delete_book(str(book_id))
        except NotFoundError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return None


@router.get("/{book_id}/lending", response_model=BookLendingStatus)
async def get_book_lending_status(
    book_id: UUID,
    lending: LendingService = Depends(get_lending_service),
) -> BookLendingStatus:
    """Whether the book is available and, if not, who holds it."""
    return await lending.book_status(str(book_id))


@router.get("/{book_id}/lending/history", response_model=List[BorrowEventRead])
async def get_book_lending_history(
    book_id: UUID,
    lending: LendingService = Depends(get_lending_service),
) -> List[BorrowEventRead]:
    events = await lending.book_history(str(book_id))
    return [BorrowEventRead.from_event(event) for event in events]
