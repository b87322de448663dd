"""
Borrow and return endpoints for API v1.

Both routes take the book from the path and the user from the body and
answer ``202 Accepted`` with the ledger event that was appended.
Rejections raise ``LendingError``; the handler registered in
``main.create_app`` turns them into JSON responses.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status

from biblioteca_api.app.schemas.lending import BorrowEventRead, LendingRequest
from biblioteca_api.app.services.lending_service import LendingService, get_lending_service


router = APIRouter()

logger = logging.getLogger(__name__)


@router.post(
    "/borrow/books/{book_id}",
    response_model=BorrowEventRead,
    status_code=status.HTTP_202_ACCEPTED,
)
async def borrow_book(
    payload: LendingRequest,
    book_id: UUID = Path(..., description="ID of the book to borrow"),
    lending: LendingService = Depends(get_lending_service),
) -> BorrowEventRead:
    logger.debug("POST /borrow/books/%s for user %s", book_id, payload.user_id)
    event = await lending.borrow_book(str(book_id), str(payload.user_id))
    return BorrowEventRead.from_event(event)


@router.post(
    "/return/books/{book_id}",
    response_model=BorrowEventRead,
    status_code=status.HTTP_202_ACCEPTED,
)
async def return_book(
    payload: LendingRequest,
    book_id: UUID = Path(..., description="ID of the book to return"),
    lending: LendingService = Depends(get_lending_service),
) -> BorrowEventRead:
    logger.debug("POST /return/books/%s for user %s", book_id, payload.user_id)
    event = await lending.return_book(str(book_id), str(payload.user_id))
    return BorrowEventRead.from_event(event)
