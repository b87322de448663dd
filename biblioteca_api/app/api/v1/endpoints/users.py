"""
User endpoints for API v1.

Registration, lookup and removal of library users, plus a view of how
many books a user currently holds against their quota.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from biblioteca_api.app.core.errors import NotFoundError
from biblioteca_api.app.schemas.lending import BorrowedCount
from biblioteca_api.app.schemas.user import UserCreate, UserRead
from biblioteca_api.app.services.lending_service import LendingService, get_lending_service
from biblioteca_api.app.services.user_service import UserService


router = APIRouter()


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(user: UserCreate) -> UserRead:
    """Register a user under an existing role.

    Returns 400 if the role does not exist or the username is taken.
    """
    try:
        return await UserService.create_user(user)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


@router.get("/", response_model=List[UserRead])
async def list_users() -> List[UserRead]:
    return await UserService.list_users()


@router.get("/{user_id}", response_model=UserRead)
async def get_user(user_id: UUID) -> UserRead:
    try:
        return await UserService.get_user(str(user_id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: UUID,
    lending: LendingService = Depends(get_lending_service),
) -> None:
    """Delete a user.  Refused with 400 while they hold books."""
    async with lending.user_locks.hold(str(user_id)):
        try:
            await UserService.delete_user(str(user_id))
        except NotFoundError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return None


@router.get("/{user_id}/borrowed-count", response_model=BorrowedCount)
async def get_borrowed_count(
    user_id: UUID,
    lending: LendingService = Depends(get_lending_service),
) -> BorrowedCount:
    return await lending.borrowed_count(str(user_id))
