"""
Author endpoints for API v1.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from biblioteca_api.app.core.errors import NotFoundError
from biblioteca_api.app.schemas.author import AuthorCreate, AuthorRead, AuthorUpdate
from biblioteca_api.app.services.author_service import AuthorService


router = APIRouter()


@router.post("/", response_model=AuthorRead, status_code=status.HTTP_201_CREATED)
async def create_author(author: AuthorCreate) -> AuthorRead:
    return await AuthorService.create_author(author)


@router.get("/", response_model=List[AuthorRead])
async def list_authors() -> List[AuthorRead]:
    return await AuthorService.list_authors()


@router.get("/{author_id}", response_model=AuthorRead)
async def get_author(author_id: UUID) -> AuthorRead:
    try:
        return await AuthorService.get_author(str(author_id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.put("/{author_id}", response_model=AuthorRead)
async def update_author(author_id: UUID, updates: AuthorUpdate) -> AuthorRead:
    update_dict = {k: v for k, v in updates.model_dump().items() if v is not None}
    try:
        return await AuthorService.update_author(str(author_id), update_dict)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.delete("/{author_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_author(author_id: UUID) -> None:
    """Delete an author.  Refused with 400 while they still have books."""
    try:
        await AuthorService.delete_author(str(author_id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return None
