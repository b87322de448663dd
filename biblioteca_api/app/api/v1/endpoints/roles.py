"""
User role endpoints for API v1.

A role fixes the number of books its users may hold at once.  Mounted
under ``/users/roles``.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from biblioteca_api.app.core.errors import NotFoundError
from biblioteca_api.app.schemas.user import UserRoleCreate, UserRoleRead
from biblioteca_api.app.services.role_service import RoleService


router = APIRouter()


@router.get("/", response_model=List[UserRoleRead])
async def list_roles() -> List[UserRoleRead]:
    return await RoleService.list_roles()


@router.post("/", response_model=UserRoleRead, status_code=status.HTTP_201_CREATED)
async def create_role(role: UserRoleCreate) -> UserRoleRead:
    try:
        return await RoleService.create_role(role)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


@router.get("/{role_id}", response_model=UserRoleRead)
async def get_role(role_id: UUID) -> UserRoleRead:
    try:
        return await RoleService.get_role(str(role_id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(role_id: UUID) -> None:
    try:
        await RoleService.delete_role(str(role_id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return None
