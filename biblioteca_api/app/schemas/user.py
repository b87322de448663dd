"""
Pydantic models for users and user roles.

A role carries the borrow quota (``num_borrowable_books``) that applies
to every user holding it.  Users reference exactly one role.
"""

from uuid import UUID

from pydantic import BaseModel, Field


class UserRoleBase(BaseModel):
    name: str = Field(..., min_length=1, examples=["member"])
    num_borrowable_books: int = Field(..., ge=0, examples=[3])


class UserRoleCreate(UserRoleBase):
    """Schema for creating a user role."""
    pass


class UserRoleRead(UserRoleBase):
    id: UUID

    model_config = {
        "from_attributes": True,
    }


class UserBase(BaseModel):
    username: str = Field(..., min_length=1, examples=["dulcinea"])


class UserCreate(UserBase):
    """Schema for registering a user under an existing role."""

    user_role_id: UUID


class UserRead(UserBase):
    """Schema for reading a user, with the role embedded."""

    id: UUID
    user_role: UserRoleRead | None = None

    model_config = {
        "from_attributes": True,
    }
