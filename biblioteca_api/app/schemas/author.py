"""
Pydantic models for authors.

``AuthorBase`` holds the shared fields, ``AuthorCreate`` is accepted
on creation and ``AuthorRead`` adds the identifier for responses.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AuthorBase(BaseModel):
    name: str = Field(..., min_length=1, examples=["Miguel de Cervantes"])
    description: Optional[str] = Field(None, examples=["Spanish novelist"])
    country: str = Field(..., min_length=1, examples=["ES"])
    language: Optional[str] = Field(None, examples=["es"])


class AuthorCreate(AuthorBase):
    """Schema for creating an author."""
    pass


class AuthorUpdate(BaseModel):
    """Schema for updating an author.

    All fields are optional; only provided fields will be updated.
    """
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    country: str | None = Field(default=None, min_length=1)
    language: str | None = None


class AuthorRead(AuthorBase):
    """Schema for reading an author from the API."""

    id: UUID

    model_config = {
        "from_attributes": True,
    }
