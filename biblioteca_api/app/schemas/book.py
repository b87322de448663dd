"""
Pydantic models for catalog books.

A book belongs to exactly one author.  The library holds a single
physical copy of every book, so there is no inventory count here;
availability is derived from the lending ledger.
"""

from uuid import UUID

from pydantic import BaseModel, Field


class BookBase(BaseModel):
    name: str = Field(..., min_length=1, examples=["Don Quixote"])
    description: str = Field("", examples=["The adventures of a self-made knight"])
    language: str = Field("", examples=["es"])


class BookCreate(BookBase):
    """Schema for adding a book to the catalog.

    ``author_id`` must reference an existing author.
    """

    author_id: UUID


class BookUpdate(BaseModel):
    """Schema for updating a book.

    All fields are optional; only provided fields will be updated.
    """
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    language: str | None = None
    author_id: UUID | None = None


class BookRead(BookBase):
    """Schema for reading a book from the API."""

    id: UUID
    author_id: UUID

    model_config = {
        "from_attributes": True,
    }
