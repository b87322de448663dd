"""
Top‑level router for version 1 of the API.

Aggregates the domain routers under a unified prefix.  The roles router
is included before the users router so that ``/users/roles`` is not
captured by ``/users/{user_id}``.
"""

from fastapi import APIRouter

from .endpoints import authors, books, lending, roles, users

router = APIRouter()

router.include_router(books.router, prefix="/books", tags=["books"])
router.include_router(authors.router, prefix="/authors", tags=["authors"])
router.include_router(roles.router, prefix="/users/roles", tags=["roles"])
router.include_router(users.router, prefix="/users", tags=["users"])
# Lending routes carry their own ``/borrow`` and ``/return`` prefixes.
router.include_router(lending.router, tags=["lending"])
