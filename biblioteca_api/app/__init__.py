"""
Application package initializer.

The project is organised by domain: the catalog (books and authors),
membership (users and their roles) and lending.  Each domain has
schemas in ``schemas``, business logic in ``services`` and a router
in ``api/v1/endpoints``.  Lending is the only domain with real rules:
borrow and return requests are validated against an append‑only
ledger of events rather than a mutable "status" column.
"""

from .main import app  # noqa: F401
