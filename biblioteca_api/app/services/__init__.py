"""
Service layer abstraction.

Each service encapsulates business logic for a domain.  The catalog
and membership services are plain data access; the lending service,
validator and ledger hold the borrowing rules.
"""
