"""
Version 1 of the API.

Bundles the catalog, membership and lending endpoints.  Breaking
changes belong in a new version subpackage.
"""
