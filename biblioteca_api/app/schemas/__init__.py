"""
Pydantic schema definitions for API payloads.

Each domain (catalog, membership, lending) defines its own Pydantic
models for request and response bodies.  Schemas are separated from
the persistence layer to decouple API representation from storage.
"""
