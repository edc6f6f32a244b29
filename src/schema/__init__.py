"""Schema Package - Field Contracts and Request Schemas.

This package provides the building blocks used to declare what a request
body or query string must look like, and the request contracts built from
them.

Architecture:
    - fragment: immutable SchemaFragment nodes (JSON Schema Draft 7 shape)
    - builders: one factory per semantic primitive plus composition helpers
    - contracts: request schemas, built once at import time

Available Schemas:
    CREATE_USER_REQUEST_SCHEMA: JSON body accepted by ``POST /users``
    PAGINATION_QUERY_SCHEMA: query string accepted by list endpoints

Usage Patterns:
    # Declaring a new contract:
    from schema import builders as v
    TICKET = v.object_of({"title": v.description(v.DescriptionType.SUMMARY)})

    # Using an existing one:
    from schema import CREATE_USER_REQUEST_SCHEMA
    result = engine.validate(CREATE_USER_REQUEST_SCHEMA, payload)

Fragments are never mutated after construction; the validation engine caches
compiled validators by fragment identity, so contracts should be module-level
constants rather than rebuilt per request.
"""
from .contracts import CREATE_USER_REQUEST_SCHEMA, PAGINATION_QUERY_SCHEMA, SortOrder
from .fragment import FrozenList, SchemaFragment, freeze, is_optional

__all__ = [
    "CREATE_USER_REQUEST_SCHEMA",
    "PAGINATION_QUERY_SCHEMA",
    "SortOrder",
    "SchemaFragment",
    "FrozenList",
    "freeze",
    "is_optional",
]
