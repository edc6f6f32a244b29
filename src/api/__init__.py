"""API Package - Flask integration of the validation engine.

Usage:
    from api import create_app
    app = create_app()
"""
from .app import create_app, main, validate_body, validate_query
from .pipes import ArrayQueryParamPipe, QueryParamPipe, RequestValidationError, SchemaPipe

__all__ = [
    "create_app",
    "main",
    "validate_body",
    "validate_query",
    "ArrayQueryParamPipe",
    "QueryParamPipe",
    "RequestValidationError",
    "SchemaPipe",
]
