"""Validation Package - Compiling Schemas and Reporting Errors.

Architecture:
    - keywords: immutable registry of custom predicates
    - formats: exact-match string format checks
    - compiler: jsonschema Draft 7 validator class with the custom keywords
      and errorMessage wrapping
    - errors: raw error normalization
    - engine: ValidationEngine, the validate() boundary with its cache

Usage:
    from validation import create_engine
    engine = create_engine(config)
    result = engine.validate(schema, payload)
    if not result.is_valid:
        ...
"""
from .engine import ValidationEngine, create_engine
from .keywords import DEFAULT_KEYWORDS, CustomKeyword, KeywordRegistry
from .result import RawError, ValidationError, ValidationResult

__all__ = [
    "ValidationEngine",
    "create_engine",
    "DEFAULT_KEYWORDS",
    "CustomKeyword",
    "KeywordRegistry",
    "RawError",
    "ValidationError",
    "ValidationResult",
]
