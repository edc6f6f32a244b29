"""
Validation Engine.

The single entry point callers use: ``ValidationEngine.validate()`` checks a
value against a schema fragment and always returns a ValidationResult. It
never raises for bad data or for a broken schema.

Compiled validators are cached per engine, keyed by fragment identity. The
cache entry keeps the fragment alive so an ``id()`` is never reused while its
entry exists. Two structurally identical but distinct fragments compile
independently.

Concurrency:
    The cache is the only shared mutable state. Inserts happen under a lock
    with setdefault semantics, so when two threads compile the same fragment
    at once both get the first stored validator and the duplicate is
    discarded. Validation itself runs outside the lock.

Usage:
    >>> from validation import ValidationEngine
    >>> engine = ValidationEngine()
    >>> result = engine.validate(CREATE_USER_REQUEST_SCHEMA, {"name": "Ada"})
    >>> result.is_valid
    False
"""
import dataclasses
import logging
import threading
from typing import Any, Dict, List, Mapping, Optional, Tuple

from jsonschema.exceptions import SchemaError, UnknownType
from referencing.exceptions import Unresolvable

from validation.compiler import CompiledValidator, build_validator_class, compile_fragment
from validation.errors import format_errors
from validation.keywords import DEFAULT_KEYWORDS, KeywordRegistry
from validation.result import RawError, ValidationResult

logger = logging.getLogger(__name__)


class ValidationEngine:
    """Compiles fragments on first use and validates values against them.

    Attributes:
        registry: Custom keywords available to every compiled validator
        log_schema_errors: Log the cause of schema failures at ERROR
        debug: Default for the per-call ``debug`` option
    """

    def __init__(self, registry: KeywordRegistry = DEFAULT_KEYWORDS,
                 log_schema_errors: bool = True, debug: bool = False) -> None:
        self.registry = registry
        self.log_schema_errors = log_schema_errors
        self.debug = debug
        self._validator_class = build_validator_class(registry)
        self._cache: Dict[int, Tuple[Any, CompiledValidator]] = {}
        self._lock = threading.Lock()

    def compile(self, schema: Any) -> CompiledValidator:
        """Return the compiled validator for ``schema``, compiling it once.

        Raises:
            jsonschema.exceptions.SchemaError: If ``schema`` is not a valid
                Draft 7 schema; failures are not cached
        """
        key = id(schema)
        cached = self._cache.get(key)
        if cached is not None and cached[0] is schema:
            return cached[1]

        compiled = compile_fragment(self._validator_class, schema)
        with self._lock:
            stored = self._cache.get(key)
            if stored is None or stored[0] is not schema:
                stored = (schema, compiled)
                self._cache[key] = stored
        return stored[1]

    def cached(self, schema: Any) -> bool:
        entry = self._cache.get(id(schema))
        return entry is not None and entry[0] is schema

    def validate(self, schema: Any, value: Any, debug: Optional[bool] = None,
                 custom_messages: Optional[Mapping[str, str]] = None) -> ValidationResult:
        """Validate ``value`` against ``schema``.

        Args:
            schema: Schema fragment (usually a module-level constant)
            value: Decoded JSON value
            debug: Attach the raw errors to the result; defaults to the
                engine setting
            custom_messages: Keyword -> replacement text for this call only

        Returns:
            ValidationResult; ``errors`` holds a single ``_schema`` entry when
            the schema itself is broken
        """
        if debug is None:
            debug = self.debug
        try:
            compiled = self.compile(schema)
            raw_errors = list(compiled.iter_raw_errors(value))
        except (SchemaError, UnknownType, Unresolvable) as e:
            if self.log_schema_errors:
                logger.error(f"Schema compilation failed: {e}")
            return ValidationResult.schema_failure()
        except Exception as e:
            logger.error(f"Unexpected error while validating: {e}", exc_info=True)
            return ValidationResult.schema_failure()

        if custom_messages:
            raw_errors = _apply_custom_messages(raw_errors, custom_messages)

        if not raw_errors:
            return ValidationResult.valid()

        errors = format_errors(raw_errors)
        logger.debug(f"Validation failed with {len(errors)} error(s)")
        return ValidationResult.invalid(errors, raw_errors if debug else None)


def _apply_custom_messages(raw_errors: List[RawError],
                           custom_messages: Mapping[str, str]) -> List[RawError]:
    return [
        dataclasses.replace(error, message=custom_messages[error.keyword])
        if isinstance(custom_messages.get(error.keyword), str) else error
        for error in raw_errors
    ]


def create_engine(config: Optional[Mapping[str, Any]] = None,
                  registry: KeywordRegistry = DEFAULT_KEYWORDS) -> ValidationEngine:
    """Build an engine from the ``validation`` section of the configuration."""
    settings = (config or {}).get("validation") or {}
    return ValidationEngine(
        registry=registry,
        log_schema_errors=bool(settings.get("log_schema_errors", True)),
        debug=bool(settings.get("debug", False)),
    )
