"""
Request Pipes.

Small transform-and-validate steps applied to incoming request data before a
handler runs. Each pipe exposes ``transform(value)`` which returns the value
to hand to the handler or raises RequestValidationError.

Pipes:
    SchemaPipe: validates a JSON body as-is
    QueryParamPipe: converts query string text into typed values, then
        validates
    ArrayQueryParamPipe: wraps single values of list-valued query fields

Query String Conversion:
    The validator never coerces types, so query strings are parsed here:

    - ``user.profile.name=Ada`` becomes ``{"user": {"profile": {"name": "Ada"}}}``
    - ``true``/``false``/``null`` become True/False/None; ``undefined`` drops
      the key
    - numbers become int or float, other JSON text is decoded
    - ``a,b,c`` becomes a list; items of string-array properties stay strings

Example:
    >>> pipe = QueryParamPipe(engine, PAGINATION_QUERY_SCHEMA)
    >>> pipe.transform({"page": "2", "status": "open,pending"})
    {'page': 2, 'status': ['open', 'pending']}
"""
import json
import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from validation import ValidationEngine, ValidationError

logger = logging.getLogger(__name__)

VALIDATION_FAILED = "Validation failed"
QUERY_VALIDATION_FAILED = "Query parameter validation failed"

_UNDEFINED = object()


class RequestValidationError(Exception):
    """Raised when request data fails its contract.

    Attributes:
        message: Short description ("Validation failed")
        cause: Normalized ValidationError list, if any
        status_code: HTTP status to answer with (always 400)
    """

    status_code = 400

    def __init__(self, message: str, cause: Optional[Sequence[ValidationError]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = list(cause or [])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "error",
            "message": self.message,
            "details": [error.to_dict() for error in self.cause],
        }


def trim_deep(value: Any) -> Any:
    """Strip surrounding whitespace from every string in ``value``."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        return [trim_deep(item) for item in value]
    if isinstance(value, Mapping):
        return {key: trim_deep(item) for key, item in value.items()}
    return value


class SchemaPipe:
    """Validate a request body against ``schema``."""

    def __init__(self, engine: ValidationEngine, schema: Any) -> None:
        self.engine = engine
        self.schema = schema

    def transform(self, value: Any) -> Any:
        result = self.engine.validate(self.schema, value)
        if not result.is_valid:
            logger.warning(f"Request schema validation failed: {[e.to_dict() for e in result.errors]}")
            raise RequestValidationError(VALIDATION_FAILED, result.errors)
        logger.debug("Request body validated")
        return value


def parse_value(value: Any) -> Any:
    """Convert one query string value to the JSON value it spells."""
    if not isinstance(value, str):
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    if value == "null":
        return None
    if value == "undefined":
        return _UNDEFINED
    if value.strip() and "_" not in value:
        try:
            return int(value)
        except ValueError:
            pass
        try:
            number = float(value)
        except ValueError:
            pass
        else:
            if math.isfinite(number):
                return number
    try:
        return json.loads(value)
    except ValueError:
        return value


def _split(value: Any) -> List[Any]:
    if isinstance(value, list):
        return [part for item in value for part in _split(item)]
    if isinstance(value, str):
        return [item.strip() for item in value.split(",")]
    return [value]


def _set_nested(target: Dict[str, Any], dotted: str, value: Any) -> None:
    keys = dotted.split(".")
    current = target
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


def property_schema(schema: Any, path: Sequence[str]) -> Optional[Mapping[str, Any]]:
    """Schema node for a dotted property path, if the schema declares it."""
    current = schema
    for key in path:
        if not isinstance(current, Mapping) or current.get("type") != "object":
            return None
        current = (current.get("properties") or {}).get(key)
    return current if isinstance(current, Mapping) else None


class QueryParamPipe:
    """Convert and validate a query string against ``schema``."""

    def __init__(self, engine: ValidationEngine, schema: Any) -> None:
        self.engine = engine
        self.schema = schema

    def parse(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        nested: Dict[str, Any] = {}
        for key, value in params.items():
            if "." in key:
                _set_nested(nested, key, value)
            else:
                nested[key] = value
        return self._convert(nested, [])

    def _convert(self, values: Mapping[str, Any], path: List[str]) -> Dict[str, Any]:
        converted: Dict[str, Any] = {}
        for key, value in values.items():
            current_path = path + [key]
            if isinstance(value, dict):
                converted[key] = self._convert(value, current_path)
                continue

            node = property_schema(self.schema, current_path)
            if node is not None and node.get("type") == "array":
                items = _split(value)
                item_schema = node.get("items")
                if not (isinstance(item_schema, Mapping) and item_schema.get("type") == "string"):
                    items = [parse_value(item) for item in items]
                converted[key] = [item for item in items if item is not _UNDEFINED]
                continue

            if isinstance(value, list) or (isinstance(value, str) and "," in value):
                parsed = [parse_value(item) for item in _split(value)]
                converted[key] = [item for item in parsed if item is not _UNDEFINED]
                continue

            parsed = parse_value(value)
            if parsed is not _UNDEFINED:
                converted[key] = parsed
        return converted

    def transform(self, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        parsed = self.parse(value)
        result = self.engine.validate(self.schema, parsed)
        if not result.is_valid:
            logger.warning(f"Query parameter validation failed: {[e.to_dict() for e in result.errors]}")
            raise RequestValidationError(QUERY_VALIDATION_FAILED, result.errors)
        logger.debug("Query parameters validated")
        return parsed


class ArrayQueryParamPipe:
    """Make sure the named query fields hold lists.

    ``?status=open`` and ``?status=open&status=pending`` both yield a list for
    ``status``.
    """

    def __init__(self, array_fields: Iterable[str]) -> None:
        self.array_fields = tuple(array_fields)
        logger.debug(f"ArrayQueryParamPipe initialized with array fields: {', '.join(self.array_fields)}")

    def transform(self, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        result = dict(value)
        for field in self.array_fields:
            if field in result and not isinstance(result[field], list):
                result[field] = [result[field]]
        return result
