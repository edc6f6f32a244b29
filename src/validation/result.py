"""
Validation Result Types.

RawError is the unprocessed failure signal produced by a compiled validator.
ValidationError is the normalized, caller-facing record and ValidationResult
the value returned by ValidationEngine.validate() on every call.

Invariant:
    ValidationResult.is_valid is True iff ValidationResult.errors is None or
    empty. Results are built through the ``valid()``/``invalid()`` helpers
    which maintain it.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

PathSegment = Union[str, int]
SCHEMA_ERROR_FIELD = "_schema"
SCHEMA_ERROR_MESSAGE = "Invalid schema configuration"


@dataclass(frozen=True)
class RawError:
    """One failure reported by a compiled validator.

    Attributes:
        keyword: Schema keyword that failed ("required", "type", a custom
            keyword name, or "errorMessage" for wrapped overrides)
        instance_path: Path segments from the root value to the failing node
        params: Keyword specific details (missingProperty, additionalProperty,
            allowedValues, type, format, errors...)
        message: Text reported by the validator or the override text
        parent_schema: Schema node holding the keyword
    """

    keyword: str
    instance_path: Tuple[PathSegment, ...] = ()
    params: Dict[str, Any] = field(default_factory=dict)
    message: str = ""
    parent_schema: Any = None

    def to_dict(self) -> Dict[str, Any]:
        params = dict(self.params)
        if "errors" in params:
            params["errors"] = [child.to_dict() for child in params["errors"]]
        return {
            "keyword": self.keyword,
            "instancePath": list(self.instance_path),
            "params": params,
            "message": self.message,
        }


@dataclass(frozen=True)
class ValidationError:
    """Normalized, caller-facing validation failure."""

    field: str
    message: str
    path: Optional[Tuple[PathSegment, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"field": self.field, "message": self.message}
        if self.path:
            data["path"] = list(self.path)
        return data


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: Optional[List[ValidationError]] = None
    raw_errors: Optional[List[RawError]] = None

    @classmethod
    def valid(cls, raw_errors: Optional[List[RawError]] = None) -> "ValidationResult":
        return cls(is_valid=True, errors=None, raw_errors=raw_errors)

    @classmethod
    def invalid(cls, errors: List[ValidationError],
                raw_errors: Optional[List[RawError]] = None) -> "ValidationResult":
        if not errors:
            raise ValueError("An invalid result needs at least one error")
        return cls(is_valid=False, errors=list(errors), raw_errors=raw_errors)

    @classmethod
    def schema_failure(cls) -> "ValidationResult":
        return cls.invalid([ValidationError(SCHEMA_ERROR_FIELD, SCHEMA_ERROR_MESSAGE)])

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "isValid": self.is_valid,
            "errors": [error.to_dict() for error in self.errors] if self.errors else None,
        }
        if self.raw_errors is not None:
            data["rawErrors"] = [error.to_dict() for error in self.raw_errors]
        return data
