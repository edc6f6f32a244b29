"""
Validator Compiler.

Turns schema fragments into reusable validators. The substrate is the
``jsonschema`` Draft 7 validator, extended with:

    - the custom keywords of a KeywordRegistry, each gated on node kind
    - ``required`` and ``additionalProperties`` reporting one error per
      property, with the property name in the error params
    - ``if``/``then``/``else`` reporting a generic 'must match "then" schema'
      error after the branch errors
    - ``errorMessage``: override text embedded in a node

errorMessage Handling:
    A node carrying ``errorMessage`` is evaluated as a whole by the
    errorMessage keyword; its other keywords stay silent. The collected
    errors are then wrapped:

    - string form: every error of the node becomes a child of one wrapper
    - mapping form, keyword entries: errors of that keyword at the node
      itself (``type`` and ``pattern`` excepted; the error normalizer reads
      those two from the node)
    - ``required`` sub-mapping: one wrapper per missing property
    - ``properties`` sub-mapping: one wrapper per property, covering the
      errors anywhere below it

    Wrappers carry keyword ``errorMessage``, the override text and their
    children in ``params["errors"]``.

Compilation never touches the fragment. A fragment rejected by the Draft 7
meta-schema raises ``jsonschema.exceptions.SchemaError`` from compile(); the
engine turns that into a schema failure result.
"""
import logging
import re
from typing import Any, Callable, Dict, Iterator, List, Mapping

from jsonschema import Draft7Validator, exceptions, validators

from validation.formats import FORMAT_CHECKER
from validation.keywords import CustomKeyword, KeywordRegistry
from validation.result import RawError

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "errorMessage"

# Resolved by the error normalizer from the node, never wrapped
UNWRAPPED_KEYWORDS = frozenset({"type", "pattern"})


def _error(message: str, **params: Any) -> exceptions.ValidationError:
    error = exceptions.ValidationError(message)
    error.params = params
    return error


# =============================================================================
# Draft 7 keyword overrides
# =============================================================================

def required(validator, required_properties, instance, schema):
    if not validator.is_type(instance, "object"):
        return
    for name in required_properties:
        if name not in instance:
            yield _error(f"{name!r} is a required property", missingProperty=name)


def additional_properties(validator, additional, instance, schema):
    if not validator.is_type(instance, "object"):
        return
    properties = schema.get("properties", {})
    patterns = list(schema.get("patternProperties", {}))
    extras = [
        name for name in instance
        if name not in properties and not any(re.search(pattern, name) for pattern in patterns)
    ]
    if validator.is_type(additional, "object"):
        for name in extras:
            yield from validator.descend(instance[name], additional, path=name)
    elif additional is False:
        for name in extras:
            yield _error(
                f"Additional properties are not allowed ({name!r} was unexpected)",
                additionalProperty=name,
            )


def if_(validator, if_schema, instance, schema):
    if validator.evolve(schema=if_schema).is_valid(instance):
        branch = "then"
    else:
        branch = "else"
    if branch not in schema:
        return
    errors = list(validator.descend(instance, schema[branch], schema_path=branch))
    if errors:
        yield from errors
        yield _error(f'must match "{branch}" schema', failingKeyword=branch)


def custom_keyword(keyword: CustomKeyword) -> Callable:
    """Keyword function running ``keyword.predicate`` on matching nodes."""

    def check(validator, value, instance, schema):
        if value is False or value is None:
            return
        if not validator.is_type(instance, keyword.applies_to):
            return
        if not keyword.predicate(value, instance):
            yield _error(keyword.default_message)

    check.__name__ = keyword.name
    return check


# =============================================================================
# errorMessage
# =============================================================================

def _has_error_message(schema: Any) -> bool:
    return (
        isinstance(schema, Mapping)
        and "$ref" not in schema
        and isinstance(schema.get(ERROR_MESSAGE), (str, Mapping))
    )


def _silent_when_overridden(function: Callable) -> Callable:
    """Let the errorMessage keyword evaluate overridden nodes."""

    def check(validator, value, instance, schema):
        if _has_error_message(schema):
            return ()
        return function(validator, value, instance, schema)

    check.__name__ = getattr(function, "__name__", "check")
    return check


def _wrap(message: str, children: List[exceptions.ValidationError]) -> exceptions.ValidationError:
    return exceptions.ValidationError(
        message,
        validator=ERROR_MESSAGE,
        context=children,
    )


def error_message(validator, messages, instance, schema):
    if not _has_error_message(schema):
        return
    stripped = {key: value for key, value in schema.items() if key != ERROR_MESSAGE}
    errors = list(validator.evolve(schema=stripped).iter_errors(instance))
    if not errors:
        return
    for error in errors:
        if error.schema is stripped:
            error.schema = schema

    if isinstance(messages, str):
        yield _wrap(messages, errors)
        return

    grouped: Dict[Any, List[exceptions.ValidationError]] = {}
    texts: Dict[Any, str] = {}
    passthrough = []
    for error in errors:
        key, text = _override_for(error, messages)
        if key is None:
            passthrough.append(error)
            continue
        grouped.setdefault(key, []).append(error)
        texts[key] = text

    yield from passthrough
    for key, children in grouped.items():
        yield _wrap(texts[key], children)


def _override_for(error: exceptions.ValidationError, messages: Mapping) -> Any:
    """Return (group key, text) for the override covering ``error``."""
    if error.relative_path:
        overrides = messages.get("properties")
        head = error.relative_path[0]
        if isinstance(overrides, Mapping) and isinstance(overrides.get(head), str):
            return ("properties", head), overrides[head]
        return None, None

    keyword = error.validator
    if keyword in UNWRAPPED_KEYWORDS:
        return None, None
    override = messages.get(keyword)
    if isinstance(override, str):
        return keyword, override
    if keyword == "required" and isinstance(override, Mapping):
        missing = getattr(error, "params", {}).get("missingProperty")
        if isinstance(override.get(missing), str):
            return ("required", missing), override[missing]
    return None, None


# =============================================================================
# Compiled validators
# =============================================================================

def build_validator_class(registry: KeywordRegistry):
    """Create the Draft 7 validator class for ``registry``.

    Raises:
        ValueError: If a custom keyword shadows a Draft 7 keyword
    """
    keywords: Dict[str, Callable] = dict(Draft7Validator.VALIDATORS)
    keywords.update({
        "required": required,
        "additionalProperties": additional_properties,
        "if": if_,
    })
    for keyword in registry:
        if keyword.name in keywords or keyword.name == ERROR_MESSAGE:
            raise ValueError(f"Custom keyword {keyword.name} shadows a built-in keyword")
        keywords[keyword.name] = custom_keyword(keyword)

    guarded = {name: _silent_when_overridden(function) for name, function in keywords.items()}
    guarded[ERROR_MESSAGE] = error_message
    return validators.extend(Draft7Validator, validators=guarded)


def _params(error: exceptions.ValidationError) -> Dict[str, Any]:
    keyword = error.validator
    if keyword == ERROR_MESSAGE:
        return {"errors": [to_raw_error(child) for child in error.context]}
    explicit = getattr(error, "params", None)
    if explicit:
        return dict(explicit)
    if keyword == "enum":
        return {"allowedValues": error.validator_value}
    return {keyword: error.validator_value}


def to_raw_error(error: exceptions.ValidationError) -> RawError:
    """Convert a jsonschema error (and its wrapped children) into a RawError."""
    return RawError(
        keyword=str(error.validator),
        instance_path=tuple(error.absolute_path),
        params=_params(error),
        message=error.message,
        parent_schema=error.schema,
    )


class CompiledValidator:
    """Executable validator for one fragment.

    Safe to share between threads: jsonschema validators hold no per-call
    state.
    """

    def __init__(self, fragment: Any, validator: Any) -> None:
        self.fragment = fragment
        self._validator = validator

    def iter_raw_errors(self, value: Any) -> Iterator[RawError]:
        for error in self._validator.iter_errors(value):
            yield to_raw_error(error)

    def is_valid(self, value: Any) -> bool:
        return self._validator.is_valid(value)


def compile_fragment(validator_class, fragment: Any) -> CompiledValidator:
    """Check ``fragment`` against the Draft 7 meta-schema and compile it.

    Raises:
        jsonschema.exceptions.SchemaError: If the fragment is not a valid schema
    """
    validator_class.check_schema(fragment)
    logger.debug(f"Compiled validator for fragment {id(fragment):#x}")
    return CompiledValidator(fragment, validator_class(fragment, format_checker=FORMAT_CHECKER))
