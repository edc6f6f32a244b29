"""
Error Normalizer.

Turns the raw errors of one validation call into the list returned to
callers: one entry per field, the most specific message winning, generic
conditional noise removed and the result ordered by importance.

Priority Levels:
    3 - format errors (specialized text for email, date-time and uuid)
    2 - type, enum, pattern, additionalProperties and errorMessage overrides
    1 - required and everything else

Processing Steps:
    1. Map each raw error to (field, message, priority, path)
    2. Keep one entry per field; a higher priority replaces a lower one and
       ties keep the first seen
    3. Drop generic ``if`` entries whose target path is strictly extended by
       another entry's target path
    4. Drop field-less priority 1 entries unless nothing else remains
    5. Stable sort by descending priority

Example:
    >>> format_errors([RawError("required", (), {"missingProperty": "name"})])
    [ValidationError(field='name', message="The field 'name' is required", path=None)]
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from validation.result import PathSegment, RawError, ValidationError

FORMAT_MESSAGES = {
    "email": "Please enter a valid email address",
    "date-time": "Please enter a valid date and time",
    "uuid": "Invalid ID format",
}


@dataclass
class _Entry:
    field: str
    message: str
    priority: int
    path: Tuple[PathSegment, ...]
    target: Tuple[PathSegment, ...]
    keyword: str


def field_name(path: Sequence[PathSegment]) -> str:
    """Render a path as a field name: ``items[0].name``."""
    rendered = ""
    for segment in path:
        if isinstance(segment, int) and not isinstance(segment, bool):
            rendered += f"[{segment}]"
        elif rendered:
            rendered += f".{segment}"
        else:
            rendered = str(segment)
    return rendered


def _node_messages(error: RawError) -> Mapping[str, Any]:
    schema = error.parent_schema
    if isinstance(schema, Mapping) and isinstance(schema.get("errorMessage"), Mapping):
        return schema["errorMessage"]
    return {}


def _type_message(error: RawError, field: str) -> str:
    schema = error.parent_schema if isinstance(error.parent_schema, Mapping) else {}
    if isinstance(schema.get("enum"), list):
        values = ", ".join(str(value) for value in schema["enum"])
        return f"{field or 'value'} must be one of: {values}"
    override = _node_messages(error).get("type")
    if isinstance(override, str):
        return override
    expected = error.params.get("type")
    if isinstance(expected, (list, tuple)):
        expected = " or ".join(str(kind) for kind in expected)
    return f"{field or 'value'} must be a {expected}"


def _entry(error: RawError) -> _Entry:
    path = tuple(error.instance_path)
    field = field_name(path)
    keyword = error.keyword

    if keyword == "required":
        missing = error.params.get("missingProperty")
        name = str(missing)
        return _Entry(name, f"The field '{name}' is required", 1, path, path + (missing,), keyword)

    if keyword == "type":
        return _Entry(field, _type_message(error, field), 2, path, path, keyword)

    if keyword == "enum":
        values = error.params.get("allowedValues") or []
        message = "Must be one of: " + ", ".join(str(value) for value in values)
        return _Entry(field, message, 2, path, path, keyword)

    if keyword == "pattern":
        override = _node_messages(error).get("pattern")
        message = override if isinstance(override, str) else "Invalid format"
        return _Entry(field, message, 2, path, path, keyword)

    if keyword == "additionalProperties":
        extra = error.params.get("additionalProperty")
        target = path + (extra,)
        return _Entry(str(extra), f"The property '{extra}' is not allowed", 2, path, target, keyword)

    if keyword == "format":
        message = FORMAT_MESSAGES.get(error.params.get("format"), error.message)
        return _Entry(field, message, 3, path, path, keyword)

    if keyword == "errorMessage":
        return _unwrap(error, field, path)

    return _Entry(field, error.message, 1, path, path, keyword)


def _unwrap(error: RawError, field: str, path: Tuple[PathSegment, ...]) -> _Entry:
    """Take the field of the first wrapped child and the wrapper's text."""
    children = error.params.get("errors") or []
    if not children:
        return _Entry(field, error.message, 2, path, path, error.keyword)
    child = children[0]
    child_path = tuple(child.instance_path)
    if child.keyword == "additionalProperties":
        name = child.params.get("additionalProperty")
    elif child.keyword == "required":
        name = child.params.get("missingProperty")
    else:
        return _Entry(field_name(child_path), error.message, 2, child_path, child_path, error.keyword)
    return _Entry(str(name), error.message, 2, child_path, child_path + (name,), error.keyword)


def _extends(longer: Tuple[PathSegment, ...], shorter: Tuple[PathSegment, ...]) -> bool:
    return len(longer) > len(shorter) and longer[:len(shorter)] == shorter


def format_errors(raw_errors: Sequence[RawError]) -> List[ValidationError]:
    """Normalize the raw errors of one call.

    Args:
        raw_errors: Errors in the order the validator produced them

    Returns:
        Deduplicated, prioritized ValidationError list; never empty when
        ``raw_errors`` is not empty
    """
    by_field: Dict[str, _Entry] = {}
    for error in raw_errors:
        entry = _entry(error)
        current = by_field.get(entry.field)
        if current is None or entry.priority > current.priority:
            by_field[entry.field] = entry

    entries = list(by_field.values())
    entries = [
        entry for entry in entries
        if entry.keyword != "if"
        or not any(_extends(other.target, entry.target) for other in entries if other is not entry)
    ] or entries

    kept = [entry for entry in entries if entry.field or entry.priority > 1] or entries
    kept.sort(key=lambda entry: -entry.priority)

    return [
        ValidationError(entry.field, entry.message, entry.path or None)
        for entry in kept
    ]