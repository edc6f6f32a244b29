"""
Schema Builders - Reusable Field Contracts.

This module exposes one factory per semantic primitive (uuid, email, phone,
name, description, ...) plus a handful of composition helpers. Every factory
returns an immutable SchemaFragment (JSON Schema Draft 7 node) carrying an
``errorMessage`` entry with human-readable text for each constraint.

Message Resolution:
    For every constraint the embedded text is:
    1. The caller's override from ``error_messages`` when supplied
    2. Otherwise a generated default that names the active bound,
       e.g. "Name must be at least 2 characters"

Options Handling:
    Factories never raise while building. Bounds that are not positive
    integers (None, 0, negative, wrong type) fall back to the factory default,
    and unknown ``error_messages`` keys are ignored.

Composition:
    optional(fragment)              Property may be omitted from its object
    object_of(properties, ...)      Object with ``required`` derived from optional()
    array_of(items, ...)            Array of one item schema
    union_of(*fragments)            Value must match at least one fragment
    different_values(a, b)          Field a must differ from field b
    conditional_required(...)       Field becomes required when conditions hold
    dependency_chain(rules)         Several conditional_required rules, ANDed

Usage:
    >>> from schema import builders as v
    >>> CREATE_USER = v.object_of({
    ...     "name": v.name(max_length=100),
    ...     "email": v.email(),
    ...     "phone": v.optional(v.phone()),
    ... }, additional_properties=False)
"""
import enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from schema.fragment import SchemaFragment, freeze, is_optional

Messages = Optional[Mapping[str, str]]


class DescriptionType(str, enum.Enum):
    """Length classes for free-text fields."""

    SUMMARY = "summary"  # titles
    DETAILED = "detailed"  # ticket details
    COMMENT = "comment"  # replies
    NOTE = "note"  # internal notes
    LABEL = "label"  # very short labels


DESCRIPTION_LIMITS: Dict[DescriptionType, Dict[str, int]] = {
    DescriptionType.SUMMARY: {"min": 2, "max": 255},
    DescriptionType.DETAILED: {"min": 2, "max": 3000},
    DescriptionType.COMMENT: {"min": 2, "max": 1000},
    DescriptionType.NOTE: {"min": 2, "max": 500},
    DescriptionType.LABEL: {"min": 2, "max": 50},
}

# Regular patterns shared by several builders
UUID_PATTERN = "[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"
PHONE_PATTERN = r"^[+]?[(]?[0-9]{3}[)]?[-\s.]?[0-9]{3}[-\s.]?[0-9]{4,6}$"
NAME_PATTERN = r"^[a-zA-Z0-9\-_ ]+$"
DESCRIPTION_PATTERN = r'^[\w\s.,!?()"-]+$'
SEARCH_PATTERN = r"^[a-zA-Z0-9_\s,!?*\-]+$"
STRING_ITEM_PATTERN = r"^[a-zA-Z0-9\s_-]+$"
MIME_TYPE_PATTERN = r"^[a-z0-9!#$%&'*+\-.^_`|~]+/[a-z0-9!#$%&'*+\-.^_`|~]+$"
ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
STRICT_DATE_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])$"
TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d(?::[0-5]\d)?$"
DURATION_PATTERN = r"^(?!.*([wWdDhHmM]).*\1)\d+[wWdDhHmM](\s*\d+[wWdDhHmM])*$"
HEX_COLOR_PATTERN = r"^#([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6}|[0-9A-Fa-f]{8})$"
UNIX_TIMESTAMP_PATTERN = r"^[1-9]\d{9,12}$"
SEMVER_PATTERN = r"^\d+\.\d+\.\d+$"
INTEGER_VERSION_PATTERN = r"^\d+$"
OWNERSHIP_TYPES = ("assigned:me", "created:me")
OWNERSHIP_PATTERN = f"^({'|'.join(OWNERSHIP_TYPES)}|created:{UUID_PATTERN})$"
_PICTOGRAPH = (
    "[\\u00a9\\u00ae\\u203c\\u2049\\u2122\\u2139\\u2194-\\u21aa\\u231a-\\u23ff"
    "\\u24c2\\u25aa-\\u27bf\\u2934\\u2935\\u2b05-\\u2b55\\u3030\\u303d\\u3297\\u3299"
    "\\U0001F000-\\U0001FAFF]"
)
# One emoji: a pictograph with optional modifiers/ZWJ sequences/tags, or a flag pair
EMOJI_PATTERN = (
    f"^(?:{_PICTOGRAPH}"
    "(?:[\\U0001F3FB-\\U0001F3FF]|\\uFE0F|\\u20E3"
    f"|\\u200D{_PICTOGRAPH}"
    "|[\\U000E0020-\\U000E007F])*"
    "|[\\U0001F1E6-\\U0001F1FF]{2})$"
)

DEFAULT_FILTER_OPERATORS = ("eq", "neq", "gt", "gte", "lt", "lte", "in", "nin", "like", "between")
DEFAULT_CUSTOM_FIELD_TYPES = ("text", "number", "select", "multiselect", "date", "checkbox")

_CONSTRAINT_KEYS = {
    "min_length": "minLength",
    "max_length": "maxLength",
    "pattern": "pattern",
    "format": "format",
    "minimum": "minimum",
    "maximum": "maximum",
    "exclusive_minimum": "exclusiveMinimum",
    "exclusive_maximum": "exclusiveMaximum",
    "multiple_of": "multipleOf",
    "enum": "enum",
    "const": "const",
    "min_items": "minItems",
    "max_items": "maxItems",
    "unique_items": "uniqueItems",
    "default": "default",
    "description": "description",
}


# =============================================================================
# Internal helpers
# =============================================================================

def _bound(value: Any, default: Optional[int] = None) -> Optional[int]:
    """Return ``value`` if it is a positive int, else ``default``."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return default
    return value


def _messages(defaults: Mapping[str, Optional[str]], overrides: Messages,
              aliases: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Merge default constraint messages with caller overrides.

    Args:
        defaults: Constraint keyword -> default text (None entries dropped)
        overrides: Caller supplied ``error_messages``
        aliases: Maps an override key onto the constraint keyword it
            controls, e.g. ``{"items": "isNotEmpty"}``

    Returns:
        Final ``errorMessage`` mapping for the fragment
    """
    merged = {key: text for key, text in defaults.items() if text}
    if not isinstance(overrides, Mapping):
        return merged
    aliases = aliases or {}
    for key, text in overrides.items():
        if not isinstance(text, str) or not text:
            continue
        target = aliases.get(key, key)
        if target in merged:
            merged[target] = text
    return merged


def _node(kind: Optional[str], messages: Optional[Mapping[str, str]] = None,
          **constraints: Any) -> SchemaFragment:
    """Assemble a fragment, dropping constraints that are None."""
    node: Dict[str, Any] = {}
    if kind is not None:
        node["type"] = kind
    for key, value in constraints.items():
        if value is None:
            continue
        node[_CONSTRAINT_KEYS.get(key, key)] = value
    if messages:
        node["errorMessage"] = dict(messages)
    return freeze(node)


def _enum_values(enum_obj: Any) -> List[Any]:
    """Accept an Enum class, a mapping or an iterable of allowed values."""
    if isinstance(enum_obj, type) and issubclass(enum_obj, enum.Enum):
        return [member.value for member in enum_obj]
    if isinstance(enum_obj, Mapping):
        return list(enum_obj.values())
    if isinstance(enum_obj, (str, bytes)):
        return [enum_obj]
    try:
        return list(enum_obj)
    except TypeError:
        return []


def _joined(values: Iterable[Any]) -> str:
    return ", ".join(str(value) for value in values)


# =============================================================================
# Plain structural builders
# =============================================================================

def string(**constraints: Any) -> SchemaFragment:
    """String node; keyword arguments map to JSON Schema constraints."""
    messages = constraints.pop("error_messages", None)
    return _node("string", messages, **constraints)


def number(**constraints: Any) -> SchemaFragment:
    messages = constraints.pop("error_messages", None)
    return _node("number", messages, **constraints)


def integer(**constraints: Any) -> SchemaFragment:
    messages = constraints.pop("error_messages", None)
    return _node("integer", messages, **constraints)


def boolean(**constraints: Any) -> SchemaFragment:
    messages = constraints.pop("error_messages", None)
    return _node("boolean", messages, **constraints)


def null() -> SchemaFragment:
    return _node("null")


def unknown() -> SchemaFragment:
    """Accept any value."""
    return freeze({})


def array_of(items: Any, keywords: Iterable[str] = (), **constraints: Any) -> SchemaFragment:
    """Array whose every element matches ``items``.

    Args:
        items: Item fragment
        keywords: Custom keyword names to switch on for this array
            (e.g. ``("validateUniqueIds",)``)
        **constraints: min_items, max_items, unique_items, error_messages
    """
    messages = constraints.pop("error_messages", None)
    extra = {name: True for name in keywords}
    return _node("array", messages, items=items, **constraints, **extra)


def object_of(properties: Mapping[str, Any], additional_properties: Any = None,
              all_of: Optional[Sequence[Any]] = None, error_messages: Messages = None,
              keywords: Iterable[str] = (), **constraints: Any) -> SchemaFragment:
    """Object with the given properties.

    Every property is required unless its fragment was wrapped with
    optional(). ``all_of`` carries cross-field rules such as
    different_values() or dependency_chain().

    Example:
        >>> object_of({"a": string(), "b": optional(string())})["required"]
        ['a']
    """
    required = [key for key, fragment in properties.items() if not is_optional(fragment)]
    extra = {name: True for name in keywords}
    return _node(
        "object",
        error_messages,
        properties=dict(properties),
        required=required or None,
        additionalProperties=additional_properties,
        allOf=list(all_of) if all_of else None,
        **constraints,
        **extra,
    )


def union_of(*fragments: Any, **constraints: Any) -> SchemaFragment:
    """Value must match at least one of ``fragments``."""
    messages = constraints.pop("error_messages", None)
    return _node(None, messages, anyOf=list(fragments), **constraints)


def optional(fragment: Any) -> SchemaFragment:
    """Mark ``fragment`` as an optional property.

    The value is still validated when present.
    """
    return freeze(fragment, optional=True)


# =============================================================================
# Identifiers and contact data
# =============================================================================

def uuid(error_messages: Messages = None) -> SchemaFragment:
    """UUID string.

    Example:
        >>> user_id = uuid(error_messages={"format": "Please provide a valid user ID"})
    """
    messages = _messages({
        "type": "Please enter a valid ID",
        "format": "Must be a valid UUID",
    }, error_messages)
    return _node("string", messages, format="uuid")


def email(error_messages: Messages = None) -> SchemaFragment:
    messages = _messages({
        "type": "Please enter an email address",
        "format": "Must be a valid email address",
    }, error_messages)
    return _node("string", messages, format="email")


def phone(error_messages: Messages = None) -> SchemaFragment:
    """Phone number such as ``123-456-7890``, ``(123) 456 7890`` or ``+1234567890``."""
    messages = _messages({
        "type": "Please enter a phone number",
        "pattern": "Must be a valid phone number",
    }, error_messages)
    return _node("string", messages, pattern=PHONE_PATTERN)


def url(error_messages: Messages = None) -> SchemaFragment:
    messages = _messages({
        "type": "URL must be a string",
        "format": "Please enter a valid URL",
    }, error_messages)
    return _node("string", messages, format="uri")


def name(min_length: Optional[int] = None, max_length: Optional[int] = None,
         error_messages: Messages = None) -> SchemaFragment:
    """Name between ``min_length`` (default 2) and ``max_length`` (default 50).

    A character restriction (letters, digits, dash, underscore, space) is
    only enforced when the caller supplies a ``pattern`` message for it.
    """
    low = _bound(min_length, 2)
    high = _bound(max_length, 50)
    if high < low:
        high = None
    restrict = isinstance(error_messages, Mapping) and bool(error_messages.get("pattern"))
    messages = _messages({
        "type": "Please enter a name",
        "minLength": f"Name must be at least {low} characters",
        "maxLength": f"Name cannot exceed {high} characters" if high else None,
        "pattern": "Name contains invalid characters" if restrict else None,
    }, error_messages)
    return _node(
        "string",
        messages,
        min_length=low,
        max_length=high,
        pattern=NAME_PATTERN if restrict else None,
    )


def ownership(error_messages: Messages = None) -> SchemaFragment:
    """Ownership filter token: ``assigned:me``, ``created:me`` or ``created:<uuid>``."""
    messages = _messages({
        "type": "Ownership must be a string",
        "pattern": "Invalid ownership format. Must be exactly one of: "
                   "assigned:me, created:me, or created:<uuid>",
    }, error_messages)
    return _node("string", messages, pattern=OWNERSHIP_PATTERN)


# =============================================================================
# Free text
# =============================================================================

def description(description_type: Any = DescriptionType.DETAILED,
                min_length: Optional[int] = None, max_length: Optional[int] = None,
                allow_html: bool = False, skip_max_length: bool = False,
                error_messages: Messages = None) -> SchemaFragment:
    """Free-text description sized by its length class.

    Args:
        description_type: DescriptionType (or its value); unknown values fall
            back to DETAILED
        min_length: Overrides the class minimum
        max_length: Overrides the class maximum
        allow_html: When False the text is restricted to word characters,
            whitespace and basic punctuation
        skip_max_length: Drop the upper bound entirely
        error_messages: Overrides for type/minLength/maxLength/pattern

    Example:
        >>> summary = description(DescriptionType.SUMMARY)
        >>> summary["maxLength"]
        255
    """
    try:
        kind = DescriptionType(description_type)
    except ValueError:
        kind = DescriptionType.DETAILED
    limits = DESCRIPTION_LIMITS[kind]
    low = _bound(min_length, limits["min"])
    high = None if skip_max_length else _bound(max_length, limits["max"])
    if high is not None and high < low:
        high = limits["max"] if limits["max"] >= low else None
    messages = _messages({
        "type": "Description must be text",
        "minLength": f"Description must be at least {low} characters",
        "maxLength": f"Description cannot exceed {high} characters" if high else None,
        "pattern": None if allow_html else "Description contains invalid characters",
    }, error_messages)
    return _node(
        "string",
        messages,
        min_length=low,
        max_length=high,
        pattern=None if allow_html else DESCRIPTION_PATTERN,
    )


def search(min_length: Optional[int] = None, max_length: Optional[int] = None,
           allow_special_chars: bool = False, error_messages: Messages = None) -> SchemaFragment:
    """Search query string (default 1-255 characters)."""
    low = _bound(min_length, 1)
    high = _bound(max_length, 255)
    if high < low:
        high = 255 if low <= 255 else None
    messages = _messages({
        "type": "Please enter a search term",
        "minLength": f"Search query must be at least {low} characters",
        "maxLength": f"Search query cannot exceed {high} characters" if high else None,
        "pattern": None if allow_special_chars else "Search query contains invalid characters",
    }, error_messages)
    return _node(
        "string",
        messages,
        min_length=low,
        max_length=high,
        pattern=None if allow_special_chars else SEARCH_PATTERN,
    )


def pattern(regex: str, example: str = "", error_messages: Messages = None) -> SchemaFragment:
    """String matching a caller supplied regular expression.

    Example:
        >>> ticket = pattern(r"^TICKET-\\d{4}-\\w{2}$", example="TICKET-0001-AB")
    """
    hint = f"Invalid format (example: {example})" if example else "Invalid format"
    messages = _messages({"type": "Must be text", "pattern": hint}, error_messages)
    return _node("string", messages, pattern=regex)


def mime_type(error_messages: Messages = None) -> SchemaFragment:
    messages = _messages({
        "type": "MIME type should not be empty.",
        "pattern": "Please enter a valid MIME type (e.g., image/jpeg, application/pdf)",
        "minLength": "MIME type must be at least 2 characters",
        "maxLength": "MIME type cannot exceed 127 characters",
    }, error_messages)
    return _node("string", messages, pattern=MIME_TYPE_PATTERN, min_length=2, max_length=127)


def hex_color(error_messages: Messages = None) -> SchemaFragment:
    messages = _messages({
        "type": "Must be a string",
        "pattern": "Must be a valid hex color code (format: #RGB, #RRGGBB, or #RRGGBBAA)",
    }, error_messages)
    return _node("string", messages, pattern=HEX_COLOR_PATTERN)


def emoji(error_messages: Messages = None) -> SchemaFragment:
    messages = _messages({
        "type": "Must be an emoji",
        "pattern": "Please provide a single valid emoji",
    }, error_messages)
    return _node("string", messages, pattern=EMOJI_PATTERN)


def version(version_format: str = "integer", error_messages: Messages = None) -> SchemaFragment:
    """Version string, either ``semver`` (x.y.z) or ``integer`` (default)."""
    messages = _messages({
        "type": "Version must be text",
        "pattern": "Invalid version format",
    }, error_messages, aliases={"format": "pattern"})
    regex = SEMVER_PATTERN if version_format == "semver" else INTEGER_VERSION_PATTERN
    return _node("string", messages, pattern=regex)


def unix_timestamp(error_messages: Messages = None) -> SchemaFragment:
    """Unix timestamp as a string: 10 digits (seconds) or 13 digits (milliseconds).

    Leading zeros, signs and decimals are rejected, so "0123456789",
    "-1234567890" and "123.456" are all invalid.
    """
    messages = _messages({
        "type": "Must be a valid timestamp",
        "pattern": "Must be a valid Unix timestamp (10 digits for seconds or 13 digits for milliseconds)",
    }, error_messages)
    return _node("string", messages, pattern=UNIX_TIMESTAMP_PATTERN)


# =============================================================================
# Dates and times
# =============================================================================

def date(min_date: Optional[str] = None, max_date: Optional[str] = None,
         error_messages: Messages = None) -> SchemaFragment:
    """Calendar date in ``YYYY-MM-DD`` form with optional inclusive bounds."""
    messages = _messages({
        "type": "Must be a string",
        "format": "Must be a valid date (YYYY-MM-DD)",
        "pattern": "Must be in YYYY-MM-DD format",
        "formatMinimum": f"Date cannot be before {min_date}" if min_date else None,
        "formatMaximum": f"Date cannot be after {max_date}" if max_date else None,
    }, error_messages, aliases={"minimum": "formatMinimum", "maximum": "formatMaximum"})
    if isinstance(error_messages, Mapping) and error_messages.get("format"):
        messages["pattern"] = error_messages["format"]
    return _node(
        "string",
        messages,
        format="date",
        pattern=ISO_DATE_PATTERN,
        formatMinimum=min_date,
        formatMaximum=max_date,
    )


def date_range(min_date: Optional[str] = None, max_date: Optional[str] = None,
               default: Optional[str] = None, error_messages: Messages = None) -> SchemaFragment:
    """Strict ``YYYY-MM-DD`` date, month and day ranges checked by the pattern."""
    messages = _messages({
        "type": "Must be a date",
        "pattern": "Date must be in YYYY-MM-DD format",
        "minLength": "Invalid date format",
        "maxLength": "Invalid date format",
        "formatMinimum": f"Date cannot be before {min_date}" if min_date else None,
        "formatMaximum": f"Date cannot be after {max_date}" if max_date else None,
    }, error_messages, aliases={
        "format": "pattern",
        "minimum": "formatMinimum",
        "maximum": "formatMaximum",
    })
    return _node(
        "string",
        messages,
        pattern=STRICT_DATE_PATTERN,
        min_length=10,
        max_length=10,
        formatMinimum=min_date,
        formatMaximum=max_date,
        default=default,
    )


def time_range(min_time: Optional[str] = None, max_time: Optional[str] = None,
               error_messages: Messages = None) -> SchemaFragment:
    """Time of day ``HH:mm`` or ``HH:mm:ss`` with optional inclusive bounds.

    Example:
        >>> office_hours = time_range(min_time="09:00", max_time="17:00")
    """
    messages = _messages({
        "type": "Must be a time",
        "pattern": "Invalid time format (expected HH:mm or HH:mm:ss)",
        "formatMinimum": "Time is too early" if min_time else None,
        "formatMaximum": "Time is too late" if max_time else None,
    }, error_messages, aliases={
        "format": "pattern",
        "minimum": "formatMinimum",
        "maximum": "formatMaximum",
    })
    return _node(
        "string",
        messages,
        pattern=TIME_OF_DAY_PATTERN,
        formatMinimum=min_time,
        formatMaximum=max_time,
    )


def duration_format(default: str = "2h", error_messages: Messages = None) -> SchemaFragment:
    """Duration such as ``1w 2d`` or ``5h 30m``; each unit may appear once."""
    messages = _messages({
        "type": "Duration must be text",
        "pattern": "Please enter a valid duration (e.g., 1w 2d, 5h 30m). "
                   "Use w (weeks), d (days), h (hours), m (minutes)",
    }, error_messages)
    return _node("string", messages, pattern=DURATION_PATTERN, default=default or "2h")


# =============================================================================
# Enumerations
# =============================================================================

def enum_value(enum_obj: Any, default: Any = None, error_messages: Messages = None) -> SchemaFragment:
    """One value out of an Enum class, mapping or list.

    Supplying ``default`` makes the field optional.
    """
    values = _enum_values(enum_obj)
    listing = f"Must be one of: {_joined(values)}"
    messages = _messages({"type": listing, "enum": listing}, error_messages)
    messages["type"] = listing
    fragment = _node("string", messages, enum=values, default=default)
    return optional(fragment) if default is not None else fragment


def enum_array(enum_obj: Any, min_items: Optional[int] = None, max_items: Optional[int] = None,
               default: Any = None, error_messages: Messages = None) -> SchemaFragment:
    """Array of enum values."""
    values = _enum_values(enum_obj)
    listing = f"Must be one of: {_joined(values)}"
    item_messages = _messages({"type": listing, "enum": listing}, error_messages)
    item_messages["type"] = listing
    low = _bound(min_items)
    high = _bound(max_items)
    fragment = array_of(
        _node("string", item_messages, enum=values),
        min_items=low,
        max_items=high,
        error_messages=_messages({
            "type": "Must be an array",
            "minItems": f"Must select at least {low} items" if low else None,
            "maxItems": f"Cannot select more than {high} items" if high else None,
        }, None),
    )
    return optional(fragment) if default is not None else fragment


# =============================================================================
# Arrays
# =============================================================================

def string_array(min_items: Optional[int] = None, max_items: Optional[int] = None,
                 allow_special_chars: bool = False, error_messages: Messages = None) -> SchemaFragment:
    """Array of non-empty strings.

    The ``items`` override applies to both the emptiness check and the
    character restriction of each element.
    """
    low = _bound(min_items)
    high = _bound(max_items)
    item_messages = _messages({
        "type": "Must be an array of strings",
        "isNotEmpty": "Array items cannot be empty strings",
        "pattern": None if allow_special_chars else "Array items cannot contain special characters or be empty",
    }, error_messages)
    if isinstance(error_messages, Mapping) and error_messages.get("items"):
        item_messages["isNotEmpty"] = error_messages["items"]
        if not allow_special_chars:
            item_messages["pattern"] = error_messages["items"]
    item = _node(
        "string",
        item_messages,
        isNotEmpty=True,
        pattern=None if allow_special_chars else STRING_ITEM_PATTERN,
    )
    return array_of(
        item,
        min_items=low,
        max_items=high,
        error_messages=_messages({
            "type": "Must be an array of strings",
            "minItems": f"Must have at least {low} items" if low else None,
            "maxItems": f"Cannot exceed {high} items" if high else None,
        }, error_messages),
    )


def uuid_array(min_items: Optional[int] = None, max_items: Optional[int] = None,
               error_messages: Messages = None) -> SchemaFragment:
    """Array of UUID strings."""
    low = _bound(min_items)
    high = _bound(max_items)
    overrides = error_messages if isinstance(error_messages, Mapping) else {}
    item = uuid(error_messages={
        "format": overrides.get("items") or "Please enter a valid ID in UUID format",
    })
    return array_of(
        item,
        min_items=low,
        max_items=high,
        error_messages=_messages({
            "type": "Please provide a list of IDs",
            "minItems": f"Must select at least {low} items" if low else None,
            "maxItems": f"Cannot select more than {high} items" if high else None,
        }, error_messages),
    )


def object_array(item_schema: Any, min_items: Optional[int] = None, max_items: Optional[int] = None,
                 keywords: Iterable[str] = (), error_messages: Messages = None) -> SchemaFragment:
    """Array of objects matching ``item_schema``.

    Cross-item rules come from the custom keyword registry:

    Example:
        >>> targets = object_array(
        ...     SERVICE_LEVEL_TARGET,
        ...     keywords=("validateTimeRelation", "validateUniqueSeverityLevels"),
        ... )
    """
    low = _bound(min_items)
    high = _bound(max_items)
    return array_of(
        item_schema,
        keywords=keywords,
        min_items=low,
        max_items=high,
        error_messages=_messages({
            "type": "Must be an array",
            "minItems": f"Must have at least {low} items" if low else None,
            "maxItems": f"Cannot exceed {high} items" if high else None,
        }, error_messages),
    )


def unique_array(item_schema: Any, min_items: Optional[int] = None, max_items: Optional[int] = None,
                 error_messages: Messages = None) -> SchemaFragment:
    """Array whose items must all be distinct."""
    low = _bound(min_items)
    high = _bound(max_items)
    return array_of(
        item_schema,
        unique_items=True,
        min_items=low,
        max_items=high,
        error_messages=_messages({
            "type": "Must be an array",
            "uniqueItems": "Duplicate values are not allowed",
            "minItems": f"Must have at least {low} items" if low else None,
            "maxItems": f"Cannot exceed {high} items" if high else None,
        }, error_messages, aliases={"unique": "uniqueItems"}),
    )


def query_filter(allowed_fields: Optional[Sequence[str]] = None,
                 allowed_operators: Optional[Sequence[str]] = None,
                 max_filters: Optional[int] = None, error_messages: Messages = None) -> SchemaFragment:
    """List of ``{field, operator, value}`` filter clauses."""
    overrides = error_messages if isinstance(error_messages, Mapping) else {}
    operators = list(allowed_operators or DEFAULT_FILTER_OPERATORS)
    limit = _bound(max_filters, 10)
    if allowed_fields:
        field = string(enum=list(allowed_fields), error_messages={
            "enum": overrides.get("invalidField") or f"Field must be one of: {_joined(allowed_fields)}",
        })
    else:
        field = string(error_messages={"type": "Filter field must be a string"})
    operator = string(enum=operators, error_messages={
        "enum": overrides.get("invalidOperator") or f"Operator must be one of: {_joined(operators)}",
    })
    value = union_of(
        string(), number(), boolean(), array_of(union_of(string(), number())), null(),
    )
    clause = object_of({"field": field, "operator": operator, "value": value})
    return array_of(
        clause,
        max_items=limit,
        error_messages={
            "type": overrides.get("type") or "Filters must be an array",
            "maxItems": overrides.get("maxFilters") or f"Cannot exceed {limit} filters",
        },
    )


def custom_field(max_fields: Optional[int] = None, allowed_types: Optional[Sequence[str]] = None,
                 error_messages: Messages = None) -> SchemaFragment:
    """List of user-defined field definitions."""
    limit = _bound(max_fields, 50)
    definition = object_of({
        "name": string(min_length=1, max_length=50),
        "type": string(enum=list(allowed_types or DEFAULT_CUSTOM_FIELD_TYPES)),
        "required": optional(boolean()),
        "options": optional(array_of(string())),
        "defaultValue": optional(union_of(string(), number(), boolean(), array_of(string()))),
    })
    return array_of(
        definition,
        max_items=limit,
        error_messages=_messages({
            "type": "Custom fields must be an array",
            "maxItems": f"Cannot exceed {limit} custom fields",
        }, error_messages),
    )


# =============================================================================
# Cross-field composition
# =============================================================================

def different_values(field_a: str, field_b: str, error_message: Optional[str] = None) -> SchemaFragment:
    """Require ``field_a`` and ``field_b`` to hold different strings.

    The rule only applies when both fields are present strings; the value of
    ``field_b`` is looked up on the same object at validation time.

    Example:
        >>> object_of(
        ...     {"startDate": string(), "endDate": string()},
        ...     all_of=[different_values("startDate", "endDate")],
        ... )
    """
    return freeze({
        "if": {
            "type": "object",
            "properties": {field_a: {"type": "string"}, field_b: {"type": "string"}},
            "required": [field_a, field_b],
        },
        "then": {"fieldsDiffer": [field_a, field_b]},
        "errorMessage": error_message or f"{field_a} and {field_b} must have different values",
    })


def _condition(spec: Any) -> Dict[str, Any]:
    if isinstance(spec, Mapping):
        if spec.get("exists"):
            return {"type": "string"}
        return {key: value for key, value in spec.items() if key in ("const", "enum")}
    if spec == "*":
        return {"type": "string"}
    if isinstance(spec, (list, tuple, set, frozenset)):
        return {"enum": list(spec)}
    return {"const": spec}


def conditional_required(field: str, conditions: Mapping[str, Any],
                         error_message: Optional[str] = None) -> SchemaFragment:
    """Make ``field`` required when every condition holds.

    Each condition is ``{"exists": True}``, ``{"const": value}``,
    ``{"enum": [...]}``, a list of allowed values or ``"*"``.

    Example:
        >>> conditional_required(
        ...     "serviceLevelTargets",
        ...     {"policyType": {"const": "sla"}},
        ...     "Service level targets are required for SLA policies",
        ... )
    """
    return freeze({
        "if": {
            "properties": {key: _condition(spec) for key, spec in conditions.items()},
            "required": list(conditions),
        },
        "then": {"required": [field]},
        "errorMessage": {
            "required": {
                field: error_message or f"{field} is required when specified conditions are met",
            },
        },
    })


def _allowed_values(allowed: Any) -> List[Any]:
    if isinstance(allowed, (list, tuple, set, frozenset)):
        return list(allowed)
    return [allowed]


def dependency_chain(rules: Sequence[Mapping[str, Any]]) -> SchemaFragment:
    """AND of conditional requirements.

    Args:
        rules: Items of the form
            ``{"field": "level2", "dependsOn": {"level1": ["A", "B"]}, "errorMessage": "..."}``
            where each dependsOn value is a list of allowed values or ``"*"``
            (any string).

    Returns:
        Fragment with one ``if``/``then`` clause per rule under ``allOf``
    """
    clauses = []
    for rule in rules:
        field = rule.get("field")
        depends_on = rule.get("dependsOn") or rule.get("depends_on") or {}
        if not field or not isinstance(depends_on, Mapping):
            continue
        message = rule.get("errorMessage") or rule.get("error_message")
        clauses.append({
            "if": {
                "type": "object",
                "properties": {
                    key: {"type": "string"} if allowed == "*" else {"enum": _allowed_values(allowed)}
                    for key, allowed in depends_on.items()
                },
                "required": list(depends_on),
            },
            "then": {"required": [field]},
            "errorMessage": {
                "required": {field: message or f"{field} is required based on dependencies"},
            },
        })
    return freeze({"allOf": clauses})


# selectedValue shape per fieldType; (description, schema factory)
_SELECTED_VALUE_SHAPES = {
    "label": ("an array of strings", lambda msg: array_of(string(), error_messages={"type": msg})),
    "dropdown": ("an array of strings", lambda msg: array_of(string(), error_messages={"type": msg})),
    "text": ("a string", lambda msg: string(error_messages={"type": msg})),
    "textarea": ("a string", lambda msg: string(error_messages={"type": msg})),
    "date": ("a number", lambda msg: number(error_messages={"type": msg})),
    "number": ("a number", lambda msg: number(error_messages={"type": msg})),
    "files": ("an array of UUIDs", lambda msg: array_of(
        string(format="uuid", error_messages={"type": msg, "format": msg}),
        error_messages={"type": msg},
    )),
    "people": ("an array of UUIDs", lambda msg: array_of(
        string(format="uuid", error_messages={"type": msg, "format": msg}),
        error_messages={"type": msg},
    )),
}


def field_definition_validation(field_type_enum: Any, error_messages: Messages = None) -> SchemaFragment:
    """Custom field value whose ``selectedValue`` shape depends on ``fieldType``.

    One ``if``/``then`` branch exists per discriminator value:

        label, dropdown   -> array of strings
        text, textarea    -> string
        date, number      -> number
        files, people     -> array of UUIDs

    ``selectedValue`` itself is optional; a branch only constrains it when
    present.
    """
    overrides = error_messages if isinstance(error_messages, Mapping) else {}
    values = _enum_values(field_type_enum)
    branches = []
    for field_type, (shape, factory) in _SELECTED_VALUE_SHAPES.items():
        message = overrides.get("invalidSelectedValue") or \
            f"Selected value for {field_type} fields must be {shape}"
        branches.append({
            "if": {"properties": {"fieldType": {"enum": [field_type]}}, "required": ["fieldType"]},
            "then": {
                "properties": {"selectedValue": factory(message)},
                "errorMessage": {"properties": {"selectedValue": message}},
            },
        })
    field_type = enum_value(values, error_messages={
        "enum": f"Invalid field type. Must be one of: {_joined(values)}",
    })
    if overrides.get("invalidFieldType"):
        field_type = _node("string", {
            "type": overrides["invalidFieldType"],
            "enum": f"Invalid field type. Must be one of: {_joined(values)}",
        }, enum=values)
    return object_of(
        {
            "customFieldDefinitionId": uuid(),
            "fieldType": field_type,
            "selectedValue": optional(unknown()),
        },
        all_of=branches,
    )
