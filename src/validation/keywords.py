"""
Custom Keyword Registry.

Named predicates for rules that plain structural typing cannot express:
uniqueness across array items, sequential ordering, time relationships and
sibling references. Each keyword is bound to the node kind it inspects and to
a fixed default error message.

The registry is an immutable table built once at startup and handed to the
compiler (see validation.compiler.build_validator_class). Adding a keyword
means building a new registry with ``extend()``; nothing is registered on a
live engine.

Predicate Contract:
    predicate(keyword_value, instance) -> bool

    - ``keyword_value`` is the value of the keyword in the schema node
      (usually True, a bound, or a list of field names)
    - ``instance`` is the whole array/object/string node
    - Predicates are pure and never raise; a collection with 0 or 1 items is
      always valid

Example:
    >>> registry = DEFAULT_KEYWORDS.extend(
    ...     CustomKeyword("validateUniqueSlugs", "array", unique_by("slug"), "Slugs must be unique"),
    ... )
"""
import datetime
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterable, Iterator, List, Mapping, Optional

Predicate = Callable[[Any, Any], bool]

MINUTES_PER_UNIT = {
    "minutes": 1,
    "hours": 60,
    "days": 24 * 60,
    "months": 30 * 24 * 60,  # a month counts as 30 days
}

TIME_OF_DAY_RE = re.compile(r"(\d{1,2}):(\d{2})(?::(\d{2}))?")
FUTURE_DATE_RE = re.compile(r"(\d{1,2})-(\d{1,2})-(\d{4})")

_MISSING = object()


@dataclass(frozen=True)
class CustomKeyword:
    """One named predicate.

    Attributes:
        name: Schema keyword that activates the predicate
        applies_to: JSON type the node must have ("string", "array", "object")
        predicate: Pure function returning True when the node is valid
        default_message: Text reported on failure
    """

    name: str
    applies_to: str
    predicate: Predicate
    default_message: str


class KeywordRegistry:
    """Immutable name -> CustomKeyword table."""

    def __init__(self, keywords: Iterable[CustomKeyword] = ()) -> None:
        table = {}
        for keyword in keywords:
            if keyword.name in table:
                raise ValueError(f"Duplicate custom keyword: {keyword.name}")
            table[keyword.name] = keyword
        self._table = MappingProxyType(table)

    def __iter__(self) -> Iterator[CustomKeyword]:
        return iter(self._table.values())

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, name: object) -> bool:
        return name in self._table

    def __getitem__(self, name: str) -> CustomKeyword:
        return self._table[name]

    @property
    def names(self) -> Mapping[str, CustomKeyword]:
        return self._table

    def extend(self, *keywords: CustomKeyword) -> "KeywordRegistry":
        """Return a new registry holding these keywords plus ``keywords``."""
        return KeywordRegistry(list(self) + list(keywords))


# =============================================================================
# Predicate helpers
# =============================================================================

def _field(item: Any, key: str, default: Any = None) -> Any:
    if isinstance(item, Mapping):
        return item.get(key, default)
    return default


def _all_distinct(keys: List[Any]) -> bool:
    try:
        return len(set(keys)) == len(keys)
    except TypeError:
        # unhashable keys (lists, dicts): pairwise comparison
        return not any(keys[i] == keys[j] for i in range(len(keys)) for j in range(i))


def unique_by(key: str, normalize: Optional[Callable[[Any], Any]] = None) -> Predicate:
    """Build a predicate checking that ``item[key]`` is unique across an array."""

    def predicate(keyword_value: Any, items: Any) -> bool:
        if not isinstance(items, list) or len(items) < 2:
            return True
        keys = [_field(item, key) for item in items]
        if normalize is not None:
            keys = [normalize(value) for value in keys]
        return _all_distinct(keys)

    return predicate


def _casefold(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def sequential_orders(keyword_value: Any, items: Any) -> bool:
    """``order`` values must read 1, 2, 3... in array order (no sorting)."""
    if not isinstance(items, list) or len(items) < 2:
        return True
    orders = [_field(item, "order") for item in items]
    if orders[0] != 1 or isinstance(orders[0], bool):
        return False
    for previous, current in zip(orders, orders[1:]):
        if isinstance(current, bool) or not isinstance(current, (int, float)):
            return False
        if current != previous + 1:
            return False
    return True


def to_minutes(value: Any, unit: Any) -> Optional[float]:
    """Convert a duration to minutes; unknown units count as minutes."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    factor = MINUTES_PER_UNIT.get(unit.lower(), 1) if isinstance(unit, str) else 1
    return value * factor


def resolve_after_respond(keyword_value: Any, targets: Any) -> bool:
    """Every target must resolve strictly later than it responds."""
    if not isinstance(targets, list):
        return True
    for target in targets:
        resolve = to_minutes(_field(target, "resolveWithinValue"), _field(target, "resolveWithinUnit"))
        respond = to_minutes(_field(target, "respondWithinValue"), _field(target, "respondWithinUnit"))
        if resolve is None or respond is None:
            continue
        if resolve <= respond:
            return False
    return True


def minute_of_day(value: str) -> Optional[int]:
    """``HH:MM`` or ``HH:MM:SS`` -> minutes since midnight (seconds ignored)."""
    match = TIME_OF_DAY_RE.fullmatch(value.strip())
    if match is None:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def start_before_end(keyword_value: Any, node: Any) -> bool:
    start = _field(node, "startTime")
    end = _field(node, "endTime")
    if not start or not end:
        return True
    if not isinstance(start, str) or not isinstance(end, str):
        return False
    start_minutes = minute_of_day(start)
    end_minutes = minute_of_day(end)
    if start_minutes is None or end_minutes is None:
        return False
    return start_minutes < end_minutes


def not_in_past(keyword_value: Any, value: str) -> bool:
    """``MM-DD-YYYY`` date must be today or later (local calendar day)."""
    match = FUTURE_DATE_RE.fullmatch(value.strip())
    if match is None:
        return False
    month, day, year = (int(part) for part in match.groups())
    try:
        parsed = datetime.date(year, month, day)
    except ValueError:
        return False
    return parsed >= datetime.date.today()


def not_blank(keyword_value: Any, value: str) -> bool:
    return len(value.strip()) > 0


def always(keyword_value: Any, value: Any) -> bool:
    return True


def bound_key(value: Any) -> Any:
    """Comparable key for a time-of-day or ISO date string, else None."""
    if not isinstance(value, str):
        return None
    minutes = TIME_OF_DAY_RE.fullmatch(value)
    if minutes is not None:
        seconds = int(minutes.group(3) or 0)
        return ("time", int(minutes.group(1)) * 3600 + int(minutes.group(2)) * 60 + seconds)
    try:
        return ("date", datetime.date.fromisoformat(value))
    except ValueError:
        return None


def _bounded(compare: Callable[[Any, Any], bool]) -> Predicate:
    def predicate(bound: Any, value: str) -> bool:
        value_key, bound_value_key = bound_key(value), bound_key(bound)
        if value_key is None or bound_value_key is None or value_key[0] != bound_value_key[0]:
            # unparseable input is reported by the pattern/format keywords
            return True
        return compare(value_key[1], bound_value_key[1])

    return predicate


def sibling(name: str) -> Callable[[Any], Any]:
    """Getter reading field ``name`` from the object being validated."""

    def get(node: Any) -> Any:
        return _field(node, name, _MISSING)

    return get


def fields_differ(fields: Any, node: Any) -> bool:
    """The first field must not equal the current value of the second."""
    if not isinstance(fields, list) or len(fields) != 2:
        return True
    own, other = sibling(fields[0]), sibling(fields[1])
    left, right = own(node), other(node)
    if left is _MISSING or right is _MISSING:
        return True
    return left != right


DEFAULT_KEYWORDS = KeywordRegistry([
    CustomKeyword("validateUniqueIds", "array", unique_by("id"), "IDs must be unique"),
    CustomKeyword("validateUniqueNames", "array", unique_by("name"), "Names must be unique"),
    CustomKeyword("validateUniquePositions", "array", unique_by("position"), "Positions must be unique"),
    CustomKeyword("validateUniqueTicketIds", "array", unique_by("ticketId"), "Ticket IDs must be unique"),
    CustomKeyword("validateUniquePolicyIds", "array", unique_by("policyId"), "Policy IDs must be unique"),
    CustomKeyword(
        "validateUniqueEscalationOrders", "array", unique_by("escalationOrder"),
        "Escalation orders must be unique",
    ),
    CustomKeyword(
        "validateUniqueSeverityLevels", "array", unique_by("severity"),
        "Service level targets must have unique severity levels",
    ),
    CustomKeyword(
        "validateUniqueFieldOptionNames", "array", unique_by("name", _casefold),
        "Field options must have unique names (case insensitive)",
    ),
    CustomKeyword(
        "validateFieldOptionOrders", "array", sequential_orders,
        "Field option orders must be in sequence starting from 1 (e.g., 1,2,3...)",
    ),
    CustomKeyword(
        "validateTimeRelation", "array", resolve_after_respond,
        "Resolution time must be strictly greater than response time for each severity level",
    ),
    CustomKeyword("validateTimeRange", "object", start_before_end, "Start time must be before end time"),
    CustomKeyword("validateFutureDate", "string", not_in_past, "Holiday date cannot be in the past"),
    CustomKeyword("isNotEmpty", "string", not_blank, "should not be empty"),
    CustomKeyword("allowEmpty", "string", always, "should be a string"),
    CustomKeyword("formatMinimum", "string", _bounded(lambda value, bound: value >= bound), "must be >= the minimum"),
    CustomKeyword("formatMaximum", "string", _bounded(lambda value, bound: value <= bound), "must be <= the maximum"),
    CustomKeyword("fieldsDiffer", "object", fields_differ, "fields must have different values"),
])
