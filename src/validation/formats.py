"""
String Format Checks.

A dedicated jsonschema FormatChecker with exact-match regular patterns for the
formats the contracts rely on. The library's stock checkers are deliberately
not used: several of them are lenient (``email`` only looks for an "@") or
depend on optional packages (``uri``).

Non-string values always pass; the ``type`` keyword reports those.
"""
import datetime
import re

from jsonschema import FormatChecker

UUID_RE = re.compile(
    r"(?:urn:uuid:)?[0-9a-f]{8}-(?:[0-9a-f]{4}-){3}[0-9a-f]{12}", re.IGNORECASE
)
EMAIL_RE = re.compile(
    r"[a-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[a-z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"@(?:[a-z0-9](?:[a-z0-9-]*[a-z0-9])?\.)+[a-z0-9](?:[a-z0-9-]*[a-z0-9])?",
    re.IGNORECASE,
)
URI_RE = re.compile(r"[a-z][a-z0-9+.\-]*:(?://[^\s/?#]+)?[^\s]*", re.IGNORECASE)
DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
TIME_RE = re.compile(
    r"([01]\d|2[0-3]):([0-5]\d):([0-5]\d|60)(?:\.\d+)?(?:z|[+-](?:[01]\d|2[0-3]):?[0-5]\d)?",
    re.IGNORECASE,
)

FORMAT_CHECKER = FormatChecker(())


@FORMAT_CHECKER.checks("uuid")
def is_uuid(instance) -> bool:
    if not isinstance(instance, str):
        return True
    return UUID_RE.fullmatch(instance) is not None


@FORMAT_CHECKER.checks("email")
def is_email(instance) -> bool:
    if not isinstance(instance, str):
        return True
    return EMAIL_RE.fullmatch(instance) is not None


@FORMAT_CHECKER.checks("uri")
def is_uri(instance) -> bool:
    if not isinstance(instance, str):
        return True
    return URI_RE.fullmatch(instance) is not None


@FORMAT_CHECKER.checks("date")
def is_date(instance) -> bool:
    """``YYYY-MM-DD`` naming a real calendar day."""
    if not isinstance(instance, str):
        return True
    match = DATE_RE.fullmatch(instance)
    if match is None:
        return False
    year, month, day = (int(part) for part in match.groups())
    try:
        datetime.date(year, month, day)
    except ValueError:
        return False
    return True


@FORMAT_CHECKER.checks("time")
def is_time(instance) -> bool:
    if not isinstance(instance, str):
        return True
    return TIME_RE.fullmatch(instance) is not None


@FORMAT_CHECKER.checks("date-time")
def is_date_time(instance) -> bool:
    if not isinstance(instance, str):
        return True
    parts = re.split(r"[tT ]", instance, maxsplit=1)
    if len(parts) != 2:
        return False
    return is_date(parts[0]) and is_time(parts[1])
