"""
Immutable Schema Fragments.

A schema fragment is a JSON Schema (Draft 7) node expressed as a read-only
mapping. Fragments are built once, at module import time, by the factories in
schema.builders and then shared by every request that validates against them.

Design Principles:
    1. Read Only: Any attempt to mutate a fragment, or an array inside one,
       raises TypeError
    2. Plain Shape: A fragment IS a dict, so jsonschema and json.dumps accept it
    3. Identity Matters: The compiled-validator cache keys on the fragment
       object itself, never on its contents

The ``optional`` flag lives on the object, not in the mapping. It is read by
schema.builders.object_of() when computing the ``required`` list and is never
seen by the validator.

Example:
    >>> frag = freeze({"type": "string", "minLength": 2})
    >>> frag["minLength"]
    2
    >>> frag["minLength"] = 3
    TypeError: SchemaFragment is immutable
"""
from typing import Any, Mapping


class SchemaFragment(dict):
    """Read-only JSON Schema node.

    Attributes:
        optional: True when the fragment was wrapped with optional(); an
            object builder then leaves the property out of ``required``.
    """

    def __init__(self, *args: Any, optional: bool = False, **kwargs: Any) -> None:
        dict.__init__(self, *args, **kwargs)
        self.optional = optional

    def _immutable(self, *args: Any, **kwargs: Any) -> None:
        raise TypeError("SchemaFragment is immutable")

    __setitem__ = _immutable
    __delitem__ = _immutable
    __ior__ = _immutable
    clear = _immutable
    pop = _immutable
    popitem = _immutable
    setdefault = _immutable
    update = _immutable

    # Identity semantics: two equal-looking fragments are still two fragments.
    __hash__ = object.__hash__

    def __reduce__(self):
        return (_rebuild, (dict(self), self.optional))

    def __repr__(self) -> str:
        marker = "optional " if self.optional else ""
        return f"<{marker}SchemaFragment {dict.__repr__(self)}>"


def _rebuild(items: dict, optional: bool) -> "SchemaFragment":
    return SchemaFragment(items, optional=optional)


class FrozenList(list):
    """Read-only JSON array inside a fragment.

    Still a list, so the Draft 7 ``array`` type check and json.dumps accept it.
    """

    def _immutable(self, *args: Any, **kwargs: Any) -> None:
        raise TypeError("FrozenList is immutable")

    __setitem__ = _immutable
    __delitem__ = _immutable
    __iadd__ = _immutable
    __imul__ = _immutable
    append = _immutable
    extend = _immutable
    insert = _immutable
    remove = _immutable
    pop = _immutable
    clear = _immutable
    sort = _immutable
    reverse = _immutable

    __hash__ = object.__hash__

    def __reduce__(self):
        return (FrozenList, (list(self),))


def freeze(value: Any, optional: bool = False) -> Any:
    """Recursively convert a JSON-like value into fragments.

    Nested mappings become SchemaFragment instances; existing fragments are
    kept as-is so that composed schemas share their children by reference.
    Lists and tuples become FrozenList instances because the Draft 7
    meta-schema only accepts JSON arrays.

    Args:
        value: Mapping, sequence or scalar taken from a builder
        optional: Flag for the returned top-level fragment

    Returns:
        The frozen value
    """
    if isinstance(value, SchemaFragment):
        if optional and not value.optional:
            return SchemaFragment(value, optional=True)
        return value
    if isinstance(value, Mapping):
        return SchemaFragment(
            {key: freeze(item) for key, item in value.items()},
            optional=optional,
        )
    if isinstance(value, (list, tuple)):
        return FrozenList(freeze(item) for item in value)
    return value


def is_optional(fragment: Any) -> bool:
    """Return True if ``fragment`` was marked optional."""
    return bool(getattr(fragment, "optional", False))
