"""
Unit Tests for Immutable Schema Fragments.
"""
import copy
import json
import pickle

import pytest

from schema import builders as v
from schema.fragment import FrozenList, SchemaFragment, freeze, is_optional


def test_freeze_converts_nested_mappings():
    frag = freeze({"type": "object", "properties": {"a": {"type": "string"}}})

    assert isinstance(frag, SchemaFragment)
    assert isinstance(frag["properties"], SchemaFragment)
    assert isinstance(frag["properties"]["a"], SchemaFragment)


def test_fragment_refuses_mutation():
    frag = freeze({"type": "string", "minLength": 2})

    with pytest.raises(TypeError):
        frag["minLength"] = 3
    with pytest.raises(TypeError):
        del frag["type"]
    with pytest.raises(TypeError):
        frag.update({"maxLength": 4})
    with pytest.raises(TypeError):
        frag.pop("type")
    with pytest.raises(TypeError):
        frag.setdefault("format", "email")
    with pytest.raises(TypeError):
        frag.clear()

    assert frag == {"type": "string", "minLength": 2}


def test_fragment_arrays_refuse_mutation():
    frag = v.object_of({"a": v.string()})
    required = frag["required"]

    assert isinstance(required, FrozenList)
    with pytest.raises(TypeError):
        required.append("b")
    with pytest.raises(TypeError):
        required.extend(["b"])
    with pytest.raises(TypeError):
        required[0] = "b"
    with pytest.raises(TypeError):
        del required[0]
    with pytest.raises(TypeError):
        required.sort()
    with pytest.raises(TypeError):
        required += ["b"]

    assert frag["required"] == ["a"]


def test_nested_arrays_are_frozen():
    frag = freeze({"anyOf": [{"enum": ["x", "y"]}, {"type": "null"}]})

    assert isinstance(frag["anyOf"], FrozenList)
    assert isinstance(frag["anyOf"][0]["enum"], FrozenList)
    with pytest.raises(TypeError):
        frag["anyOf"][0]["enum"].insert(0, "z")


def test_fragment_is_plain_json():
    frag = freeze({"type": "array", "items": ({"type": "string"},)})

    assert json.loads(json.dumps(frag)) == {"type": "array", "items": [{"type": "string"}]}
    assert isinstance(frag["items"], list)


def test_existing_fragments_are_shared_by_reference():
    child = freeze({"type": "string"})
    parent = freeze({"type": "object", "properties": {"a": child}})

    assert parent["properties"]["a"] is child


def test_optional_flag_lives_outside_mapping():
    frag = freeze({"type": "string"})
    marked = freeze(frag, optional=True)

    assert not is_optional(frag)
    assert is_optional(marked)
    assert "optional" not in marked
    assert marked == frag
    assert marked is not frag


def test_fragments_hash_by_identity():
    a = freeze({"type": "string"})
    b = freeze({"type": "string"})

    assert a == b
    assert len({a, b}) == 2


def test_fragment_survives_pickle_and_deepcopy():
    frag = freeze({"type": "string"}, optional=True)

    restored = pickle.loads(pickle.dumps(frag))
    copied = copy.deepcopy(frag)

    assert restored == frag and is_optional(restored)
    assert copied == frag and is_optional(copied)


def test_frozen_arrays_survive_pickle_and_deepcopy():
    frag = freeze({"enum": ["a", "b"]})

    restored = pickle.loads(pickle.dumps(frag))
    copied = copy.deepcopy(frag)

    for clone in (restored, copied):
        assert clone["enum"] == ["a", "b"]
        assert isinstance(clone["enum"], FrozenList)
