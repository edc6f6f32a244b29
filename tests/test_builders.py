"""
Unit Tests for Schema Builders.

Builders are checked two ways: the shape of the fragment they return (bounds
and embedded messages) and, where it matters, the behavior of the fragment
when validated by the engine.
"""
import enum

import pytest

from schema import builders as v
from schema.fragment import SchemaFragment, is_optional


class Priority(str, enum.Enum):
    LOW = "low"
    HIGH = "high"


def _messages(result):
    return [error.message for error in result.errors or []]


# =============================================================================
# Shapes and defaults
# =============================================================================

def test_name_defaults_interpolate_bounds():
    frag = v.name()

    assert isinstance(frag, SchemaFragment)
    assert frag["minLength"] == 2
    assert frag["maxLength"] == 50
    assert frag["errorMessage"]["minLength"] == "Name must be at least 2 characters"
    assert frag["errorMessage"]["maxLength"] == "Name cannot exceed 50 characters"
    assert "pattern" not in frag


@pytest.mark.parametrize("bad", [0, -3, "10", None, True])
def test_invalid_bounds_fall_back_to_defaults(bad):
    frag = v.name(min_length=bad)

    assert frag["minLength"] == 2


def test_caller_overrides_replace_default_text():
    frag = v.name(max_length=100, error_messages={"maxLength": "Too long"})

    assert frag["maxLength"] == 100
    assert frag["errorMessage"]["maxLength"] == "Too long"


def test_unknown_override_keys_are_ignored():
    frag = v.email(error_messages={"banana": "nope"})

    assert "banana" not in frag["errorMessage"]


def test_name_pattern_only_with_pattern_message():
    frag = v.name(error_messages={"pattern": "Letters only"})

    assert frag["pattern"] == v.NAME_PATTERN
    assert frag["errorMessage"]["pattern"] == "Letters only"


@pytest.mark.parametrize("kind,low,high", [
    (v.DescriptionType.SUMMARY, 2, 255),
    (v.DescriptionType.DETAILED, 2, 3000),
    (v.DescriptionType.COMMENT, 2, 1000),
    (v.DescriptionType.NOTE, 2, 500),
    (v.DescriptionType.LABEL, 2, 50),
])
def test_description_length_classes(kind, low, high):
    frag = v.description(kind)

    assert frag["minLength"] == low
    assert frag["maxLength"] == high


def test_description_options():
    assert "maxLength" not in v.description(skip_max_length=True)
    assert "pattern" not in v.description(allow_html=True)
    assert v.description("unknown-kind")["maxLength"] == 3000


def test_object_of_derives_required_from_optional():
    frag = v.object_of({"a": v.string(), "b": v.optional(v.string())})

    assert frag["required"] == ["a"]
    assert is_optional(frag["properties"]["b"])


def test_object_of_without_required_fields_omits_required():
    frag = v.object_of({"a": v.optional(v.string())})

    assert "required" not in frag


def test_enum_value_with_default_is_optional():
    frag = v.enum_value(Priority, default="low")

    assert frag["enum"] == ["low", "high"]
    assert frag["default"] == "low"
    assert is_optional(frag)
    assert not is_optional(v.enum_value(Priority))


def test_array_of_switches_on_custom_keywords():
    frag = v.object_array(v.object_of({"id": v.string()}), keywords=("validateUniqueIds",))

    assert frag["validateUniqueIds"] is True


def test_dependency_chain_builds_one_clause_per_rule():
    frag = v.dependency_chain([
        {"field": "level2", "dependsOn": {"level1": ["A", "B"]}, "errorMessage": "Pick level 2"},
        {"field": "level3", "dependsOn": {"level2": "*"}},
    ])

    first, second = frag["allOf"]
    assert first["if"]["properties"]["level1"] == {"enum": ["A", "B"]}
    assert first["then"] == {"required": ["level2"]}
    assert first["errorMessage"]["required"]["level2"] == "Pick level 2"
    assert second["if"]["properties"]["level2"] == {"type": "string"}
    assert second["errorMessage"]["required"]["level3"] == "level3 is required based on dependencies"


def test_dependency_chain_single_allowed_value(engine):
    frag = v.dependency_chain([{"field": "reason", "dependsOn": {"status": "AB"}}])

    assert frag["allOf"][0]["if"]["properties"]["status"] == {"enum": ["AB"]}
    assert engine.validate(frag, {"status": "A"}).is_valid
    result = engine.validate(frag, {"status": "AB"})
    assert [e.field for e in result.errors] == ["reason"]


# =============================================================================
# Behavior through the engine
# =============================================================================

@pytest.mark.parametrize("value,ok", [
    ("123-456-7890", True),
    ("(123) 456 7890", True),
    ("+1234567890", True),
    ("123.456.7890", True),
    ("12-34", False),
    ("phone", False),
])
def test_phone(engine, value, ok):
    assert engine.validate(v.phone(), value).is_valid is ok


@pytest.mark.parametrize("value,ok", [
    ("#fff", True),
    ("#A1B2C3", True),
    ("#11223344", True),
    ("fff", False),
    ("#12345", False),
])
def test_hex_color(engine, value, ok):
    assert engine.validate(v.hex_color(), value).is_valid is ok


@pytest.mark.parametrize("value,ok", [
    ("1w 2d", True),
    ("5h 30m", True),
    ("2h", True),
    ("1h 2h", False),
    ("abc", False),
])
def test_duration_format(engine, value, ok):
    assert engine.validate(v.duration_format(), value).is_valid is ok


@pytest.mark.parametrize("value,ok", [
    ("1700000000", True),
    ("1700000000000", True),
    ("0123456789", False),
    ("-1234567890", False),
    ("123.456", False),
])
def test_unix_timestamp(engine, value, ok):
    assert engine.validate(v.unix_timestamp(), value).is_valid is ok


def test_version_formats(engine):
    assert engine.validate(v.version("semver"), "1.2.3").is_valid
    assert not engine.validate(v.version("semver"), "1.2").is_valid
    assert engine.validate(v.version(), "12").is_valid


@pytest.mark.parametrize("value,ok", [
    ("\U0001F600", True),
    ("\U0001F44D\U0001F3FD", True),
    ("\U0001F1FA\U0001F1F8", True),
    ("a", False),
    ("\U0001F600\U0001F600", False),
])
def test_emoji(engine, value, ok):
    assert engine.validate(v.emoji(), value).is_valid is ok


def test_mime_type(engine):
    assert engine.validate(v.mime_type(), "image/jpeg").is_valid
    result = engine.validate(v.mime_type(), "jpeg")
    assert _messages(result) == ["Please enter a valid MIME type (e.g., image/jpeg, application/pdf)"]


def test_ownership(engine):
    frag = v.ownership()

    assert engine.validate(frag, "assigned:me").is_valid
    assert engine.validate(frag, "created:123e4567-e89b-12d3-a456-426614174000").is_valid
    assert not engine.validate(frag, "assigned:you").is_valid


def test_date_bounds(engine):
    frag = v.date(min_date="2024-01-01", max_date="2024-12-31")

    assert engine.validate(frag, "2024-06-15").is_valid
    assert _messages(engine.validate(frag, "2023-12-31")) == ["Date cannot be before 2024-01-01"]
    assert _messages(engine.validate(frag, "2025-01-01")) == ["Date cannot be after 2024-12-31"]
    assert not engine.validate(frag, "2024-02-30").is_valid


def test_date_range_rejects_impossible_month(engine):
    assert engine.validate(v.date_range(), "2024-02-28").is_valid
    assert not engine.validate(v.date_range(), "2024-13-01").is_valid


def test_time_range_bounds(engine):
    frag = v.time_range(min_time="09:00", max_time="17:00")

    assert engine.validate(frag, "12:30").is_valid
    assert engine.validate(frag, "09:00:00").is_valid
    assert _messages(engine.validate(frag, "08:59")) == ["Time is too early"]
    assert _messages(engine.validate(frag, "17:01")) == ["Time is too late"]
    assert not engine.validate(frag, "25:00").is_valid


def test_string_array_rejects_blank_items(engine):
    frag = v.string_array()

    assert engine.validate(frag, ["a", "b c"]).is_valid
    result = engine.validate(frag, ["ok", "   "])
    assert not result.is_valid
    assert result.errors[0].field == "[1]"


def test_uuid_array_item_message(engine):
    result = engine.validate(v.uuid_array(error_messages={"items": "Bad member id"}), ["nope"])

    assert _messages(result) == ["Bad member id"]


def test_unique_array(engine):
    frag = v.unique_array(v.string())

    assert engine.validate(frag, ["a", "b"]).is_valid
    assert _messages(engine.validate(frag, ["a", "a"])) == ["Duplicate values are not allowed"]


def test_enum_array(engine):
    frag = v.enum_array(Priority, min_items=1)

    assert engine.validate(frag, ["low"]).is_valid
    assert not engine.validate(frag, []).is_valid
    assert not engine.validate(frag, ["urgent"]).is_valid


def test_query_filter(engine):
    frag = v.query_filter(allowed_fields=["status"], max_filters=1)

    assert engine.validate(frag, [{"field": "status", "operator": "eq", "value": "open"}]).is_valid
    result = engine.validate(frag, [{"field": "owner", "operator": "eq", "value": "me"}])
    assert _messages(result) == ["Field must be one of: status"]


def test_custom_field(engine):
    frag = v.custom_field(allowed_types=["text"])

    assert engine.validate(frag, [{"name": "Color", "type": "text"}]).is_valid
    assert not engine.validate(frag, [{"name": "Color", "type": "number"}]).is_valid


def test_different_values(engine):
    frag = v.object_of(
        {"source": v.string(), "target": v.string()},
        all_of=[v.different_values("source", "target")],
    )

    assert engine.validate(frag, {"source": "a", "target": "b"}).is_valid
    result = engine.validate(frag, {"source": "a", "target": "a"})
    assert _messages(result) == ["source and target must have different values"]


def test_conditional_required(engine):
    frag = v.object_of(
        {"policyType": v.string(), "targets": v.optional(v.array_of(v.string()))},
        all_of=[v.conditional_required(
            "targets", {"policyType": {"const": "sla"}}, "Targets are required for SLA policies",
        )],
    )

    assert engine.validate(frag, {"policyType": "ola"}).is_valid
    result = engine.validate(frag, {"policyType": "sla"})
    assert [e.to_dict() for e in result.errors] == [
        {"field": "targets", "message": "Targets are required for SLA policies"},
    ]


def test_dependency_chain_reports_only_the_missing_field(engine):
    frag = v.object_of(
        {
            "level1": v.string(),
            "level2": v.optional(v.string()),
            "level3": v.optional(v.string()),
        },
        all_of=[v.dependency_chain([
            {"field": "level2", "dependsOn": {"level1": ["A"]}, "errorMessage": "Level 2 needed"},
            {"field": "level3", "dependsOn": {"level2": "*"}, "errorMessage": "Level 3 needed"},
        ])],
    )

    assert engine.validate(frag, {"level1": "B"}).is_valid
    assert _messages(engine.validate(frag, {"level1": "A"})) == ["Level 2 needed"]
    assert _messages(engine.validate(frag, {"level1": "A", "level2": "x"})) == ["Level 3 needed"]
    assert engine.validate(frag, {"level1": "A", "level2": "x", "level3": "y"}).is_valid


@pytest.fixture
def field_definition():
    return v.field_definition_validation(
        ["label", "dropdown", "text", "textarea", "date", "number", "files", "people"],
    )


def test_field_definition_number_rejects_string(engine, field_definition):
    result = engine.validate(field_definition, {
        "customFieldDefinitionId": "123e4567-e89b-12d3-a456-426614174000",
        "fieldType": "number",
        "selectedValue": "42",
    })

    assert not result.is_valid
    assert len(result.errors) == 1
    assert result.errors[0].field == "selectedValue"
    assert "must be a number" in result.errors[0].message


def test_field_definition_valid_shapes(engine, field_definition):
    base = {"customFieldDefinitionId": "123e4567-e89b-12d3-a456-426614174000"}

    assert engine.validate(field_definition, {**base, "fieldType": "number", "selectedValue": 42}).is_valid
    assert engine.validate(field_definition, {**base, "fieldType": "label", "selectedValue": ["a"]}).is_valid
    assert engine.validate(field_definition, {**base, "fieldType": "text", "selectedValue": "hi"}).is_valid
    assert engine.validate(field_definition, {**base, "fieldType": "number"}).is_valid


def test_field_definition_people_needs_uuids(engine, field_definition):
    result = engine.validate(field_definition, {
        "customFieldDefinitionId": "123e4567-e89b-12d3-a456-426614174000",
        "fieldType": "people",
        "selectedValue": ["not-a-uuid"],
    })

    assert _messages(result) == ["Selected value for people fields must be an array of UUIDs"]


def test_field_definition_unknown_type(engine, field_definition):
    result = engine.validate(field_definition, {
        "customFieldDefinitionId": "123e4567-e89b-12d3-a456-426614174000",
        "fieldType": "video",
    })

    assert result.errors[0].field == "fieldType"
    assert result.errors[0].message.startswith("Invalid field type. Must be one of:")
