"""
Tests for the Flask API and the request pipes.

Uses the Flask test client with an injected engine (see conftest.py).
"""
import pytest

from api import create_app
from api.pipes import (
    ArrayQueryParamPipe,
    QueryParamPipe,
    RequestValidationError,
    SchemaPipe,
    parse_value,
    trim_deep,
)
from config import get_default_config
from schema import CREATE_USER_REQUEST_SCHEMA
from schema import builders as v


# =============================================================================
# Pipes
# =============================================================================

@pytest.mark.parametrize("raw,expected", [
    ("true", True),
    ("false", False),
    ("null", None),
    ("42", 42),
    ("-3.14", -3.14),
    ('{"name": "Ada"}', {"name": "Ada"}),
    ("[1, 2]", [1, 2]),
    ("hello", "hello"),
    ("", ""),
    ("1_000", "1_000"),
    ("nan", "nan"),
])
def test_parse_value(raw, expected):
    assert parse_value(raw) == expected


def test_trim_deep():
    assert trim_deep({"a": " x ", "b": [" y", {"c": "z "}], "d": 1}) == {
        "a": "x", "b": ["y", {"c": "z"}], "d": 1,
    }


def test_schema_pipe_returns_value(engine):
    body = {"name": "Ada", "email": "ada@example.com"}

    assert SchemaPipe(engine, CREATE_USER_REQUEST_SCHEMA).transform(body) is body


def test_schema_pipe_raises_with_cause(engine):
    with pytest.raises(RequestValidationError) as exc_info:
        SchemaPipe(engine, CREATE_USER_REQUEST_SCHEMA).transform({"name": "Ada"})

    error = exc_info.value
    assert error.status_code == 400
    assert error.message == "Validation failed"
    assert [e.field for e in error.cause] == ["email"]


def test_query_pipe_nests_and_parses(engine):
    schema = v.object_of({
        "user": v.object_of({"profile": v.object_of({"active": v.boolean()})}),
        "age": v.number(),
        "tags": v.array_of(v.string()),
        "scores": v.array_of(v.number()),
    })
    pipe = QueryParamPipe(engine, schema)

    parsed = pipe.transform({
        "user.profile.active": "true",
        "age": "25",
        "tags": "1,2",
        "scores": "1, 2.5",
    })

    assert parsed == {
        "user": {"profile": {"active": True}},
        "age": 25,
        "tags": ["1", "2"],
        "scores": [1, 2.5],
    }


def test_query_pipe_comma_list_without_array_schema(engine):
    pipe = QueryParamPipe(engine, v.object_of({}))

    assert pipe.parse({"ids": "1,2,3", "flag": "undefined"}) == {"ids": [1, 2, 3]}


def test_query_pipe_rejects_bad_values(engine):
    pipe = QueryParamPipe(engine, v.object_of({"age": v.number()}))

    with pytest.raises(RequestValidationError) as exc_info:
        pipe.transform({"age": "old"})

    assert exc_info.value.message == "Query parameter validation failed"
    assert exc_info.value.cause[0].field == "age"


def test_array_query_param_pipe():
    pipe = ArrayQueryParamPipe(["status"])

    assert pipe.transform({"status": "open", "q": "x"}) == {"status": ["open"], "q": "x"}
    assert pipe.transform({"status": ["open", "closed"]}) == {"status": ["open", "closed"]}
    assert pipe.transform({"q": "x"}) == {"q": "x"}
    assert pipe.transform(None) is None


# =============================================================================
# HTTP
# =============================================================================

def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json() == {"status": "healthy"}


def test_create_user_valid(client):
    response = client.post("/users", json={"name": "  Ada Lovelace ", "email": "ada@example.com"})

    assert response.status_code == 201
    assert response.get_json()["data"] == {"name": "Ada Lovelace", "email": "ada@example.com"}


def test_create_user_invalid(client):
    response = client.post("/users", json={"name": "A", "email": "nope", "role": "admin"})

    assert response.status_code == 400
    body = response.get_json()
    assert body["status"] == "error"
    assert body["message"] == "Validation failed"
    assert {detail["field"]: detail["message"] for detail in body["details"]} == {
        "name": "Name must be at least 2 characters",
        "email": "Please enter a valid email address",
        "role": "Additional properties are not allowed in the request",
    }


def test_create_user_requires_json(client):
    response = client.post("/users", data="name=Ada", content_type="text/plain")

    assert response.status_code == 400
    assert response.get_json()["message"] == "Content-Type must be application/json"


def test_list_users_query(client):
    response = client.get("/users?page=2&status=open")

    assert response.status_code == 200
    assert response.get_json()["query"] == {"page": 2, "status": ["open"]}


def test_list_users_repeated_and_comma_values(client):
    repeated = client.get("/users?status=open&status=closed").get_json()["query"]
    comma = client.get("/users?status=open,closed").get_json()["query"]

    assert repeated["status"] == ["open", "closed"]
    assert comma["status"] == ["open", "closed"]


def test_list_users_bad_query(client):
    response = client.get("/users?sortOrder=sideways")

    assert response.status_code == 400
    body = response.get_json()
    assert body["message"] == "Query parameter validation failed"
    assert body["details"] == [{
        "field": "sortOrder",
        "message": "Invalid sort order. Allowed values are: asc, desc",
        "path": ["sortOrder"],
    }]


def test_cors_headers_from_config(engine):
    config = get_default_config()
    config["cors"] = {"enabled": True, "origins": ["https://app.example.com"]}
    client = create_app(engine=engine, config=config).test_client()

    response = client.get("/health", headers={"Origin": "https://app.example.com"})

    assert response.headers.get("Access-Control-Allow-Origin") == "https://app.example.com"


def test_app_stores_engine(app, engine):
    assert app.config["VALIDATION_ENGINE"] is engine
