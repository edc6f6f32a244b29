"""
Request Contracts.

Schemas for the request bodies and query strings the API accepts. They are
built once at import time from schema.builders and shared by every request.

Available Contracts:
    CREATE_USER_REQUEST_SCHEMA: Body of ``POST /users``
    PAGINATION_QUERY_SCHEMA: Query string of list endpoints
"""
import enum

from schema import builders as v


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


CREATE_USER_REQUEST_SCHEMA = v.object_of(
    {
        "name": v.name(min_length=2, max_length=100, error_messages={
            "minLength": "Name must be at least 2 characters",
            "maxLength": "Name cannot exceed 100 characters",
        }),
        "email": v.email(error_messages={
            "type": "Email is required",
            "format": "Please enter a valid email address",
        }),
        "phone": v.optional(v.string()),
        "profileImageUrl": v.optional(v.string()),
    },
    additional_properties=False,
    error_messages={
        "additionalProperties": "Additional properties are not allowed in the request",
    },
)

_SORT_ORDERS = ", ".join(order.value for order in SortOrder)

PAGINATION_QUERY_SCHEMA = v.object_of(
    {
        "page": v.optional(v.integer(minimum=1, default=1, description="Page number")),
        "pageSize": v.optional(v.integer(minimum=1, maximum=100, default=40, description="Items per page")),
        "q": v.optional(v.search(max_length=50, allow_special_chars=True, error_messages={
            "type": "Search term must be text",
        })),
        "filter": v.optional(v.string(description="Filter")),
        "sortOrder": v.enum_value(SortOrder, default=SortOrder.DESC.value, error_messages={
            "enum": f"Invalid sort order. Allowed values are: {_SORT_ORDERS}",
        }),
        "status": v.optional(v.string_array(allow_special_chars=True)),
    },
)
