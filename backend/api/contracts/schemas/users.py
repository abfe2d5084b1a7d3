"""
Contract schemas for /users endpoints.

Endpoints:
- POST /api/users  CreateUserRequest -> UserResponse
- GET  /api/users  ListUsersQuery (query string) -> UserList

v2 adds an optional email + role on create, and email/createdAt on responses.
v1 clients keep receiving the v1 response shape.
"""

from ..fields import (
    array,
    datetime_,
    describe,
    integer,
    nullable,
    number,
    object_schema,
    one_of,
    optional,
    string,
)
from ..registry import ContractRegistry


GROUP = "users"

ROLES = ("member", "admin")


# =============================================================================
# v1
# =============================================================================

CREATE_USER_REQUEST_V1 = object_schema({
    "name": describe(string(), "Full name"),
    "age": describe(number(), "Age in years"),
})

USER_RESPONSE_V1 = object_schema({
    "id": integer(),
    "name": string(),
    "age": number(),
})

USER_LIST_V1 = object_schema({
    "users": array(USER_RESPONSE_V1),
    "count": integer(),
})


# =============================================================================
# v2
# =============================================================================

CREATE_USER_REQUEST_V2 = object_schema({
    "name": describe(string(), "Full name"),
    "age": describe(number(), "Age in years"),
    "email": optional(string()),
    "role": optional(one_of(string(), ROLES)),
})

USER_RESPONSE_V2 = object_schema({
    "id": integer(),
    "name": string(),
    "age": number(),
    "email": nullable(string()),
    "role": one_of(string(), ROLES),
    "createdAt": datetime_(),
})

USER_LIST_V2 = object_schema({
    "users": array(USER_RESPONSE_V2),
    "count": integer(),
})


# =============================================================================
# Query string (unversioned, coerced: query values always arrive as strings)
# =============================================================================

LIST_USERS_QUERY = object_schema({
    "limit": optional(integer()),
    "offset": optional(integer()),
    "role": optional(one_of(string(), ROLES)),
})


def register_user_contracts(registry: ContractRegistry) -> None:
    """Register every /users contract, v1 then v2."""
    registry.define_contracts(GROUP, {
        "CreateUserRequest": CREATE_USER_REQUEST_V1,
        "UserResponse": USER_RESPONSE_V1,
        "UserList": USER_LIST_V1,
    })
    registry.register_new_version(GROUP, "CreateUserRequest", CREATE_USER_REQUEST_V2)
    registry.register_new_version(GROUP, "UserResponse", USER_RESPONSE_V2)
    registry.register_new_version(GROUP, "UserList", USER_LIST_V2)

    registry.register(
        GROUP,
        "ListUsersQuery",
        LIST_USERS_QUERY,
        coerce=True,
        description="Query string for GET /api/users",
    )
