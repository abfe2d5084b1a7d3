"""
Users API Routes

Demonstrates contract enforcement at the HTTP boundary.

Endpoints:
- POST /api/users - create a user (CreateUserRequest -> UserResponse)
- GET  /api/users - list users (ListUsersQuery -> UserList)

Both honor version negotiation (X-API-Contract-Version header or ?version=).
This is a THIN route handler - storage is in services/user_store.py.
"""

from flask import Blueprint, current_app, g, request

from api.contracts import api_contract, get_registry
from api.contracts.schemas.users import GROUP
from services.user_store import UserStore

users_bp = Blueprint('users', __name__)

USER_STORE_EXTENSION = "user_store"

# Fields each UserResponse version exposes
_RESPONSE_FIELDS = {
    1: ("id", "name", "age"),
    2: ("id", "name", "age", "email", "role", "createdAt"),
}


def get_user_store() -> UserStore:
    store = current_app.extensions.get(USER_STORE_EXTENSION)
    if store is None:
        store = current_app.extensions[USER_STORE_EXTENSION] = UserStore()
    return store


def _project(user: dict, version: int) -> dict:
    fields = _RESPONSE_FIELDS.get(version, _RESPONSE_FIELDS[max(_RESPONSE_FIELDS)])
    return {name: user[name] for name in fields}


@users_bp.route("/users", methods=["POST"])
@api_contract(GROUP, request_contract="CreateUserRequest", response_contract="UserResponse")
def create_user():
    body = g.contract_body
    user = get_user_store().create(
        name=body["name"],
        age=body["age"],
        email=body.get("email"),
        role=body.get("role", "member"),
    )
    return _project(user, g.contract_version), 201


@users_bp.route("/users", methods=["GET"])
@api_contract(GROUP, response_contract="UserList")
def list_users():
    # Query strings only carry strings; ListUsersQuery is registered with coerce=True.
    # ValidationFailed propagates to the error envelope (400).
    version_param = current_app.config.get('CONTRACT_VERSION_PARAM', 'version')
    raw_query = {k: v for k, v in request.args.items() if k != version_param}
    query = get_registry().get(GROUP, "ListUsersQuery").cast(raw_query)

    users = get_user_store().list(
        limit=query.get("limit"),
        offset=query.get("offset") or 0,
        role=query.get("role"),
    )
    return {
        "users": [_project(u, g.contract_version) for u in users],
        "count": len(users),
    }
