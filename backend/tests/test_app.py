"""
End-to-end tests for the contract-enforced /api/users and /api/contracts
endpoints, through create_app().
"""

import pytest

from api.contracts import ContractRegistry, RegistrySealedError, get_registry, string
from app import create_app
from config import Config


def _create(client, payload, version=None):
    headers = {"X-API-Contract-Version": str(version)} if version else {}
    return client.post("/api/users", json=payload, headers=headers)


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json() == {"status": "ok", "contractsSealed": True}

    def test_registry_sealed_after_startup(self, app):
        with app.app_context():
            with pytest.raises(RegistrySealedError):
                get_registry().register("late", "Late", string())

    def test_unsealed_when_configured(self):
        class UnsealedConfig(Config):
            TESTING = True
            CONTRACT_SEAL_ON_STARTUP = False

        registry = ContractRegistry()
        app = create_app(registry=registry, config_object=UnsealedConfig)
        assert registry.sealed is False
        assert app.test_client().get("/health").get_json()["contractsSealed"] is False


class TestCreateUser:
    """POST /api/users"""

    def test_latest_version(self, client):
        response = _create(client, {"name": "Jim Doe", "age": 29, "email": "jim@example.com"})
        assert response.status_code == 201
        assert response.headers["X-API-Contract-Version"] == "2"

        user = response.get_json()
        assert user["name"] == "Jim Doe"
        assert user["email"] == "jim@example.com"
        assert user["role"] == "member"
        # ISO-8601, not an HTTP date
        assert "T" in user["createdAt"]

    def test_v1_client_gets_v1_shape(self, client):
        response = _create(client, {"name": "Jim Doe", "age": 29}, version=1)
        assert response.status_code == 201
        assert set(response.get_json()) == {"id", "name", "age"}
        assert response.headers["X-API-Contract-Version"] == "1"

    def test_v1_rejects_v2_fields(self, client):
        response = _create(client, {"name": "Jim", "age": 29, "email": "jim@example.com"}, version=1)
        assert response.status_code == 400
        errors = response.get_json()["error"]["details"]["errors"]
        assert errors[0]["path"] == ["email"]
        assert errors[0]["code"] == "undeclared_field"

    def test_numeric_string_age_rejected(self, client):
        response = _create(client, {"name": "Jim", "age": "29"})
        assert response.status_code == 400
        error = response.get_json()["error"]
        assert error["code"] == "CONTRACT_VIOLATION"
        assert error["details"]["errors"][0]["field"] == "age"

    def test_unknown_role_rejected(self, client):
        response = _create(client, {"name": "Jim", "age": 29, "role": "owner"})
        assert response.status_code == 400
        assert response.get_json()["error"]["details"]["errors"][0]["code"] == "invalid_value"

    def test_ids_increment(self, client):
        first = _create(client, {"name": "A", "age": 1}).get_json()
        second = _create(client, {"name": "B", "age": 2}).get_json()
        assert second["id"] == first["id"] + 1


class TestListUsers:
    """GET /api/users"""

    @pytest.fixture
    def populated_client(self, client):
        _create(client, {"name": "A", "age": 30})
        _create(client, {"name": "B", "age": 40, "role": "admin"})
        _create(client, {"name": "C", "age": 50})
        return client

    def test_list_all(self, populated_client):
        response = populated_client.get("/api/users")
        assert response.status_code == 200
        body = response.get_json()
        assert body["count"] == 3
        assert [u["name"] for u in body["users"]] == ["A", "B", "C"]

    def test_query_string_coerced(self, populated_client):
        body = populated_client.get("/api/users?limit=1&offset=1").get_json()
        assert [u["name"] for u in body["users"]] == ["B"]

    def test_filter_by_role(self, populated_client):
        body = populated_client.get("/api/users?role=admin").get_json()
        assert [u["name"] for u in body["users"]] == ["B"]

    def test_version_param_selects_shape(self, populated_client):
        body = populated_client.get("/api/users?version=1").get_json()
        assert set(body["users"][0]) == {"id", "name", "age"}

    @pytest.mark.parametrize("query", ["limit=abc", "limit=1.5", "role=owner", "sort=name"])
    def test_bad_query_is_400(self, populated_client, query):
        response = populated_client.get(f"/api/users?{query}")
        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "CONTRACT_VIOLATION"


class TestContractEndpoints:
    """GET /api/contracts..."""

    def test_list_groups(self, client):
        groups = client.get("/api/contracts").get_json()["groups"]
        assert groups["users"]["CreateUserRequest"] == [1, 2]
        assert groups["users"]["ListUsersQuery"] == [1]

    def test_export_group(self, client):
        body = client.get("/api/contracts/users").get_json()
        assert body["exportName"] == "users"
        entry = body["contracts"]["UserResponse"]
        assert entry["version"] == 2
        assert entry["contractHash"].startswith("UserResponse:v2:")
        assert entry["schema"]["properties"]["createdAt"] == {
            "type": "string",
            "format": "date-time",
        }

    def test_get_old_version(self, client):
        body = client.get("/api/contracts/users/UserResponse?version=1").get_json()
        assert body["version"] == 1
        assert set(body["schema"]["properties"]) == {"id", "name", "age"}

    def test_unknown_group_is_404(self, client):
        response = client.get("/api/contracts/orders")
        assert response.status_code == 404
        assert response.get_json()["error"]["code"] == "CONTRACT_NOT_FOUND"

    def test_unknown_contract_is_404(self, client):
        response = client.get("/api/contracts/users/Ghost")
        assert response.status_code == 404

    def test_unknown_route_uses_envelope(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.get_json()["error"]["code"] == "NOT_FOUND"

    def test_get_version_with_v_prefix(self, client):
        body = client.get("/api/contracts/users/UserResponse?version=v1").get_json()
        assert body["version"] == 1

    @pytest.mark.parametrize("version", ["abc", "0", "1.5"])
    def test_malformed_version_is_400(self, client, version):
        response = client.get(f"/api/contracts/users/UserResponse?version={version}")
        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "INVALID_CONTRACT_VERSION"

    def test_envelope_echoes_request_id(self, client):
        response = client.get("/api/contracts/orders", headers={"X-Request-ID": "req-404"})
        assert response.headers["X-Request-ID"] == "req-404"
        assert response.get_json()["error"]["requestId"] == "req-404"


class TestUserStoreBinding:
    """One UserStore per app, created on first use."""

    def test_store_created_once(self, app, client, monkeypatch):
        import routes.users

        created = []

        class CountingStore(routes.users.UserStore):
            def __init__(self):
                super().__init__()
                created.append(self)

        monkeypatch.setattr(routes.users, "UserStore", CountingStore)

        _create(client, {"name": "A", "age": 1})
        _create(client, {"name": "B", "age": 2})
        client.get("/api/users")

        assert len(created) == 1
        assert app.extensions["user_store"] is created[0]
        assert len(created[0]) == 2
