"""
tests/test_auth_dependencies.py -- Bearer-token and admin-gate behaviour through real routes.

Coverage:
  - no Authorization header -> 401 token_required
  - header without a bearer value -> 401 token_missing
  - bad signature / garbage -> 401 invalid_token
  - student token on an admin-gated write -> 403, nothing modified
  - role is read per request: promotion and demotion take effect immediately
  - store failure during the role lookup -> 500 internal_error
  - REQUIRE_ADMIN_FOR_WRITES=false opens campus writes to anonymous callers
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from auth.models import ROLE_ADMIN, ROLE_STUDENT
from auth.tokens import TokenService
from campus.store import CATEGORIES


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestBearerStateMachine:
    def test_no_header_is_token_required(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _admin, _student = api_client
        resp = client.get("/api/profile")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "token_required"

    @pytest.mark.parametrize("header", ["Bearer", "Bearer   ", "Token abc", ""])
    def test_header_without_bearer_value_is_token_missing(self, api_client: tuple[TestClient, str, str], header: str) -> None:
        client, _admin, _student = api_client
        resp = client.get("/api/profile", headers={"Authorization": header})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "token_missing"

    def test_garbage_token_is_invalid(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _admin, _student = api_client
        resp = client.get("/api/profile", headers=_bearer("not-a-token"))
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "invalid_token"

    def test_token_from_other_key_is_invalid(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _admin, _student = api_client
        forged = TokenService("f" * 48).issue_login_token(1, "admin@campus.edu")
        resp = client.post("/api/categorias", json={"nombre": "Forjada"}, headers=_bearer(forged))
        assert resp.status_code == 401
        assert client.app.state.campus.count(CATEGORIES) == 0

    def test_bearer_scheme_is_case_insensitive(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _admin, student = api_client
        resp = client.get("/api/profile", headers={"Authorization": f"bearer {student}"})
        assert resp.status_code == 200


class TestAdminGate:
    def test_anonymous_write_is_rejected(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _admin, _student = api_client
        resp = client.post("/api/categorias", json={"nombre": "Aulas"})
        assert resp.status_code == 401
        assert client.app.state.campus.count(CATEGORIES) == 0

    def test_student_write_is_forbidden_and_nothing_changes(self, api_client: tuple[TestClient, str, str]) -> None:
        client, admin, student = api_client
        created = client.post("/api/categorias", json={"nombre": "Aulas"}, headers=_bearer(admin)).json()

        put = client.put(f"/api/categorias/{created['id']}", json={"nombre": "Hackeado"}, headers=_bearer(student))
        delete = client.delete(f"/api/categorias/{created['id']}", headers=_bearer(student))
        assert put.status_code == 403
        assert delete.status_code == 403
        assert put.json()["error"]["code"] == "forbidden"
        assert client.get(f"/api/categorias/{created['id']}").json()["nombre"] == "Aulas"

    def test_reads_are_public(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _admin, _student = api_client
        assert client.get("/api/categorias").status_code == 200

    def test_role_change_takes_effect_without_new_token(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _admin, student = api_client
        store = client.app.state.user_store
        user = store.get_by_email("student@campus.edu")

        store.update_user(user.id, rol=ROLE_ADMIN)
        promoted = client.post("/api/categorias", json={"nombre": "Deportes"}, headers=_bearer(student))
        assert promoted.status_code == 201

        store.update_user(user.id, rol=ROLE_STUDENT)
        demoted = client.post("/api/categorias", json={"nombre": "Otra"}, headers=_bearer(student))
        assert demoted.status_code == 403

    def test_role_lookup_failure_is_internal_error(self, api_client: tuple[TestClient, str, str]) -> None:
        client, admin, _student = api_client
        before = client.app.state.campus.count(CATEGORIES)
        with patch.object(
            client.app.state.user_store,
            "get_role",
            side_effect=OperationalError("SELECT rol", {}, Exception("database is locked")),
        ):
            resp = client.post("/api/categorias", json={"nombre": "Nunca"}, headers=_bearer(admin))
        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "internal_error"
        assert "locked" not in resp.text
        assert client.app.state.campus.count(CATEGORIES) == before

    def test_open_writes_when_admin_not_required(self, api_client: tuple[TestClient, str, str], override_settings) -> None:
        client, _admin, _student = api_client
        override_settings(require_admin_for_writes=False)
        resp = client.post("/api/categorias", json={"nombre": "Abierta"})
        assert resp.status_code == 201

    def test_user_admin_stays_gated_when_writes_are_open(self, api_client: tuple[TestClient, str, str], override_settings) -> None:
        client, _admin, student = api_client
        override_settings(require_admin_for_writes=False)
        assert client.get("/api/usuarios").status_code == 401
        assert client.get("/api/usuarios", headers=_bearer(student)).status_code == 403
