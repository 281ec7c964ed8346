"""
tests/test_users_routes.py -- Integration tests for admin user management.

Coverage:
  - every /api/usuarios route requires an admin (401 anonymous, 403 student)
  - list/get never expose password hash, cedula or token
  - create: 201, duplicate 409, missing fields 400
  - update: fields overwritten, password kept unless given, unknown id 404
  - delete: 200 then 404; deleted user's token stops working
"""

from __future__ import annotations

from fastapi.testclient import TestClient

LUIS = {
    "nombre": "Luis",
    "apellido": "Mora",
    "email": "luis@x.com",
    "cedula": "0955555555",
    "password": "luispass1",
}


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestUserAdminAccess:
    def test_anonymous_is_unauthorized(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _admin, _student = api_client
        assert client.get("/api/usuarios").status_code == 401

    def test_student_is_forbidden(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _admin, student = api_client
        assert client.get("/api/usuarios", headers=_bearer(student)).status_code == 403
        assert client.post("/api/usuarios", json=LUIS, headers=_bearer(student)).status_code == 403
        assert client.app.state.user_store.get_by_email("luis@x.com") is None


class TestUserAdminCrud:
    def test_list_hides_secrets(self, api_client: tuple[TestClient, str, str]) -> None:
        client, admin, _student = api_client
        resp = client.get("/api/usuarios", headers=_bearer(admin))
        assert resp.status_code == 200
        users = resp.json()
        assert {u["email"] for u in users} >= {"admin@campus.edu", "student@campus.edu"}
        for user in users:
            assert set(user) == {"id", "nombre", "apellido", "email", "rol"}

    def test_create_user_with_role(self, api_client: tuple[TestClient, str, str]) -> None:
        client, admin, _student = api_client
        resp = client.post("/api/usuarios", json={**LUIS, "rol": "admin"}, headers=_bearer(admin))
        assert resp.status_code == 201, resp.text
        assert resp.json()["rol"] == "admin"
        assert "token" not in resp.json()

    def test_create_duplicate_is_conflict(self, api_client: tuple[TestClient, str, str]) -> None:
        client, admin, _student = api_client
        resp = client.post("/api/usuarios", json=LUIS, headers=_bearer(admin))
        assert resp.status_code == 409

    def test_create_missing_fields(self, api_client: tuple[TestClient, str, str]) -> None:
        client, admin, _student = api_client
        resp = client.post("/api/usuarios", json={"email": "x@x.com"}, headers=_bearer(admin))
        assert resp.status_code == 400
        assert resp.json()["error"]["fields"] == ["nombre", "apellido", "cedula", "password"]

    def test_update_keeps_password_when_omitted(self, api_client: tuple[TestClient, str, str]) -> None:
        client, admin, _student = api_client
        user = client.app.state.user_store.get_by_email("luis@x.com")
        body = {"nombre": "Luis Alberto", "apellido": "Mora", "email": "luis@x.com", "cedula": "0955555555"}
        resp = client.put(f"/api/usuarios/{user.id}", json=body, headers=_bearer(admin))
        assert resp.status_code == 200
        assert resp.json()["nombre"] == "Luis Alberto"
        # rol defaults to estudiante when not sent
        assert resp.json()["rol"] == "estudiante"
        login = client.post("/api/login", json={"email": "luis@x.com", "password": "luispass1"})
        assert login.status_code == 200

    def test_update_with_new_password(self, api_client: tuple[TestClient, str, str]) -> None:
        client, admin, _student = api_client
        user = client.app.state.user_store.get_by_email("luis@x.com")
        body = {
            "nombre": "Luis",
            "apellido": "Mora",
            "email": "luis@x.com",
            "cedula": "0955555555",
            "password": "newpass22",
        }
        assert client.put(f"/api/usuarios/{user.id}", json=body, headers=_bearer(admin)).status_code == 200
        assert client.post("/api/login", json={"email": "luis@x.com", "password": "luispass1"}).status_code == 401
        assert client.post("/api/login", json={"email": "luis@x.com", "password": "newpass22"}).status_code == 200

    def test_update_requires_profile_fields(self, api_client: tuple[TestClient, str, str]) -> None:
        client, admin, _student = api_client
        user = client.app.state.user_store.get_by_email("luis@x.com")
        resp = client.put(f"/api/usuarios/{user.id}", json={"nombre": "Solo"}, headers=_bearer(admin))
        assert resp.status_code == 400
        assert resp.json()["error"]["fields"] == ["apellido", "email", "cedula"]

    def test_update_unknown_is_not_found(self, api_client: tuple[TestClient, str, str]) -> None:
        client, admin, _student = api_client
        body = {"nombre": "N", "apellido": "N", "email": "n@x.com", "cedula": "n"}
        assert client.put("/api/usuarios/99999", json=body, headers=_bearer(admin)).status_code == 404
        assert client.app.state.user_store.get_by_email("n@x.com") is None

    def test_delete_user_invalidates_their_token(self, api_client: tuple[TestClient, str, str]) -> None:
        client, admin, _student = api_client
        login = client.post("/api/login", json={"email": "luis@x.com", "password": "newpass22"}).json()
        user_id = login["usuario"]["id"]

        resp = client.delete(f"/api/usuarios/{user_id}", headers=_bearer(admin))
        assert resp.status_code == 200
        assert client.get(f"/api/usuarios/{user_id}", headers=_bearer(admin)).status_code == 404
        assert client.delete(f"/api/usuarios/{user_id}", headers=_bearer(admin)).status_code == 404
        assert client.get("/api/profile", headers=_bearer(login["token"])).status_code == 404
