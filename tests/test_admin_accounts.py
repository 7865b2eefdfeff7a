import pytest

from constants.acl import CATEGORIES
from tests.factories import ADMIN_USERNAME, bearer, build_role, build_user, issue_token

pytestmark = pytest.mark.asyncio


async def test_admin_token_with_wrong_password(client):
    response = await client.post("/api/integration/admin/token", json={"username": ADMIN_USERNAME, "password": "nope"})

    assert response.status_code == 401
    assert response.json()["message"].startswith("The account sign-in was incorrect")


async def test_admin_token_for_inactive_user(client, db):
    role = await build_role(db, "inactive_role", [CATEGORIES])
    user = await build_user(db, "sleepy", "sleepy123", role)
    user.is_active = False
    await db.commit()

    response = await client.post("/api/integration/admin/token", json={"username": "sleepy", "password": "sleepy123"})

    assert response.status_code == 401


async def test_oauth2_form_token(client):
    response = await client.post("/api/auth/token", data={"username": ADMIN_USERNAME, "password": "Admin@12345"})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    me = await client.get("/api/users/me", headers=bearer(body["access_token"]))
    assert me.json()["username"] == ADMIN_USERNAME


async def test_create_role_and_user(client, admin_headers):
    role = await client.post("/api/roles", json={"name": "catalog_editors"}, headers=admin_headers)
    assert role.status_code == 201
    role_id = role.json()["id"]

    rules = await client.put(f"/api/roles/{role_id}/rules", json={"resources": [CATEGORIES]}, headers=admin_headers)
    assert rules.json() == {"role_id": role_id, "resources": [CATEGORIES]}
    stored = await client.get(f"/api/roles/{role_id}/rules", headers=admin_headers)
    assert stored.json() == {"role_id": role_id, "resources": [CATEGORIES]}

    response = await client.post(
        "/api/users",
        json={
            "username": "editor",
            "email": "editor@example.com",
            "first_name": "Edi",
            "last_name": "Tor",
            "password": "editor123",
            "confirm_password": "editor123",
            "role_id": role_id,
        },
        headers=admin_headers,
    )

    assert response.status_code == 200, response.text
    assert response.json()["role_id"] == role_id
    assert "password_hash" not in response.json()
    token = await issue_token(client, "editor", "editor123")
    assert (await client.get("/api/categories/2", headers=bearer(token))).status_code == 200


async def test_duplicate_role_name(client, admin_headers):
    await client.post("/api/roles", json={"name": "dupes"}, headers=admin_headers)

    response = await client.post("/api/roles", json={"name": "Dupes"}, headers=admin_headers)

    assert response.status_code == 409


async def test_create_user_with_weak_password(client, admin_headers):
    response = await client.post(
        "/api/users",
        json={
            "username": "weak",
            "email": "weak@example.com",
            "first_name": "W",
            "last_name": "K",
            "password": "short1",
            "confirm_password": "short1",
            "role_id": 1,
        },
        headers=admin_headers,
    )

    assert response.status_code == 400


async def test_rules_of_missing_role(client, admin_headers):
    response = await client.get("/api/roles/999/rules", headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["details"] == {"fieldName": "roleId", "fieldValue": 999}
