"""
Tests for the admin user-management endpoints.

Tests verify that:
- Only admins get in (401 without a session, 403 for members)
- Listing never exposes PIN hashes or salts
- Created users can log in; duplicate usernames conflict
- Deactivation revokes sessions and blocks login
"""

from __future__ import annotations

ADMIN = "/api/v1/admin"
LOGIN = "/api/v1/auth/login"


def test_requires_admin(client, alice):
    assert client.get(ADMIN).status_code == 401

    response = client.get(ADMIN, headers=alice)
    assert response.status_code == 403
    assert response.json() == {"error": "Admin access required"}


def test_list_users_hides_secrets(client, admin, make_user):
    make_user("alice", "1234")

    users = client.get(ADMIN, headers=admin).json()["users"]

    assert [u["username"] for u in users] == ["root", "alice"]
    for user in users:
        assert "pin_hash" not in user
        assert "pin_salt" not in user
    assert users[0]["is_admin"] is True


def test_create_user(client, admin):
    response = client.post(ADMIN, json={"username": "Carol", "pin": "2468", "display_name": "Carol"}, headers=admin)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["username"] == "carol"
    assert body["user_id"]

    login = client.post(LOGIN, json={"username": "carol", "pin": "2468"})
    assert login.status_code == 200
    assert login.json()["display_name"] == "Carol"


def test_duplicate_username(client, admin, make_user):
    make_user("alice", "1234")

    response = client.post(ADMIN, json={"username": "ALICE", "pin": "2468"}, headers=admin)
    assert response.status_code == 409
    assert response.json() == {"error": "Username already taken"}


def test_create_user_validation(client, admin):
    no_name = client.post(ADMIN, json={"pin": "2468"}, headers=admin)
    assert no_name.status_code == 400
    assert no_name.json() == {"error": "Username required"}

    bad_pin = client.post(ADMIN, json={"username": "dave", "pin": "24"}, headers=admin)
    assert bad_pin.status_code == 400


def test_deactivate_revokes_sessions(client, admin, bob, supabase):
    bob_id = client.post(LOGIN, json={"username": "bob", "pin": "5678"}).json()["user_id"]

    response = client.put(ADMIN, json={"user_id": bob_id, "is_active": False}, headers=admin)
    assert response.json() == {"success": True}

    assert client.get("/api/v1/tasks", headers=bob).status_code == 401
    assert not [s for s in supabase.tables["tf_sessions"] if s["user_id"] == bob_id]
    assert client.post(LOGIN, json={"username": "bob", "pin": "5678"}).status_code == 401

    client.put(ADMIN, json={"user_id": bob_id, "is_active": True}, headers=admin)
    assert client.post(LOGIN, json={"username": "bob", "pin": "5678"}).status_code == 200


def test_reset_pin_and_rename(client, admin, make_user):
    user = make_user("alice", "1234")

    client.put(ADMIN, json={"user_id": user["user_id"], "pin": "8642", "display_name": "Alice B."}, headers=admin)

    assert client.post(LOGIN, json={"username": "alice", "pin": "1234"}).status_code == 401
    login = client.post(LOGIN, json={"username": "alice", "pin": "8642"})
    assert login.status_code == 200
    assert login.json()["display_name"] == "Alice B."


def test_promote_to_admin(client, admin, make_user, login):
    user = make_user("alice", "1234")
    client.put(ADMIN, json={"user_id": user["user_id"], "is_admin": True}, headers=admin)

    assert client.get(ADMIN, headers=login("alice", "1234")).status_code == 200


def test_update_requires_user_id(client, admin):
    response = client.put(ADMIN, json={"is_admin": True}, headers=admin)
    assert response.status_code == 400
    assert response.json() == {"error": "user_id required"}
