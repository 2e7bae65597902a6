import pytest

from models.database.user import User
from services.auth import verify_password


@pytest.fixture
def admin_headers(make_user, auth_headers):
    admin = make_user(username="boss", email="boss@example.com", role="Admin")
    return auth_headers(admin)


def test_admin_routes_require_admin_role(client, make_user, auth_headers) -> None:
    user = make_user()

    assert client.get("/admin/users").status_code == 401
    forbidden = client.get("/admin/users", headers=auth_headers(user))
    assert forbidden.status_code == 403
    assert forbidden.json()["message"] == "Access denied"


def test_list_users(client, make_user, admin_headers) -> None:
    make_user()

    users = client.get("/admin/users", headers=admin_headers).json()["users"]

    assert {u["username"] for u in users} == {"boss", "viewer"}
    assert set(users[0]) == {"_id", "username", "email", "isBlocked", "role", "joined"}


def test_block_and_unblock(client, make_user, admin_headers, session_factory) -> None:
    user = make_user()

    blocked = client.put("/admin/block-user", json={"userId": user.id, "block": True}, headers=admin_headers)
    with session_factory() as session:
        assert session.get(User, user.id).is_blocked is True

    unblocked = client.put("/admin/block-user", json={"userId": user.id, "block": False}, headers=admin_headers)
    with session_factory() as session:
        assert session.get(User, user.id).is_blocked is False

    assert blocked.json()["message"] == "User blocked successfully"
    assert unblocked.json()["message"] == "User unblocked successfully"


def test_block_requires_boolean(client, make_user, admin_headers) -> None:
    user = make_user()
    response = client.put("/admin/block-user", json={"userId": user.id, "block": "yes"}, headers=admin_headers)
    assert response.status_code == 400


def test_promote_user(client, make_user, admin_headers, session_factory) -> None:
    user = make_user()

    first = client.put("/admin/promote-user", json={"userId": user.id}, headers=admin_headers).json()
    second = client.put("/admin/promote-user", json={"userId": user.id}, headers=admin_headers).json()

    assert first["message"] == "User promoted to Admin successfully"
    assert second["message"] == "User is already an admin"
    with session_factory() as session:
        assert session.get(User, user.id).role == "Admin"


def test_promote_unknown_user(client, admin_headers) -> None:
    response = client.put("/admin/promote-user", json={"userId": 9999}, headers=admin_headers)
    assert response.status_code == 404


def test_force_password_change(client, make_user, admin_headers, session_factory) -> None:
    user = make_user()

    short = client.post("/admin/reset-password", json={"userId": user.id, "newPassword": "short"}, headers=admin_headers)
    ok = client.post(
        "/admin/reset-password",
        json={"userId": user.id, "newPassword": "replacement-pass"},
        headers=admin_headers,
    )

    assert short.status_code == 400
    assert ok.json()["condition"] is True
    with session_factory() as session:
        assert verify_password("replacement-pass", session.get(User, user.id).password)


def test_force_username_change(client, make_user, admin_headers) -> None:
    user = make_user()

    taken = client.post(f"/admin/user/{user.id}/change-username", json={"newUsername": "BOSS"}, headers=admin_headers)
    ok = client.post(f"/admin/user/{user.id}/change-username", json={"newUsername": "renamed"}, headers=admin_headers)

    assert taken.json() == {"condition": False, "message": "Username taken"}
    assert ok.json() == {"condition": True, "message": "Username updated"}


def test_view_and_clear_history(client, make_user, admin_headers, session_factory) -> None:
    entry = {"id": 1, "title": "One", "poster_path": "", "media_type": "MV", "watchedAt": "2024-05-01T12:00:00"}
    user = make_user(history=[entry])

    history = client.get(f"/admin/user/{user.id}/history", headers=admin_headers).json()["history"]
    cleared = client.post(f"/admin/user/{user.id}/clear-history", headers=admin_headers).json()

    assert history == [entry]
    assert cleared["condition"] is True
    with session_factory() as session:
        assert session.get(User, user.id).history == []
