import pytest

from shared.database.models import User
from tests.conftest import TEST_PASSWORD, auth_headers

USERS = "/api/v1/users"


def test_get_me(client, regular_user):
    resp = client.get(f"{USERS}/me", headers=auth_headers(regular_user))

    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]["data"]
    assert data["id"] == regular_user.id
    assert "password" not in data
    assert "password_reset_token" not in data


def test_update_me(client, regular_user):
    resp = client.patch(
        f"{USERS}/update-me",
        json={"name": "Renamed User", "email": "renamed@natours.io", "role": "admin"},
        headers=auth_headers(regular_user),
    )

    assert resp.status_code == 200, resp.text
    user = resp.json()["data"]["user"]
    assert user["name"] == "Renamed User"
    assert user["email"] == "renamed@natours.io"
    assert user["role"] == "user"


@pytest.mark.parametrize("payload", [
    {"password": "newpass99"},
    {"password": "newpass99", "password_confirm": "newpass99"},
])
def test_update_me_rejects_password_fields(client, regular_user, payload):
    resp = client.patch(f"{USERS}/update-me", json=payload, headers=auth_headers(regular_user))

    assert resp.status_code == 400, resp.text
    assert "update-password" in resp.json()["message"]


def test_delete_me_deactivates_account(client, regular_user, admin, db_session):
    resp = client.delete(f"{USERS}/delete-me", headers=auth_headers(regular_user))

    assert resp.status_code == 204, resp.text
    db_session.expire_all()
    assert db_session.get(User, regular_user.id).active is False

    login = client.post(f"{USERS}/login", json={"email": regular_user.email, "password": TEST_PASSWORD})
    assert login.status_code == 401
    assert client.get(f"{USERS}/me", headers=auth_headers(regular_user)).status_code == 401

    listing = client.get(USERS, headers=auth_headers(admin)).json()
    assert regular_user.id not in [u["id"] for u in listing["data"]["users"]]
    assert client.get(f"{USERS}/{regular_user.id}", headers=auth_headers(admin)).status_code == 404


def test_list_users_requires_admin(client, lead_guide):
    resp = client.get(USERS, headers=auth_headers(lead_guide))

    assert resp.status_code == 403, resp.text


def test_list_users(client, admin, user_factory):
    user_factory(role="guide")
    user_factory(role="guide")

    resp = client.get(f"{USERS}?role=guide&fields=name,role", headers=auth_headers(admin))

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["results"] == 2
    assert all(set(u) == {"id", "name", "role"} for u in body["data"]["users"])


def test_admin_creates_user(client, admin):
    resp = client.post(
        USERS,
        json={
            "name": "New Guide",
            "email": "newguide@natours.io",
            "role": "guide",
            "password": "guidepass1",
            "password_confirm": "guidepass1",
        },
        headers=auth_headers(admin),
    )

    assert resp.status_code == 201, resp.text
    assert resp.json()["data"]["data"]["role"] == "guide"
    login = client.post(f"{USERS}/login", json={"email": "newguide@natours.io", "password": "guidepass1"})
    assert login.status_code == 200


def test_admin_gets_user(client, admin, regular_user):
    resp = client.get(f"{USERS}/{regular_user.id}", headers=auth_headers(admin))

    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["user"]["email"] == regular_user.email


def test_admin_updates_user_but_not_password(client, admin, regular_user):
    resp = client.patch(
        f"{USERS}/{regular_user.id}",
        json={"role": "guide", "password": "hijacked1"},
        headers=auth_headers(admin),
    )

    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["data"]["role"] == "guide"
    login = client.post(f"{USERS}/login", json={"email": regular_user.email, "password": TEST_PASSWORD})
    assert login.status_code == 200


@pytest.mark.parametrize("body", [{"name": None}, {"email": None}, {"photo": None}])
def test_update_me_rejects_null(client, regular_user, body):
    resp = client.patch(f"{USERS}/update-me", json=body, headers=auth_headers(regular_user))

    assert resp.status_code == 400, resp.text
    assert resp.json()["status"] == "fail"


def test_admin_update_rejects_null_role(client, admin, regular_user, db_session):
    resp = client.patch(f"{USERS}/{regular_user.id}", json={"role": None}, headers=auth_headers(admin))

    assert resp.status_code == 400, resp.text
    db_session.expire_all()
    assert db_session.get(User, regular_user.id).role == "user"


def test_admin_deletes_user(client, admin, regular_user):
    resp = client.delete(f"{USERS}/{regular_user.id}", headers=auth_headers(admin))

    assert resp.status_code == 204, resp.text
    assert client.get(f"{USERS}/{regular_user.id}", headers=auth_headers(admin)).status_code == 404


def test_admin_user_routes_missing_id(client, admin):
    headers = auth_headers(admin)

    assert client.get(f"{USERS}/9999", headers=headers).status_code == 404
    assert client.patch(f"{USERS}/9999", json={"name": "Ghost"}, headers=headers).status_code == 404
    assert client.delete(f"{USERS}/9999", headers=headers).status_code == 404
