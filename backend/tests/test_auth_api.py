import uuid

import pytest

from moafinder.auth.models import Role

PASSWORD = "Sup3r-Secret-Pass!"
NEW_PASSWORD = "N3w-Secret-Pass!!"


async def test_register_forces_organizer_role(client):
    response = await client.post(
        "/api/auth/register",
        json={"email": "neu@example.org", "password": PASSWORD, "role": "admin"},
    )
    assert response.status_code == 201
    assert response.json()["data"]["role"] == "organizer"


async def test_register_rejects_weak_password(client):
    response = await client.post(
        "/api/auth/register", json={"email": "neu@example.org", "password": "kurz"}
    )
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_register_duplicate_email(client, make_user):
    await make_user(email="dup@example.org")
    response = await client.post(
        "/api/auth/register", json={"email": "dup@example.org", "password": PASSWORD}
    )
    assert response.status_code == 409


async def test_login_refresh_and_me(client, make_user):
    user = await make_user(email="login@example.org")
    response = await client.post(
        "/api/auth/login", json={"email": "login@example.org", "password": PASSWORD}
    )
    assert response.status_code == 200
    tokens = response.json()["data"]

    me = await client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"}
    )
    assert me.status_code == 200
    assert me.json()["data"]["id"] == str(user.id)

    refreshed = await client.post(
        "/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
    )
    assert refreshed.status_code == 200

    # The old refresh token was rotated out.
    reused = await client.post(
        "/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
    )
    assert reused.status_code == 422


async def test_refresh_token_is_not_an_access_token(client, make_user):
    await make_user(email="swap@example.org")
    tokens = (
        await client.post(
            "/api/auth/login", json={"email": "swap@example.org", "password": PASSWORD}
        )
    ).json()["data"]
    response = await client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"}
    )
    assert response.status_code == 401


async def test_wrong_password(client, make_user):
    await make_user(email="wrong@example.org")
    response = await client.post(
        "/api/auth/login", json={"email": "wrong@example.org", "password": "Nope-Nope-123!"}
    )
    assert response.status_code == 422


async def test_disabled_user_cannot_log_in(client, make_user, auth_headers):
    user = await make_user(email="off@example.org", disabled=True)
    response = await client.post(
        "/api/auth/login", json={"email": "off@example.org", "password": PASSWORD}
    )
    assert response.status_code == 422

    response = await client.get("/api/auth/me", headers=auth_headers(user))
    assert response.status_code == 401


async def test_me_requires_token(client):
    response = await client.get("/api/auth/me")
    assert response.status_code in (401, 403)


async def test_update_profile(client, make_user, auth_headers):
    user = await make_user()
    response = await client.put(
        "/api/auth/me", json={"name": "Kiezkoordination"}, headers=auth_headers(user)
    )
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Kiezkoordination"


@pytest.mark.parametrize("current_password", [None, "Wrong-Secret-Pass1!"])
async def test_password_change_needs_current_password(
    client, make_user, auth_headers, current_password
):
    user = await make_user(email="wechsel@example.org")
    body = {"password": NEW_PASSWORD}
    if current_password is not None:
        body["current_password"] = current_password
    response = await client.put("/api/auth/me", json=body, headers=auth_headers(user))
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_PASSWORD"

    old_login = await client.post(
        "/api/auth/login", json={"email": "wechsel@example.org", "password": PASSWORD}
    )
    assert old_login.status_code == 200


async def test_password_change_revokes_refresh_tokens(client, make_user):
    await make_user(email="neu-pw@example.org")
    tokens = (
        await client.post(
            "/api/auth/login", json={"email": "neu-pw@example.org", "password": PASSWORD}
        )
    ).json()["data"]

    response = await client.put(
        "/api/auth/me",
        json={"password": NEW_PASSWORD, "current_password": PASSWORD},
        headers={"Authorization": f"Bearer {tokens['access_token']}"},
    )
    assert response.status_code == 200

    refreshed = await client.post(
        "/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
    )
    assert refreshed.status_code == 422

    new_login = await client.post(
        "/api/auth/login", json={"email": "neu-pw@example.org", "password": NEW_PASSWORD}
    )
    assert new_login.status_code == 200


async def test_admin_manages_users(client, make_user, make_organization, auth_headers):
    admin = await make_user(Role.ADMIN)
    organizer = await make_user()
    organization = await make_organization()

    listing = await client.get("/api/auth/users", headers=auth_headers(admin))
    assert listing.status_code == 200
    assert len(listing.json()["data"]) == 2

    response = await client.put(
        f"/api/auth/users/{organizer.id}",
        json={"role": "editor", "organization_id": str(organization.id)},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    body = response.json()["data"]
    assert body["role"] == "editor"
    assert body["organization_id"] == str(organization.id)

    created = await client.post(
        "/api/auth/users",
        json={"email": "redaktion@example.org", "password": PASSWORD, "role": "editor"},
        headers=auth_headers(admin),
    )
    assert created.status_code == 201
    assert created.json()["data"]["role"] == "editor"


async def test_organizer_cannot_manage_users(client, make_user, auth_headers):
    organizer = await make_user()
    response = await client.get("/api/auth/users", headers=auth_headers(organizer))
    assert response.status_code == 403


async def test_admin_reads_single_user(client, make_user, auth_headers):
    admin = await make_user(Role.ADMIN)
    organizer = await make_user(email="kiez@example.org")

    response = await client.get(f"/api/auth/users/{organizer.id}", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["data"]["email"] == "kiez@example.org"

    missing = await client.get(f"/api/auth/users/{uuid.uuid4()}", headers=auth_headers(admin))
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "USER_NOT_FOUND"

    forbidden = await client.get(
        f"/api/auth/users/{admin.id}", headers=auth_headers(organizer)
    )
    assert forbidden.status_code == 403
