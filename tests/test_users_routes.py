from __future__ import annotations

from datetime import timedelta

import jwt

from app.core import config
from app.features.permissions.grants import encode_permission_key
from app.features.users.auth import create_access_token


async def test_requires_bearer_token(async_client, create_user) -> None:
    response = await async_client.get("/users/me")

    assert response.status_code in (401, 403)


async def test_rejects_token_signed_with_another_secret(async_client, create_user) -> None:
    user = await create_user("forged@example.com", ["admin"])
    token = jwt.encode({"sub": user.id, "exp": 4102444800}, "not-the-secret", algorithm="HS256")

    response = await async_client.get("/users/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


async def test_rejects_expired_token(async_client, create_user) -> None:
    user = await create_user("expired@example.com", ["admin"])
    token = create_access_token(user.id, expires_in=timedelta(seconds=-10))

    response = await async_client.get("/users/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Token has expired"


async def test_deactivated_user_is_forbidden(async_client, create_user, auth_headers) -> None:
    user = await create_user("inactive@example.com", ["admin"], is_active=False)

    response = await async_client.get("/users/me", headers=auth_headers(user))

    assert response.status_code == 403


async def test_me_reports_roles(async_client, create_user, auth_headers) -> None:
    user = await create_user("me@example.com", ["viewer", "editor"])

    response = await async_client.get("/users/me", headers=auth_headers(user))

    assert response.status_code == 200, response.text
    payload = response.json()
    assert payload["roles"] == ["editor", "viewer"]
    assert payload["primary_role"] == "editor"
    assert "permissions" not in payload


async def test_list_users_requires_permission(async_client, create_user, auth_headers) -> None:
    viewer = await create_user("viewer@example.com", ["viewer"])

    response = await async_client.get("/users/", headers=auth_headers(viewer))

    assert response.status_code == 403
    assert response.json()["detail"] == "Permission denied: list users"


async def test_list_users_filters_by_role(async_client, create_user, auth_headers) -> None:
    admin = await create_user("admin@example.com", ["admin"])
    await create_user("viewer@example.com", ["viewer"])
    await create_user("author@example.com", ["author"])

    response = await async_client.get("/users/", params={"role": "author"}, headers=auth_headers(admin))

    assert response.status_code == 200
    assert [user["email"] for user in response.json()] == ["author@example.com"]


async def test_create_user_with_roles(async_client, create_user, auth_headers) -> None:
    admin = await create_user("admin@example.com", ["admin"])

    response = await async_client.post(
        "/users/",
        json={"email": "new@example.com", "name": "New User", "roles": ["author"]},
        headers=auth_headers(admin),
    )

    assert response.status_code == 201, response.text
    assert response.json()["roles"] == ["author"]

    duplicate = await async_client.post(
        "/users/",
        json={"email": "new@example.com", "name": "Again"},
        headers=auth_headers(admin),
    )
    assert duplicate.status_code == 409


async def test_create_user_rejects_unknown_role(async_client, create_user, auth_headers) -> None:
    admin = await create_user("admin@example.com", ["admin"])

    response = await async_client.post(
        "/users/",
        json={"email": "new@example.com", "name": "New User", "roles": ["not-a-role"]},
        headers=auth_headers(admin),
    )

    assert response.status_code == 400


async def test_update_user_profile(async_client, create_user, auth_headers) -> None:
    admin = await create_user("admin@example.com", ["admin"])
    target = await create_user("target@example.com", ["viewer"])

    response = await async_client.patch(
        f"/users/{target.id}", json={"name": "Renamed"}, headers=auth_headers(admin)
    )

    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"
    assert response.json()["roles"] == ["viewer"]


async def test_assign_and_remove_role(async_client, create_user, auth_headers) -> None:
    admin = await create_user("admin@example.com", ["admin"])
    target = await create_user("target@example.com", ["viewer"])
    headers = auth_headers(admin)

    assigned = await async_client.post(f"/users/{target.id}/roles", json={"role": "editor"}, headers=headers)
    assert assigned.status_code == 200, assigned.text
    assert assigned.json()["roles"] == ["editor", "viewer"]

    removed = await async_client.delete(f"/users/{target.id}/roles/editor", headers=headers)
    assert removed.status_code == 200
    assert removed.json() == {"user_id": target.id, "role": "editor", "removed": True}

    again = await async_client.delete(f"/users/{target.id}/roles/editor", headers=headers)
    assert again.status_code == 404

    status = await async_client.get(f"/users/{target.id}/permissions", headers=headers)
    stories = {p["name"]: p["active"] for p in status.json()["groups"]["Story Management"]}
    # Still conferred by viewer
    assert stories["list stories"] is True
    assert stories["publish stories"] is False


async def test_remove_role_rejects_permission_names(async_client, create_user, auth_headers) -> None:
    admin = await create_user("admin@example.com", ["admin"])
    target = await create_user("target@example.com", ["viewer"])
    headers = auth_headers(admin)

    response = await async_client.delete(f"/users/{target.id}/roles/list stories", headers=headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Unknown role: list stories"

    status = await async_client.get(f"/users/{target.id}/permissions", headers=headers)
    stories = {p["name"]: p["active"] for p in status.json()["groups"]["Story Management"]}
    assert stories["list stories"] is True
    assert status.json()["roles"] == ["viewer"]


async def test_list_users_paginates(async_client, create_user, auth_headers) -> None:
    admin = await create_user("admin@example.com", ["admin"])
    await create_user("a@example.com", ["viewer"])
    await create_user("b@example.com", ["author"])
    await create_user("c@example.com", ["viewer"])
    headers = auth_headers(admin)

    everyone = await async_client.get("/users/", headers=headers)
    page = await async_client.get("/users/", params={"skip": 1, "limit": 2}, headers=headers)
    viewers = await async_client.get("/users/", params={"role": "viewer", "skip": 1}, headers=headers)

    emails = [user["email"] for user in everyone.json()]
    assert len(emails) == 4
    assert [user["email"] for user in page.json()] == emails[1:3]
    assert len(viewers.json()) == 1
    assert viewers.json()[0]["email"] in {"a@example.com", "c@example.com"}


async def test_only_super_admin_manages_super_admin_role(async_client, create_user, auth_headers) -> None:
    admin = await create_user("admin@example.com", ["admin"])
    root = await create_user("root@example.com", ["super-admin"])
    target = await create_user("target@example.com")

    denied = await async_client.post(
        f"/users/{target.id}/roles", json={"role": "super-admin"}, headers=auth_headers(admin)
    )
    assert denied.status_code == 403

    granted = await async_client.post(
        f"/users/{target.id}/roles", json={"role": "super-admin"}, headers=auth_headers(root)
    )
    assert granted.status_code == 200
    assert granted.json()["primary_role"] == "super-admin"

    removal = await async_client.delete(f"/users/{target.id}/roles/super-admin", headers=auth_headers(admin))
    assert removal.status_code == 403


async def test_permission_editor_round_trip(async_client, create_user, auth_headers) -> None:
    admin = await create_user("admin@example.com", ["admin"])
    target = await create_user("target@example.com", ["viewer"])
    headers = auth_headers(admin)

    status = await async_client.get(f"/users/{target.id}/permissions", headers=headers)
    assert status.status_code == 200
    entries = {p["name"]: p for group in status.json()["groups"].values() for p in group}
    assert entries["view analytics"]["active"] is True

    response = await async_client.patch(
        f"/users/{target.id}/permissions",
        json={"permissions": {
            entries["view logs"]["key"]: True,
            entries["view analytics"]["key"]: False,
        }},
        headers=headers,
    )

    assert response.status_code == 200, response.text
    updated = {p["name"]: p["active"] for group in response.json()["groups"].values() for p in group}
    assert updated["view logs"] is True
    assert updated["view analytics"] is False
    assert updated["list stories"] is True
    assert response.json()["roles"] == ["viewer"]


async def test_permission_editor_rejects_bad_keys(async_client, create_user, auth_headers) -> None:
    admin = await create_user("admin@example.com", ["admin"])
    target = await create_user("target@example.com")
    headers = auth_headers(admin)

    garbage = await async_client.patch(
        f"/users/{target.id}/permissions", json={"permissions": {"not base64!": True}}, headers=headers
    )
    assert garbage.status_code == 400

    role_key = await async_client.patch(
        f"/users/{target.id}/permissions",
        json={"permissions": {encode_permission_key("super-admin"): True}},
        headers=headers,
    )
    assert role_key.status_code == 400


async def test_delete_user_rules(async_client, create_user, auth_headers) -> None:
    manager = await create_user("manager@example.com", ["admin"], grants={"delete users": True})
    root = await create_user("root@example.com", ["super-admin"])
    target = await create_user("target@example.com", ["viewer"])
    headers = auth_headers(manager)

    assert (await async_client.delete(f"/users/{manager.id}", headers=headers)).status_code == 400
    assert (await async_client.delete(f"/users/{root.id}", headers=headers)).status_code == 403
    assert (await async_client.delete(f"/users/{target.id}", headers=headers)).status_code == 204

    missing = await async_client.get(f"/users/{target.id}", headers=auth_headers(root))
    assert missing.status_code == 404


async def test_admin_without_delete_permission_cannot_delete(async_client, create_user, auth_headers) -> None:
    admin = await create_user("admin@example.com", ["admin"])
    target = await create_user("target@example.com", ["viewer"])

    response = await async_client.delete(f"/users/{target.id}", headers=auth_headers(admin))

    assert response.status_code == 403


async def test_tokens_use_configured_algorithm(create_user) -> None:
    user = await create_user("token@example.com")

    payload = jwt.decode(create_access_token(user.id), config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])

    assert payload["sub"] == user.id
