"""Tests for authentication, registration and user management."""

from datetime import timedelta

import pytest
from beanie import PydanticObjectId

from tests.conftest import TEST_PASSWORD
from winehub.config import get_settings
from winehub.models import User, UserRole
from winehub.services.auth import create_access_token, get_password_hash, verify_password


def register_payload(**overrides) -> dict:
    payload = {
        "email": "new.user@example.com",
        "password": "s3cret-pass",
        "firstName": "New",
        "lastName": "User",
    }
    payload.update(overrides)
    return payload


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = get_password_hash("correct horse")
        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)


# =============================================================================
# REGISTRATION
# =============================================================================


@pytest.mark.asyncio
async def test_self_registration_creates_viewer(unauthenticated_client) -> None:
    """Test that anonymous registration always yields a viewer."""
    response = await unauthenticated_client.post(
        "/api/auth/register",
        json=register_payload(email="New.User@Example.com", role="admin"),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["token"]
    assert body["data"]["email"] == "new.user@example.com"
    assert body["data"]["role"] == "viewer"
    assert "hashedPassword" not in body["data"]

    user = await User.find_one(User.email == "new.user@example.com")
    assert user is not None
    assert user.hashed_password != "s3cret-pass"


@pytest.mark.asyncio
async def test_register_token_authenticates(unauthenticated_client) -> None:
    response = await unauthenticated_client.post("/api/auth/register", json=register_payload())
    token = response.json()["token"]

    response = await unauthenticated_client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 200
    assert response.json()["data"]["firstName"] == "New"


@pytest.mark.asyncio
async def test_admin_registers_user_with_role(client) -> None:
    response = await client.post("/api/auth/register", json=register_payload(role="editor"))
    assert response.status_code == 201
    assert response.json()["data"]["role"] == "editor"


@pytest.mark.asyncio
async def test_editor_cannot_choose_role(editor_client) -> None:
    response = await editor_client.post("/api/auth/register", json=register_payload(role="admin"))
    assert response.status_code == 201
    assert response.json()["data"]["role"] == "viewer"


@pytest.mark.asyncio
async def test_register_duplicate_email(unauthenticated_client, viewer_user) -> None:
    """Test that emails are unique regardless of case."""
    response = await unauthenticated_client.post(
        "/api/auth/register", json=register_payload(email="VIEWER@example.com")
    )
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "User already exists"}
    assert await User.find(User.email == "viewer@example.com").count() == 1


@pytest.mark.asyncio
async def test_register_validation(unauthenticated_client) -> None:
    response = await unauthenticated_client.post(
        "/api/auth/register",
        json=register_payload(email="not-an-email", password="short"),
    )
    assert response.status_code == 400
    fields = {e["field"] for e in response.json()["errors"]}
    assert fields == {"email", "password"}


@pytest.mark.asyncio
async def test_registration_disabled(unauthenticated_client, client, monkeypatch) -> None:
    """Test that closed registration still lets admins create accounts."""
    monkeypatch.setattr(get_settings().config.auth, "registration_enabled", False)

    response = await unauthenticated_client.post("/api/auth/register", json=register_payload())
    assert response.status_code == 403
    assert response.json()["message"] == "Registration is disabled"

    response = await client.post("/api/auth/register", json=register_payload())
    assert response.status_code == 201


# =============================================================================
# LOGIN
# =============================================================================


@pytest.mark.asyncio
async def test_login(unauthenticated_client, editor_user) -> None:
    """Test logging in with the stored password, email in any case."""
    response = await unauthenticated_client.post(
        "/api/auth/login",
        json={"email": "Editor@Example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["token"]
    assert body["data"]["id"] == str(editor_user.id)
    assert body["data"]["lastLogin"] is not None

    stored = await User.get(editor_user.id)
    assert stored.last_login is not None


@pytest.mark.asyncio
async def test_login_wrong_password(unauthenticated_client, editor_user) -> None:
    response = await unauthenticated_client.post(
        "/api/auth/login",
        json={"email": "editor@example.com", "password": "wrong"},
    )
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid credentials"}


@pytest.mark.asyncio
async def test_login_unknown_and_inactive_users(unauthenticated_client, user_factory) -> None:
    """Test that unknown and deactivated accounts get the same answer."""
    await user_factory("sleeping@example.com", UserRole.EDITOR, is_active=False)

    for email in ("nobody@example.com", "sleeping@example.com"):
        response = await unauthenticated_client.post(
            "/api/auth/login", json={"email": email, "password": TEST_PASSWORD}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"


# =============================================================================
# TOKENS AND PROFILE
# =============================================================================


@pytest.mark.asyncio
async def test_me(editor_client, editor_user) -> None:
    response = await editor_client.get("/api/auth/me")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["email"] == "editor@example.com"
    assert data["role"] == "editor"
    assert data["isActive"] is True


@pytest.mark.asyncio
async def test_me_rejects_bad_tokens(unauthenticated_client, editor_user) -> None:
    """Test missing, malformed, expired and orphaned tokens."""
    response = await unauthenticated_client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["message"] == "Not authorized, no valid token"

    expired = create_access_token(str(editor_user.id), expires_delta=timedelta(minutes=-1))
    orphan = create_access_token(str(PydanticObjectId()))
    for token in ("garbage", expired, orphan, create_access_token("not-an-id")):
        response = await unauthenticated_client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401


@pytest.mark.asyncio
async def test_deactivated_user_token_rejected(editor_user, client_factory) -> None:
    async with client_factory(editor_user) as editor_client:
        editor_user.is_active = False
        await editor_user.save()

        response = await editor_client.get("/api/auth/me")
        assert response.status_code == 401


@pytest.mark.asyncio
async def test_update_me(editor_client, unauthenticated_client) -> None:
    """Test changing name and password on the own account."""
    response = await editor_client.put(
        "/api/auth/me",
        json={"firstName": "Edna", "password": "brand-new-pass", "role": "admin"},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["firstName"] == "Edna"
    assert data["lastName"] == "Itor"
    assert data["role"] == "editor"

    response = await unauthenticated_client.post(
        "/api/auth/login",
        json={"email": "editor@example.com", "password": "brand-new-pass"},
    )
    assert response.status_code == 200


# =============================================================================
# USER MANAGEMENT
# =============================================================================


@pytest.mark.asyncio
async def test_list_users_admin_only(client, editor_client, viewer_user) -> None:
    response = await client.get("/api/auth/users")
    assert response.status_code == 200
    emails = {u["email"] for u in response.json()["data"]}
    assert emails == {"admin@example.com", "editor@example.com", "viewer@example.com"}

    response = await editor_client.get("/api/auth/users")
    assert response.status_code == 403
    assert response.json()["message"] == "Admin privileges required"


@pytest.mark.asyncio
async def test_admin_updates_user(client, viewer_user) -> None:
    response = await client.put(
        f"/api/auth/users/{viewer_user.id}",
        json={"role": "editor", "isActive": False},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["role"] == "editor"
    assert data["isActive"] is False

    stored = await User.get(viewer_user.id)
    assert stored.role == UserRole.EDITOR


@pytest.mark.asyncio
async def test_editor_cannot_update_users(editor_client, viewer_user) -> None:
    response = await editor_client.put(
        f"/api/auth/users/{viewer_user.id}", json={"role": "admin"}
    )
    assert response.status_code == 403
    stored = await User.get(viewer_user.id)
    assert stored.role == UserRole.VIEWER


@pytest.mark.asyncio
async def test_update_missing_user(client) -> None:
    response = await client.put(f"/api/auth/users/{PydanticObjectId()}", json={"role": "editor"})
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_delete_user(client, admin_user, viewer_user) -> None:
    """Test deleting another account and refusing to delete your own."""
    response = await client.delete(f"/api/auth/users/{admin_user.id}")
    assert response.status_code == 400
    assert response.json()["message"] == "You cannot delete your own account"

    response = await client.delete(f"/api/auth/users/{viewer_user.id}")
    assert response.status_code == 200
    assert response.json()["message"] == "User deleted successfully"
    assert await User.get(viewer_user.id) is None

    response = await client.delete(f"/api/auth/users/{viewer_user.id}")
    assert response.status_code == 404
