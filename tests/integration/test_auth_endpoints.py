"""
Integration tests for the authentication endpoints.

Covers registration (including its all-or-nothing write of the user, profile,
group list and follow documents), login, token refresh and expiry, logout and
password reset by code.
"""

import pytest
from sqlalchemy import func, select

from app.models.follow import Follow
from app.models.user import User
from app.models.user_profile import UserProfile
from app.repositories.follow import FollowRepository

AUTH = "/api/v1/auth"


async def count_rows(session_factory, model) -> int:
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar()


class TestRegister:

    async def test_register_creates_user_and_related_documents(self, client, register, session_factory):
        """
        Registration returns tokens and writes every dependent document.
        """
        # Act
        body = await register(name="Jane Runner", email="jane@example.com")

        # Assert
        assert body["name"] == "Jane Runner"
        assert body["username"].startswith("jane_")
        assert body["token_type"] == "bearer"
        assert "password" not in body and "password_hash" not in body
        assert await count_rows(session_factory, User) == 1
        assert await count_rows(session_factory, UserProfile) == 1
        assert await count_rows(session_factory, Follow) == 1

        me = await client.get("/api/v1/user-profile/me", headers=body["headers"])
        assert me.status_code == 200
        assert me.json()["name"] == "Jane Runner"

    async def test_duplicate_email_conflicts(self, client, register):
        await register(email="dup@example.com")

        response = await client.post(
            f"{AUTH}/register",
            json={
                "email": "dup@example.com",
                "password": "secure_password123",
                "name": "Again",
                "device_id": "d",
            },
        )

        assert response.status_code == 409
        assert response.json()["message"] == "User already exists"

    async def test_failed_secondary_write_leaves_no_user(self, client, register, session_factory, monkeypatch):
        async def broken_create(self, db, document):
            raise RuntimeError("follow storage unavailable")

        monkeypatch.setattr(FollowRepository, "create", broken_create)

        response = await client.post(
            f"{AUTH}/register",
            json={
                "email": "atomic@example.com",
                "password": "secure_password123",
                "name": "Atomic",
                "device_id": "d",
            },
        )

        assert response.status_code == 500
        assert response.json()["message"] == "User registration error"
        assert await count_rows(session_factory, User) == 0
        assert await count_rows(session_factory, UserProfile) == 0

        # The email is still free once storage recovers
        monkeypatch.undo()
        await register(email="atomic@example.com")

    async def test_invalid_body_is_validation_error(self, client):
        response = await client.post(f"{AUTH}/register", json={"email": "not-an-email", "password": "short"})

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        fields = {e["field"] for e in body["details"]["errors"]}
        assert {"email", "password", "name", "device_id"} <= fields


class TestLogin:

    async def test_login(self, client, register):
        await register(name="Login User", email="login@example.com")

        response = await client.post(
            f"{AUTH}/login",
            json={"email": "login@example.com", "password": "secure_password123", "device_id": "laptop"},
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Login User"

    async def test_wrong_password(self, client, register):
        await register(email="login@example.com")

        response = await client.post(
            f"{AUTH}/login",
            json={"email": "login@example.com", "password": "wrong_password", "device_id": "laptop"},
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_PASSWORD"

    async def test_unknown_email(self, client):
        response = await client.post(
            f"{AUTH}/login",
            json={"email": "nobody@example.com", "password": "secure_password123", "device_id": "laptop"},
        )

        assert response.status_code == 404

    async def test_missing_token_is_unauthorized(self, client):
        response = await client.get("/api/v1/user-profile/me")

        assert response.status_code == 401


class TestRefreshTokens:

    async def test_refresh_rotates_token(self, client, register):
        user = await register()
        payload = {"refresh_token": user["refresh_token"], "device_id": "test-device"}

        response = await client.post(f"{AUTH}/refresh", json=payload)

        assert response.status_code == 200
        assert response.json()["refresh_token"] != user["refresh_token"]

    async def test_refresh_with_wrong_device(self, client, register):
        user = await register()

        response = await client.post(
            f"{AUTH}/refresh", json={"refresh_token": user["refresh_token"], "device_id": "other-device"}
        )

        assert response.status_code == 403

    async def test_expired_refresh_token(self, client, register):
        user = await register()
        payload = {"refresh_token": user["refresh_token"], "device_id": "test-device"}

        expired = await client.post(f"{AUTH}/expire-refresh-token", json=payload)
        assert expired.status_code == 200

        response = await client.post(f"{AUTH}/refresh", json=payload)
        assert response.status_code == 403
        assert response.json()["message"] == "Invalid refresh token"

    async def test_logout_removes_token(self, client, register):
        user = await register()
        payload = {"refresh_token": user["refresh_token"], "device_id": "test-device"}

        assert (await client.post(f"{AUTH}/logout", json=payload)).status_code == 200
        assert (await client.post(f"{AUTH}/refresh", json=payload)).status_code == 403


class TestPasswordReset:

    async def test_reset_with_emailed_code(self, client, register, email_service):
        await register(email="reset@example.com")

        response = await client.post(f"{AUTH}/password-reset/request", json={"email": "reset@example.com"})
        assert response.status_code == 200

        to_email, code, _ = email_service.send_password_reset_code.call_args[0]
        assert to_email == "reset@example.com"

        confirm = await client.post(
            f"{AUTH}/password-reset/confirm",
            json={"email": "reset@example.com", "reset_code": code, "new_password": "another_password1"},
        )
        assert confirm.status_code == 200

        login = await client.post(
            f"{AUTH}/login",
            json={"email": "reset@example.com", "password": "another_password1", "device_id": "d"},
        )
        assert login.status_code == 200

    @pytest.mark.parametrize("code", ["000000", "999999"])
    async def test_wrong_code(self, client, register, email_service, code):
        await register(email="reset@example.com")
        await client.post(f"{AUTH}/password-reset/request", json={"email": "reset@example.com"})
        sent_code = email_service.send_password_reset_code.call_args[0][1]
        if sent_code == code:
            pytest.skip("generated code matched the guess")

        response = await client.post(
            f"{AUTH}/password-reset/confirm",
            json={"email": "reset@example.com", "reset_code": code, "new_password": "another_password1"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid Code"
