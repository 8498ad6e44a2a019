"""API tests for /api/auth and the authentication errors of protected routes."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import SecurityService
from app.db.session import get_session
from app.main import app

DEFAULT_PASSWORD = "secret123"


class TestRegister:
    """Tests for POST /api/auth/register."""

    async def test_register_user_returns_token_and_sends_welcome(self, client, mailer) -> None:
        response = await client.post(
            "/api/auth/register",
            json={"name": "Meera", "email": "Meera@Example.com", "password": "secret123"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["token"]
        assert data["user"]["email"] == "meera@example.com"
        assert data["user"]["role"] == "user"
        assert "password" not in data["user"]
        assert "access_token" in response.cookies
        assert mailer.sent == [
            {"template": "welcome", "to": "meera@example.com", "account_type": "user"}
        ]

    async def test_register_institute_requires_location(self, client) -> None:
        response = await client.post(
            "/api/auth/register",
            json={
                "name": "Bright Minds",
                "email": "bright@example.com",
                "password": "secret123",
                "userType": "institute",
                "category": "coaching",
            },
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    async def test_register_institute_account(self, client) -> None:
        response = await client.post(
            "/api/auth/register",
            json={
                "name": "Bright Minds",
                "email": "bright@example.com",
                "password": "secret123",
                "userType": "institute",
                "category": "coaching",
                "city": "Pune",
                "state": "Maharashtra",
            },
        )

        assert response.status_code == 201
        user = response.json()["user"]
        assert user["role"] == "institute"
        assert user["institute"] == user["id"]

    async def test_duplicate_email_is_conflict(self, client, make_user) -> None:
        user = await make_user()

        response = await client.post(
            "/api/auth/register",
            json={"name": "Again", "email": user.email, "password": "secret123"},
        )

        assert response.status_code == 409
        assert response.json()["code"] == "EMAIL_EXISTS"


class TestLogin:
    """Tests for POST /api/auth/login."""

    async def test_login_ok(self, client, make_user) -> None:
        user = await make_user()

        response = await client.post(
            "/api/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == str(user.id)
        assert response.json()["token"]

    async def test_wrong_password(self, client, make_user) -> None:
        user = await make_user()

        response = await client.post(
            "/api/auth/login", json={"email": user.email, "password": "not-the-one"}
        )

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_CREDENTIALS"

    async def test_inactive_account_cannot_login(self, client, make_user) -> None:
        user = await make_user(status="suspended")

        response = await client.post(
            "/api/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 401
        assert response.json()["code"] == "ACCOUNT_DEACTIVATED"

    async def test_admin_login(self, client, make_admin) -> None:
        admin = await make_admin()

        response = await client.post(
            "/api/auth/login",
            json={"email": admin.email, "password": DEFAULT_PASSWORD, "userType": "admin"},
        )

        assert response.status_code == 200
        assert response.json()["user"]["role"] == "admin"
        assert response.json()["user"]["account"] == "admin"


class TestProfile:
    """Tests for the profile and password endpoints."""

    async def test_get_profile(self, client, make_user, auth_headers) -> None:
        user = await make_user()

        response = await client.get("/api/auth/profile", headers=await auth_headers(user))

        assert response.status_code == 200
        assert response.json()["user"]["email"] == user.email
        assert "password" not in response.json()["user"]

    async def test_update_profile_merges_preferences(self, client, make_user, auth_headers) -> None:
        user = await make_user()

        response = await client.put(
            "/api/auth/profile",
            headers=await auth_headers(user),
            json={"bio": "Parent of two", "preferences": {"newsletter": False}},
        )

        assert response.status_code == 200
        updated = response.json()["user"]
        assert updated["bio"] == "Parent of two"
        assert updated["preferences"] == {
            "emailNotifications": True,
            "smsNotifications": False,
            "newsletter": False,
        }

    async def test_change_password(self, client, make_user, auth_headers) -> None:
        user = await make_user()
        headers = await auth_headers(user)

        wrong = await client.put(
            "/api/auth/change-password",
            headers=headers,
            json={"currentPassword": "nope", "newPassword": "brand-new-1"},
        )
        ok = await client.put(
            "/api/auth/change-password",
            headers=headers,
            json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "brand-new-1"},
        )
        login = await client.post(
            "/api/auth/login", json={"email": user.email, "password": "brand-new-1"}
        )

        assert wrong.status_code == 400
        assert wrong.json()["code"] == "INVALID_PASSWORD"
        assert ok.status_code == 200
        assert login.status_code == 200


class TestAuthenticationErrors:
    """Every 401 flavour of a protected endpoint."""

    async def test_no_token(self, client) -> None:
        client.cookies.clear()

        response = await client.get("/api/auth/profile")

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "message": "Access denied. No authentication token provided.",
            "code": "NO_TOKEN",
        }

    async def test_expired_token(self, client, make_user) -> None:
        user = await make_user()
        token = await SecurityService().create_access_token(
            str(user.id), expires_delta=timedelta(seconds=-10)
        )

        response = await client.get(
            "/api/auth/profile", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json()["code"] == "TOKEN_EXPIRED"

    async def test_invalid_token(self, client) -> None:
        response = await client.get(
            "/api/auth/profile", headers={"Authorization": "Bearer garbage"}
        )

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_TOKEN"

    async def test_deleted_user(self, client, db, make_user, auth_headers) -> None:
        user = await make_user()
        headers = await auth_headers(user)
        await db.delete(user)
        await db.commit()

        response = await client.get("/api/auth/profile", headers=headers)

        assert response.status_code == 401
        assert response.json()["code"] == "USER_NOT_FOUND"

    async def test_deactivated_user(self, client, make_user, auth_headers) -> None:
        user = await make_user(status="inactive")

        response = await client.get("/api/auth/profile", headers=await auth_headers(user))

        assert response.status_code == 401
        assert response.json()["code"] == "ACCOUNT_DEACTIVATED"

    async def test_signed_token_without_subject(self, client) -> None:
        security = SecurityService()
        token = jwt.encode(
            {"account": "user", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            security.secret_key,
            algorithm=security.algorithm,
        )

        response = await client.get(
            "/api/auth/profile", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "message": "Authentication failed.",
            "code": "AUTH_FAILED",
        }

    async def test_lookup_failure_is_server_error(self, client, make_user, auth_headers) -> None:
        headers = await auth_headers(await make_user())
        broken = AsyncMock(spec=AsyncSession)
        broken.get.side_effect = RuntimeError("connection reset")
        app.dependency_overrides[get_session] = lambda: broken

        response = await client.get("/api/auth/profile", headers=headers)

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Authentication server error.",
            "code": "SERVER_ERROR",
        }
        broken.get.assert_awaited_once()
