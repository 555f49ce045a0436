"""
Async unit tests for AsyncAuthService.

Covers password hashing, reset codes, access and refresh token issuing,
token decoding and the mapping of PyJWT failures onto ``AuthError`` codes.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import jwt
import pytest

from app.core.config import settings
from app.core.errors import AuthError
from app.entities.user import User
from app.services.async_auth import AsyncAuthService, get_current_active_user_async
from tests.utils_jwt import generate_test_jwt


class TestPasswords:

    def test_password_hashing_and_verification(self):
        """
        Hashes verify against the original password and nothing else.
        """
        # Arrange
        password = "secure_password123"

        # Act
        hashed = AsyncAuthService.get_password_hash(password)

        # Assert
        assert hashed != password
        assert AsyncAuthService.verify_password(password, hashed) is True
        assert AsyncAuthService.verify_password("wrong_password", hashed) is False

    def test_verify_against_missing_or_malformed_hash(self):
        assert AsyncAuthService.verify_password("secret", None) is False
        assert AsyncAuthService.verify_password("secret", "not-a-bcrypt-hash") is False

    def test_reset_code_is_six_digits(self):
        code = AsyncAuthService.generate_reset_code()

        assert len(code) == 6
        assert code.isdigit()

    def test_random_string_length(self):
        assert len(AsyncAuthService.generate_random_string(64)) == 64


class TestTokens:

    def test_access_token_round_trip(self):
        token = AsyncAuthService.create_access_token(12, "testuser")

        payload = AsyncAuthService.decode_access_token(token)

        assert payload.sub == "12"

    def test_refresh_token_is_bound_to_device(self):
        refresh = AsyncAuthService.create_refresh_token("phone-1")

        assert refresh.device_id == "phone-1"
        assert len(refresh.token) == 64
        assert refresh.expires_at > datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS - 1)

    def test_expired_token(self):
        token = generate_test_jwt(expires_in=timedelta(seconds=-10))

        with pytest.raises(AuthError) as exc_info:
            AsyncAuthService.decode_access_token(token)

        assert exc_info.value.status_code == 401
        assert exc_info.value.error_code == "TOKEN_EXPIRED"

    def test_token_signed_with_another_key(self):
        token = jwt.encode({"sub": "1"}, "another-key", algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(AuthError) as exc_info:
            AsyncAuthService.decode_access_token(token)

        assert exc_info.value.error_code == "INVALID_TOKEN"

    def test_token_not_yet_valid(self):
        nbf = datetime.now(timezone.utc) + timedelta(hours=1)
        token = jwt.encode(
            {"sub": "1", "nbf": nbf, "exp": nbf + timedelta(hours=1)},
            settings.SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
        )

        with pytest.raises(AuthError) as exc_info:
            AsyncAuthService.decode_access_token(token)

        assert exc_info.value.error_code == "TOKEN_NOT_ACTIVE"

    def test_unknown_error_maps_to_auth_failed(self):
        error = AuthError.from_jwt_error(RuntimeError("unexpected"))

        assert error.status_code == 401
        assert error.error_code == "AUTH_FAILED"


class TestCurrentUser:

    async def test_token_with_non_numeric_subject(self):
        token = generate_test_jwt(user_id="abc")

        with pytest.raises(AuthError) as exc_info:
            await AsyncAuthService.get_current_user(AsyncMock(), token)

        assert exc_info.value.status_code == 401

    async def test_unknown_user(self):
        token = generate_test_jwt(user_id=99)

        with patch("app.services.async_auth.UserRepository.find_by_id", new=AsyncMock(return_value=None)):
            with pytest.raises(AuthError) as exc_info:
                await AsyncAuthService.get_current_user(AsyncMock(), token)

        assert exc_info.value.message == "Could not validate credentials"

    async def test_inactive_user_is_forbidden(self):
        user = User(id=1, username="a", email="a@example.com", is_active=False)

        with pytest.raises(AuthError) as exc_info:
            await get_current_active_user_async(user)

        assert exc_info.value.status_code == 403
