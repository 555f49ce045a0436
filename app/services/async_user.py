"""
Account lifecycle: registration, login, Google sign-in, token rotation,
logout and password reset.

Registration writes four tables (user, profile, user groups, follow) and goes
through the transaction coordinator. Single-table writes commit on the
request session.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.enums import AuthProvider, ErrorMessage
from app.core.errors import APIError, AuthError
from app.db.transaction import TransactionCoordinator
from app.entities.user import RefreshToken, User
from app.repositories.follow import FollowRepository
from app.repositories.group import UserGroupsRepository
from app.repositories.user import PasswordResetRepository, UserRepository
from app.repositories.user_profile import UserProfileRepository
from app.schemas.auth import TokenResponse, UserRegister, UserResponse
from app.services.async_auth import AsyncAuthService
from app.services.async_error_handler import handle_service_errors
from app.services.email import EmailService
from app.utils.logger import AppLogger


def generate_username(email: str) -> str:
    """``<local part>_<8 hex chars>``; the suffix makes collisions unlikely."""
    return f"{email.split('@')[0].lower()}_{secrets.token_hex(4)}"


class AsyncUserService:

    def __init__(
        self,
        db: AsyncSession,
        transactions: TransactionCoordinator,
        logger: AppLogger,
        email_service: Optional[EmailService] = None,
    ):
        self.db = db
        self.transactions = transactions
        self.logger = logger.child("user")
        self.email_service = email_service
        self.users = UserRepository()
        self.profiles = UserProfileRepository()
        self.user_groups = UserGroupsRepository()
        self.follows = FollowRepository(self.profiles)
        self.resets = PasswordResetRepository()

    @handle_service_errors("register_user", "User registration error")
    async def register_user(self, request: UserRegister) -> UserResponse:
        username = generate_username(request.email)
        refresh_token = AsyncAuthService.create_refresh_token(request.device_id)
        document = self.users.to_document(
            username=username,
            email=request.email,
            password_hash=AsyncAuthService.get_password_hash(request.password),
            refresh_tokens=[refresh_token],
            agree_to_terms=request.agree_to_terms,
        )
        user = await self._create_user(document, request.name)
        self.logger.success("User registered", user_id=user.id, username=username)
        return self._user_response(user, request.name, refresh_token)

    @handle_service_errors("login_user", "User login error")
    async def login_user(self, email: str, password: str, device_id: str) -> UserResponse:
        user = await self.users.find_by_email(self.db, email)
        if user is None:
            raise APIError.not_found(ErrorMessage.USER_NOT_FOUND)

        if not AsyncAuthService.verify_password(password, user.password_hash):
            raise AuthError.invalid_password(ErrorMessage.INVALID_PASSWORD)

        profile = await self.profiles.find_by_user_id(self.db, user.id)
        if profile is None:
            raise APIError.not_found(ErrorMessage.LOGIN_PROFILE_NOT_FOUND)

        refresh_token = AsyncAuthService.create_refresh_token(device_id)
        await self.users.store_refresh_token(self.db, user.id, refresh_token)
        await self.db.commit()

        self.logger.info("User logged in", user_id=user.id, device_id=device_id)
        return self._user_response(user, profile.name, refresh_token)

    @handle_service_errors("authenticate_with_google", "Google Auth login error")
    async def authenticate_with_google(
        self, google_user: Any, device_id: str, name: Optional[str] = None
    ) -> UserResponse:
        """
        Log in or register from a verified Google identity.

        ``google_user`` is the ``OpenID`` returned by fastapi-sso and carries
        ``id``, ``email`` and ``display_name``.
        """
        email = google_user.email
        if not email:
            raise APIError.bad_request("Email is required")
        display_name = name or google_user.display_name or email.split("@")[0]

        user = await self.users.find_by_google_id(self.db, google_user.id)
        if user is not None:
            return await self._login_existing_google_user(user, device_id)

        username = generate_username(email)
        if await self.users.find_by_email_or_username(self.db, email, username) is not None:
            raise APIError.conflict(ErrorMessage.GOOGLE_ACCOUNT_CONFLICT)

        refresh_token = AsyncAuthService.create_refresh_token(device_id)
        document = self.users.to_document(
            username=username,
            email=email,
            refresh_tokens=[refresh_token],
            auth_provider=AuthProvider.google,
            google_id=google_user.id,
            agree_to_terms=True,
        )
        user = await self._create_user(document, display_name)
        self.logger.success("User registered with Google", user_id=user.id, username=username)

        if self.email_service is not None:
            self.email_service.send_welcome_email(user.email, user.username)
        return self._user_response(user, display_name, refresh_token)

    @handle_service_errors("refresh_tokens", "An error occurred while refreshing tokens")
    async def refresh_tokens(self, refresh_token: str, device_id: str) -> TokenResponse:
        user = await self.users.find_by_refresh_token(self.db, refresh_token, device_id)
        if user is None:
            raise AuthError.forbidden(ErrorMessage.INVALID_REFRESH_TOKEN)

        record = user.find_refresh_token(refresh_token, device_id)
        if record.expires_at < datetime.now(timezone.utc):
            await self.users.remove_refresh_token(self.db, user.id, refresh_token, device_id)
            await self.db.commit()
            self.logger.warning(ErrorMessage.REFRESH_TOKEN_EXPIRED, user_id=user.id, device_id=device_id)
            raise AuthError.forbidden(ErrorMessage.INVALID_REFRESH_TOKEN)

        new_refresh_token = AsyncAuthService.create_refresh_token(device_id)
        await self.users.store_refresh_token(self.db, user.id, new_refresh_token)
        await self.db.commit()

        return TokenResponse(
            access_token=AsyncAuthService.create_access_token(user.id, user.username),
            refresh_token=new_refresh_token.token,
        )

    @handle_service_errors("logout_user", "An error occurred during logout.")
    async def logout_user(self, refresh_token: str, device_id: str) -> None:
        user = await self.users.find_by_refresh_token(self.db, refresh_token, device_id)
        if user is None:
            raise APIError.not_found(ErrorMessage.USER_NOT_FOUND)

        await self.users.remove_refresh_token(self.db, user.id, refresh_token, device_id)
        await self.db.commit()
        self.logger.info("User logged out", user_id=user.id, device_id=device_id)

    @handle_service_errors("request_password_reset", "Request password reset error")
    async def request_password_reset(self, email: str) -> None:
        user = await self.users.find_by_email(self.db, email)
        if user is None:
            raise APIError.not_found(ErrorMessage.USER_NOT_FOUND)
        if user.auth_provider != AuthProvider.local.value:
            raise APIError.bad_request(ErrorMessage.GOOGLE_PASSWORD_RESET)

        code = AsyncAuthService.generate_reset_code()
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.PASSWORD_RESET_CODE_EXPIRE_MINUTES)

        async def replace_codes(session: AsyncSession):
            await self.resets.delete_for_user(session, user.id)
            return await self.resets.create(session, self.resets.to_document(user.id, user.email, code, expires_at))

        await self.transactions.execute(
            "request_password_reset", replace_codes, failure_message="Request password reset error"
        )

        if self.email_service is not None:
            self.email_service.send_password_reset_code(user.email, code, user.username)
        self.logger.info("Password reset code issued", user_id=user.id)

    @handle_service_errors("reset_password_with_code", "An error occurred while resetting the password.")
    async def reset_password_with_code(self, email: str, reset_code: str, new_password: str) -> None:
        reset = await self.resets.find_by_code(self.db, email, reset_code)
        if reset is None:
            raise APIError.bad_request(ErrorMessage.INVALID_CODE)

        if reset.expires_at < datetime.now(timezone.utc):
            await self.resets.delete_by_id(self.db, reset.id)
            await self.db.commit()
            raise APIError.bad_request(ErrorMessage.EXPIRED_CODE)

        user = await self.users.find_by_id(self.db, reset.user_id)
        if user is None:
            self.logger.error("User not found for a valid reset request", user_id=reset.user_id)
            await self.resets.delete_by_id(self.db, reset.id)
            await self.db.commit()
            raise APIError.not_found(ErrorMessage.USER_NOT_FOUND)

        await self.users.update_by_id(
            self.db,
            user.id,
            {
                "password_hash": AsyncAuthService.get_password_hash(new_password),
                "refresh_tokens": [],
            },
        )
        await self.resets.delete_by_id(self.db, reset.id)
        await self.db.commit()
        self.logger.success("Password reset", user_id=user.id)

    @handle_service_errors("expire_refresh_token", "Error expiring refresh token")
    async def expire_refresh_token(self, refresh_token: str, device_id: str) -> None:
        """Mark a refresh token as expired now. Used to exercise the expiry path."""
        user = await self.users.find_by_refresh_token(self.db, refresh_token, device_id)
        if user is None:
            raise APIError.not_found(ErrorMessage.TOKEN_NOT_FOUND)

        await self.users.expire_refresh_token(
            self.db, user.id, refresh_token, device_id, datetime.now(timezone.utc)
        )
        await self.db.commit()

    async def _login_existing_google_user(self, user: User, device_id: str) -> UserResponse:
        profile = await self.profiles.find_by_user_id(self.db, user.id)
        if profile is None:
            raise APIError.not_found(ErrorMessage.LOGIN_PROFILE_NOT_FOUND)

        refresh_token = AsyncAuthService.create_refresh_token(device_id)
        await self.users.store_refresh_token(self.db, user.id, refresh_token)
        await self.db.commit()

        self.logger.info("User logged in with Google", user_id=user.id, device_id=device_id)
        return self._user_response(user, profile.name, refresh_token)

    async def _create_user(self, document: Mapping[str, Any], name: str) -> User:
        """Create the user, then its profile, user-groups and follow documents, atomically."""

        async def create_user(session: AsyncSession) -> User:
            existing = await self.users.find_by_email_or_username(session, document["email"], document["username"])
            if existing is not None:
                raise APIError.conflict(ErrorMessage.USER_ALREADY_EXISTS)
            return await self.users.create(session, dict(document))

        def create_related(session: AsyncSession, user: User):
            return [
                lambda: self.profiles.create(session, self.profiles.to_document(user.id, user.username, name)),
                lambda: self.user_groups.create(session, self.user_groups.to_document(user.id)),
                lambda: self.follows.create(session, self.follows.to_document(user.id)),
            ]

        return await self.transactions.execute(
            "create_user", create_user, create_related, failure_message="User registration error"
        )

    @staticmethod
    def _user_response(user: User, name: str, refresh_token: RefreshToken) -> UserResponse:
        return UserResponse(
            user_id=str(user.id),
            username=user.username,
            name=name,
            access_token=AsyncAuthService.create_access_token(user.id, user.username),
            refresh_token=refresh_token.token,
        )
