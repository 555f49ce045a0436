import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.enums import ErrorMessage
from app.core.errors import AuthError, IdentifierCastError
from app.db.async_session import get_async_db
from app.entities.user import RefreshToken, User
from app.repositories.user import UserRepository
from app.schemas.auth import TokenPayload

# OAuth2 scheme for async authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_PREFIX}/auth/login")


class AsyncAuthService:
    """
    Password hashing, token issuing and token verification.

    Access tokens are short-lived HS256 JWTs. Refresh tokens are opaque
    random strings stored on the user, one per device.
    """

    @staticmethod
    def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
        """Verify a password against a hash."""
        if not hashed_password:
            return False
        try:
            return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash
            return False

    @staticmethod
    def get_password_hash(password: str) -> str:
        """Hash a password for storage."""
        try:
            hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
        except ValueError as e:
            raise AuthError.hashing_failed() from e
        return hashed.decode("utf-8")

    @staticmethod
    def generate_reset_code(length: int = 6) -> str:
        """Generate a random numeric password reset code."""
        return "".join(secrets.choice(string.digits) for _ in range(length))

    @staticmethod
    def generate_random_string(length: int = 32) -> str:
        """Generate a random string for tokens."""
        alphabet = string.ascii_letters + string.digits
        return "".join(secrets.choice(alphabet) for _ in range(length))

    @classmethod
    def create_access_token(cls, user_id: int, username: str, expires_delta: Optional[timedelta] = None) -> str:
        """Create a new JWT access token."""
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        expire = datetime.now(timezone.utc) + expires_delta
        to_encode = {"sub": str(user_id), "username": username, "exp": expire}

        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    @classmethod
    def create_refresh_token(cls, device_id: str, expires_delta: Optional[timedelta] = None) -> RefreshToken:
        """Create a refresh token record for ``device_id``; the caller stores it."""
        if expires_delta is None:
            expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        return RefreshToken(
            token=cls.generate_random_string(64),
            device_id=device_id,
            expires_at=datetime.now(timezone.utc) + expires_delta,
        )

    @staticmethod
    def decode_access_token(token: str) -> TokenPayload:
        """Decode and verify an access token, mapping PyJWT failures to ``AuthError``."""
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        except jwt.PyJWTError as e:
            raise AuthError.from_jwt_error(e) from e
        return TokenPayload(**payload)

    @classmethod
    async def get_current_user(cls, db: AsyncSession, token: str) -> User:
        """Get the current authenticated user from the token."""
        token_data = cls.decode_access_token(token)
        if not token_data.sub:
            raise AuthError.unauthorized("Could not validate credentials")

        try:
            user_id = UserRepository.to_object_id(token_data.sub, "sub")
        except IdentifierCastError as e:
            raise AuthError.unauthorized("Could not validate credentials") from e

        user = await UserRepository().find_by_id(db, user_id)
        if user is None:
            raise AuthError.unauthorized("Could not validate credentials")
        return user


# Standalone async dependency functions for FastAPI
async def get_current_user_async(
    db: AsyncSession = Depends(get_async_db),
    token: str = Depends(oauth2_scheme),
) -> User:
    """Get the current authenticated user from the token (async version)."""
    return await AsyncAuthService.get_current_user(db, token)


async def get_current_active_user_async(
    current_user: User = Depends(get_current_user_async),
) -> User:
    """Check if the current user is active (async version)."""
    if not current_user.is_active:
        raise AuthError.forbidden(ErrorMessage.INACTIVE_USER)
    return current_user
