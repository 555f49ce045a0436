from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import String, cast, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import AuthProvider
from app.entities.user import PasswordReset, RefreshToken, User, validate_password_reset, validate_user
from app.models.auth import PasswordReset as PasswordResetModel
from app.models.user import User as UserModel
from app.repositories.base import BaseRepository, aware, dump_datetime, load_datetime


class UserRepository(BaseRepository[UserModel, User]):

    def __init__(self):
        super().__init__(UserModel, validate_user)

    def to_document(
        self,
        *,
        username: str,
        email: str,
        password_hash: Optional[str] = None,
        refresh_tokens: Optional[List[RefreshToken]] = None,
        auth_provider: AuthProvider = AuthProvider.local,
        google_id: Optional[str] = None,
        agree_to_terms: bool = False,
    ) -> Dict[str, Any]:
        return {
            "username": username,
            "email": email.lower(),
            "password_hash": password_hash,
            "auth_provider": auth_provider.value,
            "google_id": google_id,
            "agree_to_terms": agree_to_terms,
            "is_active": True,
            "refresh_tokens": self.dump_tokens(refresh_tokens or []),
        }

    @staticmethod
    def dump_tokens(tokens: List[RefreshToken]) -> List[Dict[str, Any]]:
        return [
            {"token": t.token, "device_id": t.device_id, "expires_at": dump_datetime(t.expires_at)}
            for t in tokens
        ]

    def to_entity(self, row: Optional[UserModel]) -> Optional[User]:
        if row is None:
            return None
        return User(
            id=row.id,
            username=row.username,
            email=row.email,
            password_hash=row.password_hash,
            is_active=row.is_active,
            device_token=row.device_token,
            google_id=row.google_id,
            auth_provider=row.auth_provider,
            agree_to_terms=row.agree_to_terms,
            refresh_tokens=[
                RefreshToken(
                    token=t["token"],
                    device_id=t["device_id"],
                    expires_at=load_datetime(t["expires_at"]),
                )
                for t in row.refresh_tokens or []
            ],
            created_at=aware(row.created_at),
            updated_at=aware(row.updated_at),
        )

    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        return await self.find_one(db, email=email.lower())

    async def find_by_google_id(self, db: AsyncSession, google_id: str) -> Optional[User]:
        return await self.find_one(db, google_id=google_id)

    async def find_by_email_or_username(self, db: AsyncSession, email: str, username: str) -> Optional[User]:
        return await self.find_one(db, or_(UserModel.email == email.lower(), UserModel.username == username))

    async def find_by_refresh_token(self, db: AsyncSession, token: str, device_id: str) -> Optional[User]:
        """
        Locate the user holding ``token`` for ``device_id``.

        Tokens live in a JSON list, so candidates are narrowed with a text
        match on the column and confirmed in Python.
        """
        candidates = await self.find_many(db, cast(UserModel.refresh_tokens, String).contains(token))
        for user in candidates:
            if user.find_refresh_token(token, device_id) is not None:
                return user
        return None

    async def store_refresh_token(self, db: AsyncSession, user_id: int, record: RefreshToken) -> Optional[User]:
        """Replace any token for the same device with ``record``."""
        row = await self.get_row(db, user_id, for_update=True)
        if row is None:
            return None
        tokens = [t for t in row.refresh_tokens or [] if t["device_id"] != record.device_id]
        tokens.extend(self.dump_tokens([record]))
        return await self._apply(db, row, {"refresh_tokens": tokens})

    async def remove_refresh_token(self, db: AsyncSession, user_id: int, token: str, device_id: str) -> Optional[User]:
        row = await self.get_row(db, user_id, for_update=True)
        if row is None:
            return None
        tokens = [
            t for t in row.refresh_tokens or []
            if not (t["token"] == token and t["device_id"] == device_id)
        ]
        return await self._apply(db, row, {"refresh_tokens": tokens})

    async def expire_refresh_token(
        self, db: AsyncSession, user_id: int, token: str, device_id: str, expires_at: datetime
    ) -> Optional[User]:
        row = await self.get_row(db, user_id, for_update=True)
        if row is None:
            return None
        tokens = []
        for t in row.refresh_tokens or []:
            if t["token"] == token and t["device_id"] == device_id:
                t = {**t, "expires_at": dump_datetime(expires_at)}
            tokens.append(t)
        return await self._apply(db, row, {"refresh_tokens": tokens})


class PasswordResetRepository(BaseRepository[PasswordResetModel, PasswordReset]):

    def __init__(self):
        super().__init__(PasswordResetModel, validate_password_reset)

    @staticmethod
    def to_document(user_id: int, email: str, code: str, expires_at: datetime) -> Dict[str, Any]:
        return {"user_id": user_id, "email": email.lower(), "code": code, "expires_at": expires_at}

    def to_entity(self, row: Optional[PasswordResetModel]) -> Optional[PasswordReset]:
        if row is None:
            return None
        return PasswordReset(
            id=row.id,
            user_id=row.user_id,
            email=row.email,
            code=row.code,
            expires_at=aware(row.expires_at),
            created_at=aware(row.created_at),
        )

    async def find_by_code(self, db: AsyncSession, email: str, code: str) -> Optional[PasswordReset]:
        return await self.find_one(db, email=email.lower(), code=code)

    async def delete_for_user(self, db: AsyncSession, user_id: int) -> int:
        result = await db.execute(delete(PasswordResetModel).where(PasswordResetModel.user_id == user_id))
        return result.rowcount
