from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Mapping, Optional

from app.core.enums import AuthProvider
from app.core.errors import FieldError
from app.entities.validation import check_choice, collect, require


@dataclass(frozen=True)
class RefreshToken:
    token: str
    device_id: str
    expires_at: datetime


@dataclass(frozen=True)
class User:
    id: int
    username: str
    email: str
    password_hash: Optional[str] = None
    is_active: bool = True
    device_token: Optional[str] = None
    google_id: Optional[str] = None
    auth_provider: str = AuthProvider.local.value
    agree_to_terms: bool = False
    refresh_tokens: List[RefreshToken] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def find_refresh_token(self, token: str, device_id: str) -> Optional[RefreshToken]:
        for record in self.refresh_tokens:
            if record.token == token and record.device_id == device_id:
                return record
        return None


@dataclass(frozen=True)
class PasswordReset:
    id: int
    user_id: int
    email: str
    code: str
    expires_at: datetime
    created_at: Optional[datetime] = None


def validate_user(document: Mapping[str, Any]) -> List[FieldError]:
    errors = collect(
        require(document, ["username", "email"]),
        check_choice(document, "auth_provider", [p.value for p in AuthProvider]),
    )
    if document.get("auth_provider", AuthProvider.local.value) == AuthProvider.local.value and not document.get("password_hash"):
        errors.append(FieldError(field="password_hash", message="Path `password_hash` is required."))
    if document.get("auth_provider") == AuthProvider.google.value and not document.get("google_id"):
        errors.append(FieldError(field="google_id", message="Path `google_id` is required."))
    for index, record in enumerate(document.get("refresh_tokens") or []):
        missing = [key for key in ("token", "device_id", "expires_at") if not record.get(key)]
        for key in missing:
            errors.append(FieldError(field=f"refresh_tokens.{index}.{key}", message=f"Path `{key}` is required."))
    return errors


def validate_password_reset(document: Mapping[str, Any]) -> List[FieldError]:
    return require(document, ["user_id", "email", "code", "expires_at"])
