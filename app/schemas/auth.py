from typing import Optional

from pydantic import BaseModel, EmailStr, Field

# NOTE: email-validator is required by Pydantic for EmailStr validation


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=1, max_length=100)
    device_id: str = Field(..., min_length=1)
    agree_to_terms: bool = False


class UserLogin(BaseModel):
    email: EmailStr
    password: str
    device_id: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)
    device_id: str = Field(..., min_length=1)


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    email: EmailStr
    reset_code: str = Field(..., min_length=6, max_length=6)
    new_password: str = Field(..., min_length=8)


class UserResponse(BaseModel):
    """Returned on register, login and Google sign-in. Never carries the password hash."""

    user_id: str
    username: str
    name: str
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class GoogleLoginUrlResponse(BaseModel):
    authorization_url: str
    state: str


class TokenPayload(BaseModel):
    sub: Optional[str] = None
    username: Optional[str] = None
    exp: Optional[int] = None
