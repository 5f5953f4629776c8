"""
Схемы для авторизации и работы с пользователями
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from cloudguard_api.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    MAX_PASSWORD_LENGTH_CHARS,
    MIN_PASSWORD_LENGTH,
    TOKEN_TYPE_BEARER,
)

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"


def _normalize_email(v: str) -> str:
    if not re.match(EMAIL_PATTERN, v.strip()):
        raise ValueError("The email must be a valid email address.")
    return v.lower().strip()


class _PasswordConfirmationMixin(BaseModel):
    """Проверка password == password_confirmation (правило confirmed в Laravel)"""

    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH_CHARS)
    password_confirmation: str

    @field_validator("password_confirmation")
    @classmethod
    def check_confirmation(cls, v: str, info: ValidationInfo) -> str:
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("The password confirmation does not match.")
        return v


class LoginRequest(BaseModel):
    """Схема для входа пользователя"""

    email: str = Field(..., max_length=MAX_EMAIL_LENGTH)
    password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_LENGTH_CHARS)
    device_name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class RegisterRequest(_PasswordConfirmationMixin):
    """
    Схема для регистрации.

    Avatar приходит отдельным файлом в multipart и сюда не входит.
    """

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    email: str = Field(..., max_length=MAX_EMAIL_LENGTH)
    phone: Optional[str] = None
    device_name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class EmailRequest(BaseModel):
    """Запросы с единственным полем email (resend, forgot-password)"""

    email: str = Field(..., max_length=MAX_EMAIL_LENGTH)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1)


class ResetPasswordRequest(_PasswordConfirmationMixin):
    email: str = Field(..., max_length=MAX_EMAIL_LENGTH)
    token: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class ChangePasswordRequest(_PasswordConfirmationMixin):
    current_password: str = Field(..., min_length=1)


class ProfileUpdateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    email: str = Field(..., max_length=MAX_EMAIL_LENGTH)
    phone: Optional[str] = None
    avatar: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Схема ответа с информацией о пользователе"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    avatar: Optional[str] = None
    email_verified_at: Optional[str] = None
    created_at: str
    updated_at: str


class TokenResponse(BaseModel):
    """Схема ответа с токенами"""

    access_token: str
    token_type: str = TOKEN_TYPE_BEARER
    refresh_token: Optional[str] = None
    user: UserResponse


class RefreshResponse(BaseModel):
    access_token: str
    token_type: str = TOKEN_TYPE_BEARER
    refresh_token: str


class CheckAuthResponse(BaseModel):
    authenticated: bool
    user: Optional[UserResponse] = None


class UserEnvelope(BaseModel):
    message: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str
