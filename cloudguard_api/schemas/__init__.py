"""
Pydantic схемы запросов и ответов
"""

from .auth import (
    ChangePasswordRequest,
    CheckAuthResponse,
    EmailRequest,
    LoginRequest,
    MessageResponse,
    ProfileUpdateRequest,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserEnvelope,
    UserResponse,
    VerifyEmailRequest,
)

__all__ = [
    "ChangePasswordRequest",
    "CheckAuthResponse",
    "EmailRequest",
    "LoginRequest",
    "MessageResponse",
    "ProfileUpdateRequest",
    "RefreshRequest",
    "RefreshResponse",
    "RegisterRequest",
    "ResetPasswordRequest",
    "TokenResponse",
    "UserEnvelope",
    "UserResponse",
    "VerifyEmailRequest",
]
