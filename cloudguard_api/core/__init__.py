"""
Core модуль с инфраструктурными компонентами backend
"""

from .auth import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from .error_handlers import field_errors_from_pydantic, register_error_handlers
from .exceptions import (
    AppException,
    AuthenticationError,
    InvalidCredentialsError,
    ResourceAlreadyExistsError,
    TokenExpiredError,
    UnauthorizedError,
    ValidationError,
)
from .repository import UserRecord, UserRepository

__all__ = [
    # Auth
    "create_access_token",
    "create_refresh_token",
    "decode_token",
    "hash_password",
    "verify_password",
    # Error Handlers
    "field_errors_from_pydantic",
    "register_error_handlers",
    # Exceptions
    "AppException",
    "AuthenticationError",
    "InvalidCredentialsError",
    "ResourceAlreadyExistsError",
    "TokenExpiredError",
    "UnauthorizedError",
    "ValidationError",
    # Repository
    "UserRecord",
    "UserRepository",
]
