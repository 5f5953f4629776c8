"""
Исключения backend
"""

from typing import Any, Dict, List, Optional

from .constants import MSG_INVALID_CREDENTIALS, MSG_UNAUTHENTICATED, MSG_VALIDATION_FAILED


class AppException(Exception):
    """Базовое исключение приложения с поддержкой HTTP статус кодов"""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.details = details or {}
        if status_code:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Тело ответа в формате Laravel: message + errors при наличии"""
        body: Dict[str, Any] = {"message": self.message}
        if self.details:
            body["errors"] = self.details
        return body


class AuthenticationError(AppException):
    """Ошибка аутентификации"""

    status_code = 401
    error_code = "AUTHENTICATION_ERROR"


class UnauthorizedError(AuthenticationError):
    """Нет токена или токен недействителен"""

    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = MSG_UNAUTHENTICATED):
        super().__init__(message)


class InvalidCredentialsError(AuthenticationError):
    """Неверные учетные данные"""

    error_code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = MSG_INVALID_CREDENTIALS):
        super().__init__(message)


class TokenExpiredError(AuthenticationError):
    """Истек срок действия токена"""

    error_code = "TOKEN_EXPIRED"


class ValidationError(AppException):
    """Ошибка валидации данных: {field: [messages]}"""

    status_code = 422
    error_code = "VALIDATION_ERROR"

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        if message is None:
            message = next(
                (messages[0] for messages in errors.values() if messages),
                MSG_VALIDATION_FAILED,
            )
        super().__init__(message=message, details=errors)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})


class ResourceAlreadyExistsError(ValidationError):
    """Ресурс уже существует (Laravel отвечает 422 на unique)"""

    error_code = "ALREADY_EXISTS"
