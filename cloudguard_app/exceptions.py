"""
Нормализованные ошибки клиента.

Все ошибки сетевого уровня и ответы backend приводятся к этой таксономии
внутри API клиента, до того как попадут в хранилище сессии.
"""

from typing import Any, Dict, List, Optional

from cloudguard_app.constants import (
    MSG_INVALID_CREDENTIALS,
    MSG_NETWORK_ERROR,
    MSG_SERVER_ERROR,
    MSG_UNKNOWN_ERROR,
    MSG_VALIDATION_FAILED,
    NETWORK_CONNECTION_REFUSED,
    NETWORK_GENERIC,
    NETWORK_TIMEOUT,
)

FieldErrors = Dict[str, List[str]]


class CloudGuardError(Exception):
    """Базовое исключение клиента"""

    error_code: str = "CLOUDGUARD_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    @property
    def field_errors(self) -> FieldErrors:
        """Ошибки по полям формы (пусто, если их нет)"""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация исключения в словарь"""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class NetworkError(CloudGuardError):
    """Ответ от сервера не получен"""

    error_code = "NETWORK_ERROR"

    KINDS = (NETWORK_TIMEOUT, NETWORK_CONNECTION_REFUSED, NETWORK_GENERIC)

    def __init__(self, kind: str = NETWORK_GENERIC, message: str = MSG_NETWORK_ERROR):
        if kind not in self.KINDS:
            raise ValueError(f"Unknown network error kind: {kind}")
        super().__init__(message, details={"kind": kind})
        self.kind = kind

    @property
    def is_timeout(self) -> bool:
        return self.kind == NETWORK_TIMEOUT

    @property
    def is_connection_refused(self) -> bool:
        return self.kind == NETWORK_CONNECTION_REFUSED


class _FieldErrorsMixin:
    """Хранение ошибок по полям в формате Laravel: {field: [messages]}"""

    _field_errors: FieldErrors

    @property
    def field_errors(self) -> FieldErrors:
        return self._field_errors


class InvalidCredentialsError(_FieldErrorsMixin, CloudGuardError):
    """Backend ответил 401: неверные или недействительные учетные данные"""

    error_code = "INVALID_CREDENTIALS"

    def __init__(
        self,
        message: str = MSG_INVALID_CREDENTIALS,
        field_errors: Optional[FieldErrors] = None,
    ):
        self._field_errors = dict(field_errors or {})
        super().__init__(message, details={"errors": self._field_errors}, status_code=401)


class ValidationError(_FieldErrorsMixin, CloudGuardError):
    """Ошибки валидации: 422 от backend или проверка формы на клиенте"""

    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        field_errors: FieldErrors,
        message: Optional[str] = None,
        status_code: Optional[int] = 422,
    ):
        self._field_errors = dict(field_errors)
        if message is None:
            message = first_error_message(self._field_errors) or MSG_VALIDATION_FAILED
        super().__init__(message, details={"errors": self._field_errors}, status_code=status_code)


class ServerError(CloudGuardError):
    """Backend вернул ошибку 5xx"""

    error_code = "SERVER_ERROR"

    def __init__(self, message: str = MSG_SERVER_ERROR, status_code: int = 500):
        super().__init__(message, status_code=status_code)


class UnknownError(CloudGuardError):
    """Ответ, который не укладывается в известные формы"""

    error_code = "UNKNOWN_ERROR"

    def __init__(self, message: str = MSG_UNKNOWN_ERROR, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)


def first_error_message(field_errors: FieldErrors) -> Optional[str]:
    """Первое строковое сообщение среди ошибок по полям"""
    for messages in field_errors.values():
        for message in messages:
            if isinstance(message, str) and message:
                return message
    return None
