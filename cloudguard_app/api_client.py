"""API клиент для auth эндпоинтов CloudGuard backend."""

import base64
import binascii
import logging
from typing import Any, Dict, Optional

import pydantic
import requests

from cloudguard_app.config import app_config
from cloudguard_app.constants import (
    ENDPOINT_CHANGE_PASSWORD,
    ENDPOINT_CHECK_AUTH,
    ENDPOINT_EMAIL_RESEND,
    ENDPOINT_EMAIL_VERIFY,
    ENDPOINT_FORGOT_PASSWORD,
    ENDPOINT_LOGIN,
    ENDPOINT_LOGOUT,
    ENDPOINT_PING,
    ENDPOINT_PROFILE,
    ENDPOINT_REFRESH,
    ENDPOINT_REGISTER,
    ENDPOINT_RESET_PASSWORD,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NO_CONTENT,
    HTTP_OK,
    HTTP_UNAUTHORIZED,
    HTTP_UNPROCESSABLE_ENTITY,
    MSG_CONNECTION_REFUSED,
    MSG_INVALID_CREDENTIALS,
    MSG_NETWORK_ERROR,
    MSG_SERVER_ERROR,
    MSG_TIMEOUT,
    MSG_UNKNOWN_ERROR,
    NETWORK_CONNECTION_REFUSED,
    NETWORK_GENERIC,
    NETWORK_TIMEOUT,
    STORAGE_REFRESH_TOKEN_KEY,
    STORAGE_TOKEN_KEY,
)
from cloudguard_app.core.storage import CredentialStore
from cloudguard_app.exceptions import (
    CloudGuardError,
    FieldErrors,
    InvalidCredentialsError,
    NetworkError,
    ServerError,
    UnknownError,
    ValidationError,
)
from cloudguard_app.models import (
    AuthResponse,
    CheckAuthResponse,
    LoginCredentials,
    PasswordChange,
    PasswordReset,
    ProfileUpdate,
    RegisterCredentials,
    User,
)

logger = logging.getLogger(__name__)


def _is_connection_refused(exc: BaseException) -> bool:
    """Пройти по цепочке исключений и найти отказ в соединении"""
    seen = set()
    stack = [exc]
    while stack:
        current = stack.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, ConnectionRefusedError):
            return True
        text = str(current)
        if "Connection refused" in text or "ECONNREFUSED" in text:
            return True
        stack.append(current.__cause__)
        stack.append(current.__context__)
        # urllib3 MaxRetryError хранит исходную причину в reason
        stack.append(getattr(current, "reason", None))
        stack.extend(arg for arg in current.args if isinstance(arg, BaseException))
    return False


def _coerce_field_errors(errors: Any) -> FieldErrors:
    """Привести errors из ответа к виду {field: [messages]}"""
    if not isinstance(errors, dict):
        return {}
    result: FieldErrors = {}
    for field, messages in errors.items():
        if isinstance(messages, str):
            messages = [messages]
        if isinstance(messages, list):
            result[str(field)] = [m for m in messages if isinstance(m, str)]
    return result


class APIClient:
    """
    Клиент для auth API.

    Токен берется из хранилища учетных данных перед каждым запросом,
    поэтому клиент не хранит собственного состояния сессии.
    """

    def __init__(
        self,
        store: CredentialStore,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        device_name: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Инициализация API клиента.

        Args:
            store: Хранилище, из которого читается bearer токен
            base_url: Базовый URL API (по умолчанию из конфигурации)
            timeout: Таймаут запросов в секундах
            device_name: Имя устройства для выдачи токена
            session: HTTP сессия (для тестов можно подменить транспорт)
        """
        self.store = store
        self.base_url = (base_url or app_config.api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else app_config.api_timeout
        self.device_name = device_name or app_config.device_name
        self.session = session or requests.Session()

    def _get_headers(self, authenticated: bool = True) -> Dict[str, str]:
        """Заголовки запроса; Content-Type выставляет requests"""
        headers = {"Accept": "application/json"}
        if authenticated:
            token = self.store.get(STORAGE_TOKEN_KEY)
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send(
        self,
        method: str,
        endpoint: str,
        authenticated: bool = True,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> requests.Response:
        """
        Отправить запрос и привести сетевые сбои к NetworkError.

        Raises:
            NetworkError: Ответ не получен
        """
        url = f"{self.base_url}{endpoint}"
        logger.info(f"Making {method} request to: {endpoint}")
        try:
            response = self.session.request(
                method,
                url,
                headers=self._get_headers(authenticated),
                timeout=timeout if timeout is not None else self.timeout,
                **kwargs,
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Request to {endpoint} timed out: {e}")
            raise NetworkError(NETWORK_TIMEOUT, MSG_TIMEOUT) from e
        except requests.exceptions.ConnectionError as e:
            if _is_connection_refused(e):
                logger.error(f"Connection refused for {endpoint}: {e}")
                raise NetworkError(NETWORK_CONNECTION_REFUSED, MSG_CONNECTION_REFUSED) from e
            logger.error(f"Network error for {endpoint}: {e}")
            raise NetworkError(NETWORK_GENERIC, MSG_NETWORK_ERROR) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to {endpoint} failed: {e}")
            raise NetworkError(NETWORK_GENERIC, MSG_NETWORK_ERROR) from e

        logger.info(f"Response from {endpoint} - Status: {response.status_code}")
        return response

    def _request(
        self,
        method: str,
        endpoint: str,
        authenticated: bool = True,
        allow_refresh: bool = True,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """
        Выполнить запрос с одной попыткой обновления токена на 401.

        Returns:
            JSON тело ответа (пустой словарь для пустого ответа)
        """
        response = self._send(method, endpoint, authenticated=authenticated, **kwargs)

        if (
            response.status_code == HTTP_UNAUTHORIZED
            and authenticated
            and allow_refresh
            and self._try_refresh()
        ):
            logger.info(f"Replaying {method} {endpoint} with refreshed token")
            response = self._send(method, endpoint, authenticated=authenticated, **kwargs)

        return self._handle_response(response)

    def _try_refresh(self) -> bool:
        """
        Обменять refresh токен на новый access токен.

        Returns:
            True если новый токен сохранен
        """
        refresh_token = self.store.get(STORAGE_REFRESH_TOKEN_KEY)
        if not refresh_token:
            return False

        try:
            payload = self._handle_response(
                self._send(
                    "POST",
                    ENDPOINT_REFRESH,
                    authenticated=False,
                    json={"refresh_token": refresh_token},
                )
            )
            token = payload.get("access_token") or payload.get("token")
            if not token:
                raise UnknownError("Refresh response has no token")
        except CloudGuardError as e:
            logger.error(f"Token refresh error: {e.message}")
            try:
                self.store.remove(STORAGE_TOKEN_KEY)
                self.store.remove(STORAGE_REFRESH_TOKEN_KEY)
            except OSError as store_error:
                logger.error(f"Failed to drop rejected tokens: {store_error}")
            return False

        # Повтор запроса берет токен из хранилища, без записи повторять нечего
        try:
            self.store.set(STORAGE_TOKEN_KEY, token)
            if payload.get("refresh_token"):
                self.store.set(STORAGE_REFRESH_TOKEN_KEY, payload["refresh_token"])
        except OSError as e:
            logger.error(f"Failed to persist refreshed token: {e}")
            return False
        logger.info("Access token refreshed")
        return True

    def _handle_response(self, response: requests.Response) -> Dict[str, Any]:
        """
        Разобрать ответ и нормализовать ошибки.

        Raises:
            InvalidCredentialsError: 401
            ValidationError: 422
            ServerError: 5xx
            UnknownError: Прочие ответы или нечитаемое тело
        """
        status_code = response.status_code

        if HTTP_OK <= status_code < 300:
            if status_code == HTTP_NO_CONTENT or not response.content:
                return {}
            try:
                data = response.json()
            except ValueError as e:
                logger.error(f"Failed to parse JSON response: {e}")
                raise UnknownError(status_code=status_code) from e
            if not isinstance(data, dict):
                raise UnknownError(status_code=status_code)
            return data

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        message = body.get("message") if isinstance(body.get("message"), str) else None
        field_errors = _coerce_field_errors(body.get("errors"))

        logger.error(
            f"API request failed with status {status_code}: "
            f"{response.text[:200]}"
        )

        if status_code == HTTP_UNAUTHORIZED:
            raise InvalidCredentialsError(message or MSG_INVALID_CREDENTIALS, field_errors)
        if status_code == HTTP_UNPROCESSABLE_ENTITY:
            raise ValidationError(field_errors, message=None if field_errors else message)
        if status_code >= HTTP_INTERNAL_SERVER_ERROR:
            raise ServerError(message or MSG_SERVER_ERROR, status_code=status_code)
        raise UnknownError(message or MSG_UNKNOWN_ERROR, status_code=status_code)

    @staticmethod
    def _parse_auth_response(payload: Dict[str, Any]) -> AuthResponse:
        try:
            return AuthResponse.from_payload(payload)
        except pydantic.ValidationError as e:
            logger.error(f"Invalid auth response format: {e}")
            raise UnknownError("Invalid response format from the server") from e

    def ping(self) -> bool:
        """
        Проверка доступности сервера.

        Returns:
            True если сервер ответил 200
        """
        try:
            self._request(
                "GET",
                ENDPOINT_PING,
                authenticated=False,
                timeout=app_config.ping_timeout,
            )
            return True
        except CloudGuardError as e:
            logger.error(f"Ping failed: {e.message}")
            return False

    def login(self, credentials: LoginCredentials) -> AuthResponse:
        """
        Вход пользователя.

        Args:
            credentials: Email и пароль

        Returns:
            Пользователь и токен
        """
        payload = credentials.model_dump()
        payload["device_name"] = self.device_name
        logger.info(f"Login request for email: {credentials.email}")
        data = self._request("POST", ENDPOINT_LOGIN, allow_refresh=False, json=payload)
        return self._parse_auth_response(data)

    def register(self, credentials: RegisterCredentials) -> AuthResponse:
        """
        Регистрация нового пользователя.

        С аватаром запрос уходит как multipart/form-data, иначе как JSON.

        Args:
            credentials: Данные формы регистрации

        Returns:
            Пользователь и токен
        """
        fields: Dict[str, Any] = credentials.model_dump(exclude={"avatar"}, exclude_none=True)
        fields["password_confirmation"] = credentials.password_confirmation or credentials.password
        fields["device_name"] = self.device_name

        logger.info(
            f"Registration request for email: {credentials.email} "
            f"({'avatar present' if credentials.avatar else 'no avatar'})"
        )

        if credentials.avatar:
            try:
                avatar_bytes = base64.b64decode(credentials.avatar, validate=True)
            except (binascii.Error, ValueError) as e:
                raise ValidationError({"avatar": ["Avatar must be a base64 encoded image"]}, status_code=None) from e
            data = self._request(
                "POST",
                ENDPOINT_REGISTER,
                allow_refresh=False,
                data=fields,
                files={"avatar": ("avatar.jpg", avatar_bytes, "image/jpeg")},
            )
        else:
            data = self._request("POST", ENDPOINT_REGISTER, allow_refresh=False, json=fields)

        return self._parse_auth_response(data)

    def logout(self) -> None:
        """Инвалидировать токен на сервере"""
        self._request("POST", ENDPOINT_LOGOUT, allow_refresh=False)

    def check_auth(self) -> CheckAuthResponse:
        """
        Проверить сохраненный токен на сервере.

        Returns:
            Флаг authenticated и пользователь
        """
        data = self._request("GET", ENDPOINT_CHECK_AUTH)
        try:
            return CheckAuthResponse.model_validate(data)
        except pydantic.ValidationError as e:
            logger.error(f"Invalid check-auth response format: {e}")
            raise UnknownError("Invalid response format from the server") from e

    def verify_email(self, token: str) -> Dict[str, Any]:
        """
        Подтвердить email по токену из письма.

        Запрос уходит без авторизации. Закешированного пользователя
        обновляет SessionStore.
        """
        return self._request("POST", ENDPOINT_EMAIL_VERIFY, authenticated=False, json={"token": token})

    def resend_verification_email(self, email: str) -> Dict[str, Any]:
        """Отправить письмо с подтверждением повторно"""
        return self._request("POST", ENDPOINT_EMAIL_RESEND, json={"email": email})

    def forgot_password(self, email: str) -> Dict[str, Any]:
        """Запросить письмо для сброса пароля"""
        return self._request("POST", ENDPOINT_FORGOT_PASSWORD, json={"email": email})

    def reset_password(self, data: PasswordReset) -> Dict[str, Any]:
        """Установить новый пароль по токену сброса"""
        return self._request("POST", ENDPOINT_RESET_PASSWORD, json=data.model_dump())

    def update_profile(self, data: ProfileUpdate) -> User:
        """
        Обновить профиль.

        Returns:
            Пользователь из ответа сервера
        """
        payload = self._request("PUT", ENDPOINT_PROFILE, json=data.model_dump(exclude_none=True))
        try:
            return User.model_validate(payload.get("user", payload))
        except pydantic.ValidationError as e:
            logger.error(f"Invalid profile response format: {e}")
            raise UnknownError("Invalid response format from the server") from e

    def change_password(self, data: PasswordChange) -> Dict[str, Any]:
        """Сменить пароль текущего пользователя"""
        return self._request("PUT", ENDPOINT_CHANGE_PASSWORD, json=data.model_dump())
