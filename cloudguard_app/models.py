"""
Модели клиента: пользователь, формы, ответы API и состояние сессии
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cloudguard_app.constants import DEFAULT_TOKEN_TYPE


class User(BaseModel):
    """
    Пользователь в том виде, в котором его отдает backend.

    Неизвестные поля сохраняются, чтобы повторная запись в хранилище
    не теряла данные.
    """

    model_config = ConfigDict(extra="allow")

    id: Union[int, str]
    name: str
    email: str
    phone: Optional[str] = None
    avatar: Optional[str] = None
    email_verified_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class LoginCredentials(BaseModel):
    """Данные формы входа"""

    email: str
    password: str


class RegisterCredentials(BaseModel):
    """
    Данные формы регистрации.

    Attributes:
        avatar: JPEG в base64; при наличии запрос уходит как multipart/form-data
    """

    name: str
    email: str
    password: str
    password_confirmation: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None


class ProfileUpdate(BaseModel):
    """Изменяемые поля профиля"""

    name: str
    email: str
    phone: Optional[str] = None
    avatar: Optional[str] = None


class PasswordChange(BaseModel):
    """Смена пароля авторизованным пользователем"""

    current_password: str
    password: str
    password_confirmation: str


class PasswordReset(BaseModel):
    """Установка нового пароля по токену из письма"""

    email: str
    token: str
    password: str
    password_confirmation: str


class AuthResponse(BaseModel):
    """Нормализованный успешный ответ login/register"""

    user: User
    access_token: str
    token_type: str = DEFAULT_TOKEN_TYPE
    refresh_token: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "AuthResponse":
        """
        Backend может вернуть токен как access_token или как token.

        Raises:
            pydantic.ValidationError: Если в ответе нет пользователя или токена
        """
        return cls.model_validate(
            {
                "user": payload.get("user"),
                "access_token": payload.get("access_token") or payload.get("token"),
                "token_type": payload.get("token_type") or DEFAULT_TOKEN_TYPE,
                "refresh_token": payload.get("refresh_token"),
            }
        )


class CheckAuthResponse(BaseModel):
    """Ответ GET /check-auth"""

    authenticated: bool
    user: Optional[User] = None


class SessionStatus(str, Enum):
    """Состояния сессии"""

    UNKNOWN = "unknown"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class SessionState(BaseModel):
    """
    Снимок состояния сессии.

    Неизменяемый: каждый переход заменяет объект целиком, поэтому
    is_authenticated без user и token наблюдать нельзя.
    """

    model_config = ConfigDict(frozen=True)

    status: SessionStatus = SessionStatus.UNKNOWN
    user: Optional[User] = None
    token: Optional[str] = None
    is_loading: bool = True
    error: Optional[str] = None
    field_errors: Dict[str, List[str]] = Field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return self.status == SessionStatus.AUTHENTICATED

    @model_validator(mode="after")
    def _check_authenticated_has_credentials(self) -> "SessionState":
        if self.status == SessionStatus.AUTHENTICATED and (self.user is None or not self.token):
            raise ValueError("Authenticated session requires both user and token")
        return self

    @classmethod
    def initial(cls) -> "SessionState":
        """Состояние при старте приложения, до check_auth"""
        return cls()

    @classmethod
    def authenticated(cls, user: User, token: str) -> "SessionState":
        return cls(
            status=SessionStatus.AUTHENTICATED,
            user=user,
            token=token,
            is_loading=False,
        )

    @classmethod
    def unauthenticated(
        cls,
        error: Optional[str] = None,
        field_errors: Optional[Dict[str, List[str]]] = None,
    ) -> "SessionState":
        return cls(
            status=SessionStatus.UNAUTHENTICATED,
            is_loading=False,
            error=error,
            field_errors=field_errors or {},
        )
