"""
Хранилище сессии: состояние авторизации и действия над ним.

Состояние меняется только заменой объекта SessionState целиком;
подписчики получают каждый новый снимок.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

import pydantic

from cloudguard_app.constants import (
    MSG_LOGIN_FAILED,
    MSG_NOT_AUTHENTICATED,
    MSG_PASSWORD_CHANGE_FAILED,
    MSG_PROFILE_UPDATE_FAILED,
    MSG_REGISTER_FAILED,
    MSG_RESEND_FAILED,
    MSG_RESET_FAILED,
    MSG_VERIFICATION_INVALID,
    STORAGE_TOKEN_KEY,
)
from cloudguard_app.core.auth import (
    validate_email_form,
    validate_login_form,
    validate_password_change_form,
    validate_password_reset_form,
    validate_profile_form,
    validate_registration_form,
    validate_verification_token,
)
from cloudguard_app.core.storage import (
    CredentialStore,
    clear_credentials,
    load_credentials,
    save_credentials,
    save_user,
)
from cloudguard_app.exceptions import CloudGuardError, InvalidCredentialsError
from cloudguard_app.models import (
    AuthResponse,
    LoginCredentials,
    PasswordChange,
    PasswordReset,
    ProfileUpdate,
    RegisterCredentials,
    SessionState,
    SessionStatus,
    User,
)

if TYPE_CHECKING:
    from cloudguard_app.api_client import APIClient

logger = logging.getLogger(__name__)

Listener = Callable[[SessionState], None]


def _error_fields(exc: CloudGuardError, fallback: str) -> Tuple[Optional[str], Dict[str, List[str]]]:
    """
    Ошибки по полям важнее общего сообщения: если они есть,
    общий error не выставляется.
    """
    if exc.field_errors:
        return None, exc.field_errors
    return exc.message or fallback, {}


class SessionStore:
    """
    Сессия пользователя: кто вошел и с каким токеном.

    Создается при старте приложения (см. cloudguard_app.app.AppContext),
    единственный писатель в хранилище учетных данных.
    """

    def __init__(self, client: "APIClient", store: CredentialStore) -> None:
        self._client = client
        self._store = store
        self._state = SessionState.initial()
        self._listeners: List[Listener] = []
        self._check_lock = threading.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Подписаться на изменения состояния.

        Returns:
            Функция отписки
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Session listener failed: {e}", exc_info=True)

    def _begin(self) -> None:
        """Начало действия: сброс прошлых ошибок и индикатор загрузки"""
        self._set_state(
            self._state.model_copy(update={"is_loading": True, "error": None, "field_errors": {}})
        )

    def _finish(self) -> None:
        self._set_state(self._state.model_copy(update={"is_loading": False}))

    def _fail(self, exc: CloudGuardError, fallback: str, session_bound: bool = False) -> None:
        """
        Ошибка не меняет статус сессии. Исключение: 401 в ответ на запрос
        с токеном сессии (session_bound), тогда сессия завершается.
        Для login и register 401 означает лишь неверные данные в форме.
        """
        error, field_errors = _error_fields(exc, fallback)
        rejected = isinstance(exc, InvalidCredentialsError)
        if session_bound and rejected and self._state.is_authenticated:
            logger.warning("Credentials rejected by the server, ending session")
            self._end_session(error=error, field_errors=field_errors)
        elif self._state.status == SessionStatus.UNKNOWN:
            self._set_state(SessionState.unauthenticated(error, field_errors))
        else:
            self._set_state(
                self._state.model_copy(
                    update={"is_loading": False, "error": error, "field_errors": field_errors}
                )
            )

    def _end_session(
        self,
        error: Optional[str] = None,
        field_errors: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        try:
            clear_credentials(self._store)
        except OSError as e:
            logger.error(f"Failed to clear stored credentials: {e}", exc_info=True)
        self._set_state(SessionState.unauthenticated(error, field_errors))

    def _persist(self, response: AuthResponse) -> None:
        try:
            save_credentials(self._store, response.access_token, response.user, response.refresh_token)
        except OSError as e:
            logger.error(
                f"Failed to persist credentials, session will not survive restart: {e}",
                exc_info=True,
            )

    def _current_token(self, fallback: str) -> str:
        """Токен мог обновиться через refresh во время запроса"""
        try:
            return self._store.get(STORAGE_TOKEN_KEY) or fallback
        except OSError as e:
            logger.error(f"Failed to read stored token: {e}")
            return fallback

    def _require_session(self) -> Tuple[User, str]:
        state = self._state
        if not state.is_authenticated or state.user is None or state.token is None:
            raise InvalidCredentialsError(MSG_NOT_AUTHENTICATED)
        return state.user, state.token

    def login(self, credentials: LoginCredentials) -> User:
        """
        Вход пользователя.

        Raises:
            CloudGuardError: Нормализованная ошибка (уже отражена в state)
        """
        self._begin()
        try:
            validate_login_form(credentials)
            response = self._client.login(credentials)
        except CloudGuardError as e:
            logger.error(f"Login error: {e.message}")
            self._fail(e, MSG_LOGIN_FAILED)
            raise

        self._persist(response)
        self._set_state(SessionState.authenticated(response.user, response.access_token))
        logger.info(f"User logged in: id={response.user.id}")
        return response.user

    def register(self, credentials: RegisterCredentials) -> User:
        """
        Регистрация и автоматический вход.

        Форма проверяется до сетевого запроса.
        """
        self._begin()
        try:
            validate_registration_form(credentials)
            response = self._client.register(credentials)
        except CloudGuardError as e:
            logger.error(f"Registration error: {e.message}")
            self._fail(e, MSG_REGISTER_FAILED)
            raise

        self._persist(response)
        self._set_state(SessionState.authenticated(response.user, response.access_token))
        logger.info(f"User registered: id={response.user.id}")
        return response.user

    def logout(self) -> None:
        """
        Выход. Локальная сессия очищается всегда, даже если сервер
        недоступен.
        """
        self._begin()
        try:
            if self._store.get(STORAGE_TOKEN_KEY):
                self._client.logout()
        except CloudGuardError as e:
            logger.warning(f"Remote logout failed, clearing local session anyway: {e.message}")
        finally:
            self._end_session()
        logger.info("User logged out")

    def check_auth(self) -> None:
        """
        Восстановить сессию из хранилища и проверить токен на сервере.

        Повторный вызов во время выполнения ничего не делает.
        Ошибки не пробрасываются: результат всегда authenticated или
        unauthenticated.
        """
        if not self._check_lock.acquire(blocking=False):
            logger.info("[CHECK_AUTH] Already in progress, skipping")
            return
        try:
            self._check_auth()
        except OSError as e:
            logger.error(f"[CHECK_AUTH] Credential storage failure: {e}", exc_info=True)
            self._set_state(SessionState.unauthenticated())
        finally:
            self._check_lock.release()

    def _check_auth(self) -> None:
        self._begin()

        token, user_json = load_credentials(self._store)
        if not token or not user_json:
            logger.info("[CHECK_AUTH] No stored credentials")
            self._set_state(SessionState.unauthenticated())
            return

        try:
            user = User.model_validate_json(user_json)
        except pydantic.ValidationError as e:
            logger.error(f"[CHECK_AUTH] Error parsing stored user data: {e}")
            self._end_session()
            return

        try:
            response = self._client.check_auth()
        except InvalidCredentialsError as e:
            logger.warning(f"[CHECK_AUTH] Stored token rejected: {e.message}")
            self._end_session()
            return
        except CloudGuardError as e:
            # Сервер недоступен: учетные данные остаются для следующей попытки
            logger.error(f"[CHECK_AUTH] Auth check error: {e.message}")
            self._set_state(SessionState.unauthenticated())
            return

        if not response.authenticated:
            logger.info("[CHECK_AUTH] Server reports session is not authenticated")
            self._end_session()
            return

        token = self._current_token(token)
        if response.user is not None:
            user = response.user
            try:
                save_user(self._store, user)
            except OSError as e:
                logger.error(f"[CHECK_AUTH] Failed to refresh cached user: {e}")

        self._set_state(SessionState.authenticated(user, token))
        logger.info(f"[CHECK_AUTH] Session restored for user id={user.id}")

    def reset_password(self, email: str) -> None:
        """Запросить письмо для сброса пароля"""
        self._begin()
        try:
            validate_email_form(email)
            self._client.forgot_password(email)
        except CloudGuardError as e:
            logger.error(f"Reset password error: {e.message}")
            self._fail(e, MSG_RESET_FAILED)
            raise
        self._finish()

    def complete_password_reset(self, data: PasswordReset) -> None:
        """Установить новый пароль по токену из письма"""
        self._begin()
        try:
            validate_password_reset_form(data)
            self._client.reset_password(data)
        except CloudGuardError as e:
            logger.error(f"Password reset error: {e.message}")
            self._fail(e, MSG_RESET_FAILED)
            raise
        self._finish()

    def verify_email(self, token: str) -> None:
        """Подтвердить email; у вошедшего пользователя обновляется email_verified_at"""
        self._begin()
        try:
            validate_verification_token(token)
            self._client.verify_email(token)
        except CloudGuardError as e:
            logger.error(f"Email verification error: {e.message}")
            self._fail(e, MSG_VERIFICATION_INVALID)
            raise

        state = self._state
        if state.is_authenticated and state.user is not None and state.token is not None:
            user = state.user.model_copy(
                update={"email_verified_at": datetime.now(timezone.utc).isoformat()}
            )
            try:
                save_user(self._store, user)
            except OSError as e:
                logger.error(f"Failed to persist verified user: {e}")
            self._set_state(SessionState.authenticated(user, self._current_token(state.token)))
        else:
            self._finish()

    def resend_verification_email(self, email: Optional[str] = None) -> None:
        """Повторно отправить письмо; по умолчанию на email текущего пользователя"""
        self._begin()
        if email is None and self._state.user is not None:
            email = self._state.user.email
        try:
            validate_email_form(email or "")
            self._client.resend_verification_email(email or "")
        except CloudGuardError as e:
            logger.error(f"Resend verification email error: {e.message}")
            self._fail(e, MSG_RESEND_FAILED)
            raise
        self._finish()

    def update_profile(self, data: ProfileUpdate) -> User:
        """
        Обновить профиль. Пользователь заменяется и сохраняется целиком,
        токен не меняется.
        """
        self._begin()
        try:
            current, token = self._require_session()
            validate_profile_form(data)
            returned = self._client.update_profile(data)
        except CloudGuardError as e:
            logger.error(f"Profile update error: {e.message}")
            self._fail(e, MSG_PROFILE_UPDATE_FAILED, session_bound=True)
            raise

        merged: Dict[str, Any] = current.model_dump()
        merged.update(returned.model_dump(exclude_unset=True))
        if "updated_at" not in returned.model_fields_set:
            merged["updated_at"] = datetime.now(timezone.utc).isoformat()
        user = User.model_validate(merged)

        try:
            save_user(self._store, user)
        except OSError as e:
            logger.error(f"Failed to persist updated user: {e}")
        self._set_state(SessionState.authenticated(user, self._current_token(token)))
        logger.info(f"Profile updated for user id={user.id}")
        return user

    def change_password(self, data: PasswordChange) -> None:
        """Сменить пароль текущего пользователя"""
        self._begin()
        try:
            self._require_session()
            validate_password_change_form(data)
            self._client.change_password(data)
        except CloudGuardError as e:
            logger.error(f"Change password error: {e.message}")
            self._fail(e, MSG_PASSWORD_CHANGE_FAILED, session_bound=True)
            raise
        self._finish()

    def clear_error(self) -> None:
        self._set_state(self._state.model_copy(update={"error": None, "field_errors": {}}))
