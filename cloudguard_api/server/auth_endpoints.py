"""
Эндпоинты авторизации и профиля
"""

import base64
import json
import logging
from typing import Any, Dict, Optional

import pydantic
from fastapi import APIRouter, Depends, Request, status
from starlette.datastructures import UploadFile

from cloudguard_api.config import Settings
from cloudguard_api.core import (
    InvalidCredentialsError,
    UnauthorizedError,
    UserRecord,
    UserRepository,
    ValidationError,
    create_access_token,
    create_refresh_token,
    decode_token,
    field_errors_from_pydantic,
    hash_password,
    verify_password,
)
from cloudguard_api.core.constants import (
    AVATAR_CONTENT_TYPES,
    MAX_AVATAR_BYTES,
    MSG_CURRENT_PASSWORD_INVALID,
    MSG_EMAIL_VERIFIED,
    MSG_LOGGED_OUT,
    MSG_PASSWORD_CHANGED,
    MSG_PASSWORD_RESET,
    MSG_PROFILE_UPDATED,
    MSG_RESET_LINK_SENT,
    MSG_RESET_TOKEN_INVALID,
    MSG_VERIFICATION_INVALID,
    MSG_VERIFICATION_SENT,
    TOKEN_KIND_REFRESH,
)
from cloudguard_api.schemas import (
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

from .dependencies import get_app_settings, get_current_user, get_repository, get_token_payload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


def _issue_tokens(user: UserRecord, settings: Settings) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, settings),
        refresh_token=create_refresh_token(user.id, settings),
        user=UserResponse.model_validate(user),
    )


async def _read_avatar(upload: UploadFile) -> str:
    """
    Читает аватар из multipart и возвращает data URL.

    Raises:
        ValidationError: Неподдерживаемый тип или слишком большой файл
    """
    if upload.content_type not in AVATAR_CONTENT_TYPES:
        raise ValidationError.for_field("avatar", "The avatar must be a file of type: jpeg, png.")
    content = await upload.read()
    if len(content) > MAX_AVATAR_BYTES:
        raise ValidationError.for_field("avatar", "The avatar may not be greater than 2048 kilobytes.")
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{upload.content_type};base64,{encoded}"


async def _read_registration_form(request: Request) -> tuple[Dict[str, Any], Optional[str]]:
    """Поля регистрации из JSON или multipart/form-data"""
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        fields = {key: value for key, value in form.items() if isinstance(value, str)}
        upload = form.get("avatar")
        avatar = await _read_avatar(upload) if isinstance(upload, UploadFile) else None
        return fields, avatar

    try:
        fields = json.loads(await request.body() or b"{}")
    except ValueError as e:
        raise ValidationError.for_field("body", "The request body must be valid JSON.") from e
    if not isinstance(fields, dict):
        raise ValidationError.for_field("body", "The request body must be a JSON object.")
    return fields, None


@router.get("/ping", response_model=MessageResponse)
def ping():
    """Проверка доступности"""
    return MessageResponse(message="pong")


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    repository: UserRepository = Depends(get_repository),
):
    """
    Регистрирует пользователя и сразу выдает токены.

    Принимает JSON или multipart/form-data (с файлом avatar).
    """
    fields, avatar = await _read_registration_form(request)
    try:
        data = RegisterRequest.model_validate(fields)
    except pydantic.ValidationError as e:
        raise ValidationError(field_errors_from_pydantic(e.errors())) from e

    logger.info(f"Registration request for email: {data.email}")

    user = repository.create_user(
        name=data.name,
        email=data.email,
        hashed_password=hash_password(data.password, rounds=settings.bcrypt_rounds),
        phone=data.phone,
        avatar=avatar,
    )
    repository.issue_verification_token(user.id)

    logger.info(f"User registered successfully: {user.email} (ID: {user.id})")
    return _issue_tokens(user, settings)


@router.post("/login", response_model=TokenResponse)
def login_user(
    data: LoginRequest,
    settings: Settings = Depends(get_app_settings),
    repository: UserRepository = Depends(get_repository),
):
    """Аутентифицирует пользователя и возвращает токены"""
    logger.info(f"Login request for email: {data.email} (device: {data.device_name or 'unknown'})")

    user = repository.get_by_email(data.email)
    if user is None or not verify_password(data.password, user.hashed_password):
        logger.warning(f"Authentication failed for email: {data.email}")
        raise InvalidCredentialsError()

    logger.info(f"User logged in successfully: {user.email} (ID: {user.id})")
    return _issue_tokens(user, settings)


@router.post("/logout", response_model=MessageResponse)
def logout_user(
    payload: Dict[str, Any] = Depends(get_token_payload),
    repository: UserRepository = Depends(get_repository),
):
    """Отзывает текущий access токен"""
    repository.revoke(payload["jti"])
    logger.info(f"User logged out: ID {payload['sub']}")
    return MessageResponse(message=MSG_LOGGED_OUT)


@router.get("/check-auth", response_model=CheckAuthResponse)
def check_auth(current_user: UserRecord = Depends(get_current_user)):
    """Проверка токена; без валидного токена ответ 401"""
    return CheckAuthResponse(authenticated=True, user=UserResponse.model_validate(current_user))


@router.post("/auth/refresh", response_model=RefreshResponse)
def refresh_token(
    data: RefreshRequest,
    settings: Settings = Depends(get_app_settings),
    repository: UserRepository = Depends(get_repository),
):
    """Обменивает refresh токен на новую пару; старый refresh отзывается"""
    payload = decode_token(data.refresh_token, TOKEN_KIND_REFRESH, settings)
    if repository.is_revoked(payload["jti"]):
        raise UnauthorizedError()

    user = repository.get_by_id(int(payload["sub"]))
    if user is None:
        raise UnauthorizedError()

    repository.revoke(payload["jti"])
    logger.info(f"Tokens refreshed for user ID: {user.id}")
    return RefreshResponse(
        access_token=create_access_token(user.id, settings),
        refresh_token=create_refresh_token(user.id, settings),
    )


@router.post("/email/verify", response_model=MessageResponse)
def verify_email(
    data: VerifyEmailRequest,
    repository: UserRepository = Depends(get_repository),
):
    """Подтверждает email по токену из письма"""
    user = repository.consume_verification_token(data.token)
    if user is None:
        raise ValidationError.for_field("token", MSG_VERIFICATION_INVALID)
    logger.info(f"Email verified for user ID: {user.id}")
    return MessageResponse(message=MSG_EMAIL_VERIFIED)


@router.post("/email/resend", response_model=MessageResponse)
def resend_verification(
    data: EmailRequest,
    repository: UserRepository = Depends(get_repository),
):
    """Новое письмо с подтверждением (ответ одинаковый для любых email)"""
    user = repository.get_by_email(data.email)
    if user is not None and user.email_verified_at is None:
        repository.issue_verification_token(user.id)
    return MessageResponse(message=MSG_VERIFICATION_SENT)


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    data: EmailRequest,
    repository: UserRepository = Depends(get_repository),
):
    """Письмо со ссылкой для сброса пароля"""
    if repository.get_by_email(data.email) is not None:
        repository.issue_reset_token(data.email)
    return MessageResponse(message=MSG_RESET_LINK_SENT)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    data: ResetPasswordRequest,
    settings: Settings = Depends(get_app_settings),
    repository: UserRepository = Depends(get_repository),
):
    """Устанавливает новый пароль по токену сброса"""
    user = repository.get_by_email(data.email)
    if user is None or not repository.consume_reset_token(data.email, data.token):
        raise ValidationError.for_field("email", MSG_RESET_TOKEN_INVALID)

    repository.update_user(
        user.id,
        hashed_password=hash_password(data.password, rounds=settings.bcrypt_rounds),
    )
    logger.info(f"Password reset for user ID: {user.id}")
    return MessageResponse(message=MSG_PASSWORD_RESET)


@router.put("/profile", response_model=UserEnvelope)
def update_profile(
    data: ProfileUpdateRequest,
    current_user: UserRecord = Depends(get_current_user),
    repository: UserRepository = Depends(get_repository),
):
    """Обновляет профиль текущего пользователя"""
    user = repository.update_user(current_user.id, **data.model_dump(exclude_unset=True))
    logger.info(f"Profile updated for user ID: {user.id}")
    return UserEnvelope(message=MSG_PROFILE_UPDATED, user=UserResponse.model_validate(user))


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    data: ChangePasswordRequest,
    settings: Settings = Depends(get_app_settings),
    current_user: UserRecord = Depends(get_current_user),
    repository: UserRepository = Depends(get_repository),
):
    """Смена пароля с проверкой текущего"""
    if not verify_password(data.current_password, current_user.hashed_password):
        raise ValidationError.for_field("current_password", MSG_CURRENT_PASSWORD_INVALID)

    repository.update_user(
        current_user.id,
        hashed_password=hash_password(data.password, rounds=settings.bcrypt_rounds),
    )
    logger.info(f"Password changed for user ID: {current_user.id}")
    return MessageResponse(message=MSG_PASSWORD_CHANGED)
