"""Проверка форм на клиенте до отправки запросов."""

import re
from typing import Dict, List, Optional

from cloudguard_app.config import app_config
from cloudguard_app.constants import (
    EMAIL_PATTERN,
    MSG_CONFIRM_REQUIRED,
    MSG_CURRENT_PASSWORD_REQUIRED,
    MSG_EMAIL_INVALID,
    MSG_EMAIL_REQUIRED,
    MSG_NAME_REQUIRED,
    MSG_PASSWORD_REQUIRED,
    MSG_PASSWORD_TOO_SHORT,
    MSG_PASSWORDS_MISMATCH,
    MSG_TOKEN_REQUIRED,
)
from cloudguard_app.exceptions import ValidationError
from cloudguard_app.models import (
    LoginCredentials,
    PasswordChange,
    PasswordReset,
    ProfileUpdate,
    RegisterCredentials,
)

FormErrors = Dict[str, List[str]]


def validate_password_length(password: str, min_length: Optional[int] = None) -> Optional[str]:
    """
    Валидация длины пароля.

    Args:
        password: Пароль для валидации
        min_length: Минимальная длина (по умолчанию из конфигурации)

    Returns:
        Сообщение об ошибке или None если всё ок
    """
    min_length = min_length or app_config.min_password_length
    if len(password) < min_length:
        return MSG_PASSWORD_TOO_SHORT.format(min_length=min_length)
    return None


def _check_email(email: str, errors: FormErrors) -> None:
    if not email:
        errors["email"] = [MSG_EMAIL_REQUIRED]
    elif not re.match(EMAIL_PATTERN, email.strip()):
        errors["email"] = [MSG_EMAIL_INVALID]


def _check_new_password(password: str, confirmation: Optional[str], errors: FormErrors) -> None:
    if not password:
        errors["password"] = [MSG_PASSWORD_REQUIRED]
    else:
        length_error = validate_password_length(password)
        if length_error:
            errors["password"] = [length_error]

    if not confirmation:
        errors["password_confirmation"] = [MSG_CONFIRM_REQUIRED]
    elif password != confirmation:
        errors["password_confirmation"] = [MSG_PASSWORDS_MISMATCH]


def _raise_if_any(errors: FormErrors) -> None:
    if errors:
        raise ValidationError(errors, status_code=None)


def validate_login_form(credentials: LoginCredentials) -> None:
    """
    Raises:
        ValidationError: Если email или пароль не заполнены
    """
    errors: FormErrors = {}
    if not credentials.email:
        errors["email"] = [MSG_EMAIL_REQUIRED]
    if not credentials.password:
        errors["password"] = [MSG_PASSWORD_REQUIRED]
    _raise_if_any(errors)


def validate_registration_form(credentials: RegisterCredentials) -> None:
    """
    Проверка формы регистрации: имя, email, длина пароля и совпадение
    подтверждения.

    Raises:
        ValidationError: С ошибками по полям name/email/password/password_confirmation
    """
    errors: FormErrors = {}
    if not credentials.name or not credentials.name.strip():
        errors["name"] = [MSG_NAME_REQUIRED]
    _check_email(credentials.email, errors)
    _check_new_password(credentials.password, credentials.password_confirmation, errors)
    _raise_if_any(errors)


def validate_email_form(email: str) -> None:
    """Проверка формы с единственным полем email"""
    errors: FormErrors = {}
    _check_email(email, errors)
    _raise_if_any(errors)


def validate_verification_token(token: str) -> None:
    if not token:
        raise ValidationError({"token": [MSG_TOKEN_REQUIRED]}, status_code=None)


def validate_profile_form(data: ProfileUpdate) -> None:
    errors: FormErrors = {}
    if not data.name or not data.name.strip():
        errors["name"] = [MSG_NAME_REQUIRED]
    _check_email(data.email, errors)
    _raise_if_any(errors)


def validate_password_change_form(data: PasswordChange) -> None:
    errors: FormErrors = {}
    if not data.current_password:
        errors["current_password"] = [MSG_CURRENT_PASSWORD_REQUIRED]
    _check_new_password(data.password, data.password_confirmation, errors)
    _raise_if_any(errors)


def validate_password_reset_form(data: PasswordReset) -> None:
    errors: FormErrors = {}
    _check_email(data.email, errors)
    if not data.token:
        errors["token"] = [MSG_TOKEN_REQUIRED]
    _check_new_password(data.password, data.password_confirmation, errors)
    _raise_if_any(errors)
