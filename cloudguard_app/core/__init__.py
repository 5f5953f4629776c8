"""Модуль core: хранилище учетных данных, сессия, проверка форм и маршрутов."""

from cloudguard_app.core.auth import (
    validate_email_form,
    validate_login_form,
    validate_password_change_form,
    validate_password_length,
    validate_password_reset_form,
    validate_profile_form,
    validate_registration_form,
)
from cloudguard_app.core.guard import RouteAction, RouteDecision, RouteGuard, decide_route
from cloudguard_app.core.session import SessionStore
from cloudguard_app.core.storage import (
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
    clear_credentials,
    load_credentials,
    save_credentials,
    save_user,
)

__all__ = [
    # auth
    "validate_email_form",
    "validate_login_form",
    "validate_password_change_form",
    "validate_password_length",
    "validate_password_reset_form",
    "validate_profile_form",
    "validate_registration_form",
    # guard
    "RouteAction",
    "RouteDecision",
    "RouteGuard",
    "decide_route",
    # session
    "SessionStore",
    # storage
    "CredentialStore",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "clear_credentials",
    "load_credentials",
    "save_credentials",
    "save_user",
]
