"""
Зависимости FastAPI: настройки, репозиторий и текущий пользователь
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cloudguard_api.config import Settings
from cloudguard_api.core import UnauthorizedError, UserRecord, UserRepository, decode_token
from cloudguard_api.core.constants import TOKEN_KIND_ACCESS

logger = logging.getLogger(__name__)

# Схема безопасности для Bearer токена; отсутствие заголовка обрабатываем сами
security = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_repository(request: Request) -> UserRepository:
    return request.app.state.repository


def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    settings: Settings = Depends(get_app_settings),
    repository: UserRepository = Depends(get_repository),
) -> Dict[str, Any]:
    """
    Проверяет access токен из заголовка Authorization.

    Raises:
        UnauthorizedError: Токена нет, он недействителен или отозван
    """
    if credentials is None:
        raise UnauthorizedError()

    payload = decode_token(credentials.credentials, TOKEN_KIND_ACCESS, settings)
    if repository.is_revoked(payload["jti"]):
        logger.warning(f"Revoked token used by user ID: {payload['sub']}")
        raise UnauthorizedError()
    return payload


def get_current_user(
    payload: Dict[str, Any] = Depends(get_token_payload),
    repository: UserRepository = Depends(get_repository),
) -> UserRecord:
    """Текущий пользователь по access токену"""
    try:
        user = repository.get_by_id(int(payload["sub"]))
    except (TypeError, ValueError) as e:
        logger.error(f"Token has malformed subject: {e}")
        raise UnauthorizedError() from e

    if user is None:
        logger.warning(f"User with id {payload['sub']} not found")
        raise UnauthorizedError()
    return user
