"""
Пароли и JWT токены
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

from cloudguard_api.config import Settings

from .constants import MAX_PASSWORD_LENGTH_BYTES, TOKEN_KIND_ACCESS, TOKEN_KIND_REFRESH
from .exceptions import TokenExpiredError, UnauthorizedError

logger = logging.getLogger(__name__)


def _truncate(password: str) -> bytes:
    # Bcrypt имеет ограничение в 72 байта
    return password.encode("utf-8")[:MAX_PASSWORD_LENGTH_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Хеширует пароль с учетом ограничения bcrypt в 72 байта.

    Args:
        password: Пароль для хеширования
        rounds: Стоимость bcrypt

    Returns:
        Хешированный пароль
    """
    return bcrypt.hashpw(_truncate(password), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Проверяет пароль; пароль обрезается так же, как при хешировании"""
    try:
        return bcrypt.checkpw(_truncate(plain_password), hashed_password.encode("ascii"))
    except ValueError as e:
        logger.error(f"Malformed password hash: {e}")
        return False


def _create_token(user_id: int, kind: str, expires_delta: timedelta, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    to_encode = {
        "sub": str(user_id),
        "type": kind,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(to_encode, settings.auth_secret_key, algorithm=settings.auth_algorithm)


def create_access_token(user_id: int, settings: Settings) -> str:
    """Создает access токен"""
    return _create_token(
        user_id,
        TOKEN_KIND_ACCESS,
        timedelta(minutes=settings.auth_access_token_expire_minutes),
        settings,
    )


def create_refresh_token(user_id: int, settings: Settings) -> str:
    """Создает refresh токен"""
    return _create_token(
        user_id,
        TOKEN_KIND_REFRESH,
        timedelta(days=settings.auth_refresh_token_expire_days),
        settings,
    )


def decode_token(token: str, expected_kind: str, settings: Settings) -> Dict[str, Any]:
    """
    Декодирует и проверяет токен.

    Raises:
        TokenExpiredError: Истек срок действия
        UnauthorizedError: Подпись, формат или тип токена неверны
    """
    try:
        payload = jwt.decode(token, settings.auth_secret_key, algorithms=[settings.auth_algorithm])
    except jwt.ExpiredSignatureError as e:
        logger.warning("Token expired")
        raise TokenExpiredError("Token has expired.") from e
    except jwt.PyJWTError as e:
        logger.warning(f"JWT decode error: {e}")
        raise UnauthorizedError() from e

    if payload.get("type") != expected_kind or not payload.get("sub") or not payload.get("jti"):
        logger.warning(f"Token payload is not a valid {expected_kind} token")
        raise UnauthorizedError()
    return payload
