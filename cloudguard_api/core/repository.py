"""
In-memory репозиторий пользователей, токенов подтверждения и сброса пароля
"""

import logging
import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Set

from .constants import MSG_EMAIL_TAKEN
from .exceptions import ResourceAlreadyExistsError

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class UserRecord:
    """Пользователь в хранилище"""

    id: int
    name: str
    email: str
    hashed_password: str
    phone: Optional[str] = None
    avatar: Optional[str] = None
    email_verified_at: Optional[str] = None
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)


class UserRepository:
    """
    Хранилище пользователей в памяти процесса.

    Все операции выполняются под одной блокировкой.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: Dict[int, UserRecord] = {}
        self._next_id = 1
        self._revoked_jti: Set[str] = set()
        self._verification_tokens: Dict[str, int] = {}
        self._reset_tokens: Dict[str, str] = {}

    @staticmethod
    def _normalize_email(email: str) -> str:
        return email.strip().lower()

    def get_by_id(self, user_id: int) -> Optional[UserRecord]:
        with self._lock:
            return self._users.get(user_id)

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        email = self._normalize_email(email)
        with self._lock:
            return next((u for u in self._users.values() if u.email == email), None)

    def create_user(
        self,
        name: str,
        email: str,
        hashed_password: str,
        phone: Optional[str] = None,
        avatar: Optional[str] = None,
    ) -> UserRecord:
        """
        Создает пользователя.

        Raises:
            ResourceAlreadyExistsError: Email уже занят
        """
        email = self._normalize_email(email)
        with self._lock:
            if any(u.email == email for u in self._users.values()):
                raise ResourceAlreadyExistsError.for_field("email", MSG_EMAIL_TAKEN)
            user = UserRecord(
                id=self._next_id,
                name=name,
                email=email,
                hashed_password=hashed_password,
                phone=phone,
                avatar=avatar,
            )
            self._users[user.id] = user
            self._next_id += 1

        logger.info(f"Created user: {user.email} (ID: {user.id})")
        return user

    def update_user(self, user_id: int, **changes: Optional[str]) -> UserRecord:
        """
        Обновляет поля пользователя; смена email сбрасывает подтверждение.

        Raises:
            ResourceAlreadyExistsError: Новый email занят другим пользователем
        """
        with self._lock:
            user = self._users[user_id]
            new_email = changes.get("email")
            if new_email is not None:
                new_email = self._normalize_email(new_email)
                if any(u.email == new_email and u.id != user_id for u in self._users.values()):
                    raise ResourceAlreadyExistsError.for_field("email", MSG_EMAIL_TAKEN)
                if new_email != user.email:
                    user.email_verified_at = None
                changes["email"] = new_email
            for key, value in changes.items():
                setattr(user, key, value)
            user.updated_at = _now()
            return user

    def revoke(self, jti: str) -> None:
        with self._lock:
            self._revoked_jti.add(jti)

    def is_revoked(self, jti: str) -> bool:
        with self._lock:
            return jti in self._revoked_jti

    def issue_verification_token(self, user_id: int) -> str:
        """Новый токен подтверждения email (письмо заменяется записью в лог)"""
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._verification_tokens = {
                t: uid for t, uid in self._verification_tokens.items() if uid != user_id
            }
            self._verification_tokens[token] = user_id
        logger.info(f"Verification email queued for user ID: {user_id}")
        return token

    def consume_verification_token(self, token: str) -> Optional[UserRecord]:
        with self._lock:
            user_id = self._verification_tokens.pop(token, None)
            if user_id is None:
                return None
            user = self._users.get(user_id)
            if user is not None:
                user.email_verified_at = _now()
                user.updated_at = user.email_verified_at
            return user

    def issue_reset_token(self, email: str) -> str:
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._reset_tokens[self._normalize_email(email)] = token
        logger.info("Password reset email queued")
        return token

    def consume_reset_token(self, email: str, token: str) -> bool:
        email = self._normalize_email(email)
        with self._lock:
            expected = self._reset_tokens.get(email)
            if expected is None or not secrets.compare_digest(expected, token):
                return False
            del self._reset_tokens[email]
            return True

    def pending_verification_token(self, user_id: int) -> Optional[str]:
        """Текущий токен подтверждения пользователя (вместо почтового ящика)"""
        with self._lock:
            return next(
                (t for t, uid in self._verification_tokens.items() if uid == user_id),
                None,
            )

    def pending_reset_token(self, email: str) -> Optional[str]:
        with self._lock:
            return self._reset_tokens.get(self._normalize_email(email))
