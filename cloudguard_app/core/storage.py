"""Хранилища учетных данных: токен и закешированный пользователь."""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Tuple

from cloudguard_app.constants import (
    STORAGE_REFRESH_TOKEN_KEY,
    STORAGE_TOKEN_KEY,
    STORAGE_USER_KEY,
)
from cloudguard_app.models import User

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """
    Key-value хранилище строк.

    Каждая операция атомарна сама по себе, но пара (token, user)
    записывается двумя независимыми операциями.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Значение по ключу или None"""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Записать значение"""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Удалить ключ (отсутствующий ключ не ошибка)"""


class MemoryCredentialStore(CredentialStore):
    """Хранилище в памяти процесса (тесты, одноразовые сессии)."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)


class FileCredentialStore(CredentialStore):
    """
    Хранилище в JSON файле, доступном только владельцу (0600).

    Каждая запись переписывает файл целиком через временный файл и
    os.replace, поэтому частичная запись невозможна.
    """

    FILE_MODE = 0o600

    def __init__(self, path: str) -> None:
        """
        Args:
            path: Путь к файлу; каталог создается при первой записи
        """
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read credential file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Credential file {self.path} has unexpected format, ignoring")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".credentials-")
        try:
            os.chmod(tmp_path, self.FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key not in data:
                return
            del data[key]
            if data:
                self._write(data)
            else:
                self.path.unlink(missing_ok=True)


def save_credentials(
    store: CredentialStore,
    token: str,
    user: User,
    refresh_token: Optional[str] = None,
) -> None:
    """
    Сохранить токен и пользователя.

    Args:
        store: Хранилище учетных данных
        token: Bearer токен
        user: Пользователь
        refresh_token: Refresh токен, если backend его выдал; иначе
            прежний refresh токен удаляется
    """
    store.set(STORAGE_TOKEN_KEY, token)
    save_user(store, user)
    if refresh_token:
        store.set(STORAGE_REFRESH_TOKEN_KEY, refresh_token)
    else:
        store.remove(STORAGE_REFRESH_TOKEN_KEY)
    logger.info(f"[SAVE_CREDENTIALS] Saved credentials for user id={user.id}")


def save_user(store: CredentialStore, user: User) -> None:
    """Перезаписать закешированного пользователя, не трогая токен"""
    store.set(STORAGE_USER_KEY, user.model_dump_json())


def load_credentials(store: CredentialStore) -> Tuple[Optional[str], Optional[str]]:
    """
    Прочитать сохраненную пару.

    Returns:
        (token, user_json); любой элемент может быть None
    """
    return store.get(STORAGE_TOKEN_KEY), store.get(STORAGE_USER_KEY)


def clear_credentials(store: CredentialStore) -> None:
    """Удалить токены и пользователя"""
    store.remove(STORAGE_TOKEN_KEY)
    store.remove(STORAGE_USER_KEY)
    store.remove(STORAGE_REFRESH_TOKEN_KEY)
    logger.info("[CLEAR_CREDENTIALS] Credentials removed")
