"""Конфигурация клиента CloudGuard."""

import os
from dataclasses import dataclass, field
from pathlib import Path


def _default_credentials_path() -> str:
    """Путь к файлу с учетными данными по умолчанию (~/.cloudguard/credentials.json)"""
    return str(Path.home() / ".cloudguard" / "credentials.json")


@dataclass
class AppConfig:
    """Основная конфигурация клиента."""

    # API настройки
    api_url: str = field(
        default_factory=lambda: os.getenv("CLOUDGUARD_API_URL", "http://localhost:8000/api")
    )
    api_timeout: float = field(
        default_factory=lambda: float(os.getenv("CLOUDGUARD_API_TIMEOUT", "60"))
    )
    ping_timeout: float = 10

    # Имя устройства для Sanctum-совместимого backend
    device_name: str = field(
        default_factory=lambda: os.getenv("CLOUDGUARD_DEVICE_NAME", "Python Client")
    )

    # Хранилище учетных данных
    credentials_path: str = field(
        default_factory=lambda: os.getenv("CLOUDGUARD_CREDENTIALS_PATH", _default_credentials_path())
    )

    # Пароли
    min_password_length: int = 8

    # Логирование
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    json_logs: bool = field(
        default_factory=lambda: os.getenv("CLOUDGUARD_JSON_LOGS", "false").lower() == "true"
    )


# Глобальная конфигурация
app_config = AppConfig()
