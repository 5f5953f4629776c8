"""Сборка клиента при старте приложения."""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from cloudguard_app.api_client import APIClient
from cloudguard_app.config import AppConfig, app_config
from cloudguard_app.core.guard import Navigator, RouteGuard
from cloudguard_app.core.session import SessionStore
from cloudguard_app.core.storage import CredentialStore, FileCredentialStore
from cloudguard_app.logging_config import setup_logging

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """
    Все объекты сессии, созданные один раз при старте и переданные
    в корень навигации.
    """

    config: AppConfig
    store: CredentialStore
    client: APIClient
    session: SessionStore
    guard: RouteGuard

    def start(self) -> None:
        """Подписать guard и восстановить сессию из хранилища"""
        self.guard.attach()
        self.session.check_auth()
        self.guard.evaluate()

    def close(self) -> None:
        self.guard.detach()
        self.client.session.close()


def create_app_context(
    navigator: Navigator,
    config: Optional[AppConfig] = None,
    store: Optional[CredentialStore] = None,
    http_session: Optional[requests.Session] = None,
    location: str = "/",
    configure_logging: bool = False,
) -> AppContext:
    """
    Создать контекст приложения.

    Args:
        navigator: Функция перехода на маршрут
        config: Конфигурация (по умолчанию из окружения)
        store: Хранилище учетных данных (по умолчанию файл из конфигурации)
        http_session: HTTP сессия для API клиента
        location: Начальный маршрут
        configure_logging: Настроить логирование по конфигурации

    Returns:
        Контекст, готовый к start()
    """
    config = config or app_config
    if configure_logging:
        setup_logging(level=config.log_level, json_logs=config.json_logs)

    store = store or FileCredentialStore(config.credentials_path)
    client = APIClient(
        store,
        base_url=config.api_url,
        timeout=config.api_timeout,
        device_name=config.device_name,
        session=http_session,
    )
    session = SessionStore(client, store)
    guard = RouteGuard(session, navigator, location=location)

    logger.info(f"App context created for API at {config.api_url}")
    return AppContext(config=config, store=store, client=client, session=session, guard=guard)
