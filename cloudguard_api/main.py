"""
FastAPI backend CloudGuard для локальной разработки
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cloudguard_api.config import Settings, get_settings
from cloudguard_api.core import UserRepository, register_error_handlers
from cloudguard_api.server import auth_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[UserRepository] = None,
) -> FastAPI:
    """
    Создает и настраивает FastAPI приложение.

    Args:
        settings: Настройки (по умолчанию из окружения)
        repository: Хранилище пользователей (по умолчанию пустое in-memory)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="CloudGuard API",
        description="Auth API для клиента CloudGuard (in-memory, для разработки)",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.repository = repository or UserRepository()

    # Настройка CORS с whitelist доменов из конфигурации
    allowed_origins = [origin.strip() for origin in settings.cors_allowed_origins.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Регистрация обработчиков ошибок
    register_error_handlers(app)

    app.include_router(auth_router, prefix=settings.api_prefix)

    return app


# Создаем приложение
app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
