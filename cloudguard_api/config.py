"""
Централизованная конфигурация backend
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Настройки backend с валидацией через Pydantic"""

    # API
    api_prefix: str = "/api"

    # Security
    auth_secret_key: str = "cloudguard-dev-secret-change-me"
    auth_algorithm: str = "HS256"
    auth_access_token_expire_minutes: int = 60
    auth_refresh_token_expire_days: int = 30
    bcrypt_rounds: int = 12

    # CORS
    cors_allowed_origins: str = "http://localhost:8081,http://localhost:19006"

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="CLOUDGUARD_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Возвращает синглтон настроек"""
    return Settings()
