"""
Модуль server с эндпоинтами FastAPI
"""

from .auth_endpoints import router as auth_router
from .dependencies import get_current_user, get_token_payload

__all__ = [
    "auth_router",
    "get_current_user",
    "get_token_payload",
]
