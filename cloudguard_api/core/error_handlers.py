"""
Централизованная обработка ошибок: ответы в формате Laravel
({message, errors?: {field: [messages]}})
"""

import logging
from typing import Any, Dict, List, Sequence

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .constants import MSG_VALIDATION_FAILED
from .exceptions import AppException, AuthenticationError, ValidationError

logger = logging.getLogger(__name__)


def field_errors_from_pydantic(errors: Sequence[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Преобразует ошибки pydantic в {field: [messages]}.

    Сегмент "body" в loc пропускается.
    """
    result: Dict[str, List[str]] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = ".".join(loc) or "body"
        message = str(error.get("msg", MSG_VALIDATION_FAILED))
        # pydantic добавляет префикс "Value error, " к ValueError из валидаторов
        message = message.removeprefix("Value error, ")
        result.setdefault(field, []).append(message)
    return result


def register_error_handlers(app: FastAPI) -> None:
    """
    Регистрирует обработчики ошибок для FastAPI приложения.

    Args:
        app: FastAPI приложение
    """

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Обработка ошибок 422 - валидация тела запроса"""
        errors = field_errors_from_pydantic(exc.errors())
        logger.warning(f"Request validation failed: {list(errors)}")
        return JSONResponse(
            status_code=ValidationError.status_code,
            content=ValidationError(errors).to_dict(),
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        """Обработка ошибок 422 - валидация в обработчиках"""
        logger.warning(f"Validation error: {exc.message}")
        return JSONResponse(
            status_code=ValidationError.status_code,
            content=exc.to_dict(),
        )

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        """Обработка ошибок 401 Unauthorized"""
        logger.warning(f"Authentication error ({exc.error_code}): {exc.message}")
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=exc.to_dict(),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(AppException)
    async def app_exception_handler(
        request: Request, exc: AppException
    ) -> JSONResponse:
        """Обработка общих ошибок приложения"""
        logger.error(f"Application error: {exc.message}", exc_info=True)
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.message},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Обработка непредвиденных ошибок"""
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Server Error"},
        )
