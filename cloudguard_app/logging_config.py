"""
Логирование клиента

Записи проходят через фильтр, который вырезает bearer токены и JWT,
поэтому учетные данные не попадают ни в консоль, ни в файл.
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Атрибуты, которые есть у любой LogRecord; все остальное пришло через extra
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

_BEARER_RE = re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+", re.IGNORECASE)
_JWT_RE = re.compile(r"\beyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*")
_SECRET_KEYS = frozenset({"token", "access_token", "refresh_token", "password", "authorization"})

REDACTED = "***"


def redact(text: str) -> str:
    """Заменить bearer токены и JWT в строке на ***"""
    text = _BEARER_RE.sub(rf"\g<1>{REDACTED}", text)
    return _JWT_RE.sub(REDACTED, text)


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}


class CredentialRedactingFilter(logging.Filter):
    """
    Маскирует учетные данные в тексте сообщения и в полях extra.

    Сообщение форматируется заранее, после фильтра args пустые.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg, record.args = cleaned, None

        for key, value in _extra_fields(record).items():
            if key.lower() in _SECRET_KEYS and value is not None:
                setattr(record, key, REDACTED)
            elif isinstance(value, str):
                setattr(record, key, redact(value))
        return True


class JSONFormatter(logging.Formatter):
    """Одна JSON строка на запись; поля extra попадают в корень"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        log_data.update(_extra_fields(record))

        if record.exc_info:
            log_data["exception"] = redact(self.formatException(record.exc_info))

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """Цветной уровень в консоли (для разработки)"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def formatMessage(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().formatMessage(record)
        # Копия, чтобы цвет не попал в другие handlers
        colored = logging.makeLogRecord(vars(record))
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().formatMessage(colored)


def setup_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """
    Настройка логирования для клиента.

    Args:
        level: Уровень логирования (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: JSON в консоль вместо цветного текста
        log_file: Путь к файлу логов (всегда JSON)

    Example:
        >>> setup_logging(level="DEBUG")
        >>> logging.getLogger(__name__).info("Signed in", extra={"user_id": 1})
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    redacting = CredentialRedactingFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.addFilter(redacting)
    if json_logs:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(
            ColoredFormatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.addFilter(redacting)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    # urllib3 на DEBUG печатает заголовки запросов
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    root_logger.info(
        "Logging configured",
        extra={"log_level": level, "json_logs": json_logs, "log_file": log_file},
    )
