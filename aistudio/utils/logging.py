"""Логирование шлюза генераций.

Строки лога идут в stdout (в терминале с цветными уровнями) и в файл
data/logs/app.log с ротацией. Внутри HTTP-запроса к строке добавляется
метка с ID запроса и пользователя, по которой собирается путь одной
генерации от проверки тарифа до записи в журнал:
    25-01-07 21:55:46 | INFO | services.generation.mediator | [rid=3f9a1c user=u-42] Сообщение
"""

import logging
import os
import sys
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime
from logging.handlers import RotatingFileHandler

from typing_extensions import override

from aistudio.config.constants import DATA_DIR
from aistudio.utils.timezone import get_timezone

LOGS_DIR = DATA_DIR / "logs"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_ctx)s%(message)s"
DATE_FORMAT = "%y-%m-%d %H:%M:%S"

PACKAGE_NAME = "aistudio"

# ANSI: 36 голубой, 32 зелёный, 33 жёлтый, 31 красный, 35 пурпурный
RESET_COLOR = "\033[0m"
LEVEL_COLORS: dict[str, str] = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}

# Шумные сторонние библиотеки: показываем только предупреждения и ошибки
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "pdfminer", "aiosqlite")


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Контекст HTTP-запроса для логов.

    Attributes:
        request_id: ID запроса (из заголовка X-Request-Id или сгенерированный).
        user_id: ID пользователя из X-User-Id (если передан).
    """

    request_id: str
    user_id: str | None = None

    def label(self) -> str:
        """Метка для строки лога."""
        if self.user_id:
            return f"[rid={self.request_id} user={self.user_id}] "
        return f"[rid={self.request_id}] "


# Устанавливается middleware на время обработки запроса
request_context: ContextVar[RequestContext | None] = ContextVar(
    "request_context", default=None
)


class RequestContextFilter(logging.Filter):
    """Добавить в запись лога поле request_ctx из контекста запроса.

    Вне HTTP-запроса (старт, остановка) поле пустое.
    """

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        context = request_context.get()
        record.request_ctx = context.label() if context else ""
        return True


class GatewayFormatter(logging.Formatter):
    """Форматтер строк лога шлюза.

    Время выводится в часовом поясе LOGGING__TIMEZONE, префикс пакета
    "aistudio." у имени логгера отбрасывается. В консоли уровень
    подсвечивается цветом, в файле строки остаются без ANSI-кодов.
    """

    def __init__(
        self,
        timezone_name: str = "UTC",
        *,
        use_colors: bool = False,
    ) -> None:
        super().__init__(LOG_FORMAT, DATE_FORMAT)
        self.timezone = get_timezone(timezone_name)
        self.use_colors = use_colors

    @override
    def formatTime(
        self,
        record: logging.LogRecord,
        datefmt: str | None = None,
    ) -> str:
        moment = datetime.fromtimestamp(record.created, tz=self.timezone)
        return moment.strftime(datefmt or self.default_time_format)

    @override
    def format(self, record: logging.LogRecord) -> str:
        # Запись общая для всех handler-ов, имя возвращаем после форматирования
        logger_name = record.name
        record.name = logger_name.removeprefix(f"{PACKAGE_NAME}.")
        try:
            line = super().format(record)
        finally:
            record.name = logger_name

        color = LEVEL_COLORS.get(record.levelname) if self.use_colors else None
        if color is None:
            return line
        return line.replace(
            f"| {record.levelname} |",
            f"| {color}{record.levelname}{RESET_COLOR} |",
            1,
        )


def _should_use_colors() -> bool:
    """Цвета только для терминала и без NO_COLOR (https://no-color.org/)."""
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


def setup_logging(level: str = "INFO", timezone_name: str = "UTC") -> None:
    """Настроить корневой логгер и логгеры uvicorn.

    Строки пишутся в stdout и в data/logs/app.log (ротация по 5 МБ,
    три архивных файла). Повторный вызов заменяет ранее установленные
    handler-ы, а не добавляет новые.

    Args:
        level: Уровень логирования (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        timezone_name: Часовой пояс IANA для времени в строках лога.
    """
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    context_filter = RequestContextFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        GatewayFormatter(timezone_name, use_colors=_should_use_colors())
    )

    file_handler = RotatingFileHandler(
        LOGS_DIR / "app.log",
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    file_handler.setFormatter(GatewayFormatter(timezone_name))

    handlers: list[logging.Handler] = [console_handler, file_handler]
    for handler in handlers:
        handler.addFilter(context_filter)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(level.upper())
    for handler in handlers:
        root_logger.addHandler(handler)

    # uvicorn ставит свои handler-ы, переводим его на общий формат
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [] if name == "uvicorn" else list(handlers)
        uvicorn_logger.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Логгер модуля, обычно get_logger(__name__)."""
    return logging.getLogger(name)
