"""Настройки шлюза генераций из переменных окружения.

Модуль читает .env при импорте и создаёт глобальный объект settings.
Секреты провайдеров (ключи Gemini, Clipdrop, Cloudinary) задаются
только здесь, YAML-конфигурация их не содержит.

Тесты импортируют классы секций из aistudio.config.models,
чтобы не зависеть от .env разработчика:
    from aistudio.config.models import AIProvidersSettings
"""

import sys
from pathlib import Path
from urllib.parse import urlsplit

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# aistudio/config/settings.py → корень проекта
PROJECT_ROOT = Path(__file__).parent.parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

# Без файла .env настройки берутся только из окружения
ENV_FILE_PATH = ENV_FILE if ENV_FILE.exists() else None

from aistudio.config.models import (  # noqa: E402
    AIProvidersSettings,
    AppSettings,
    CORSSettings,
    DatabaseSettings,
    LoggingSettings,
    StorageSettings,
)

__all__ = [
    "AIProvidersSettings",
    "AppSettings",
    "CORSSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "Settings",
    "StorageSettings",
    "load_settings",
    "settings",
]

DEFAULT_ERROR_MESSAGE = "Ошибка конфигурации. Проверьте файл .env или переменные окружения"

# Схемы, которые понимает httpx для исходящих запросов к провайдерам
PROXY_SCHEMES = frozenset({"http", "https", "socks5"})


class Settings(BaseSettings):
    """Все секции настроек шлюза.

    Переменные окружения имеют приоритет над .env.
    Вложенные поля задаются через "__", например AI__GEMINI_API_KEY.
    """

    model_config = SettingsConfigDict(
        env_file=ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    app: AppSettings = AppSettings()
    database: DatabaseSettings = DatabaseSettings()
    logging: LoggingSettings = LoggingSettings()
    ai: AIProvidersSettings = AIProvidersSettings()
    storage: StorageSettings = StorageSettings()
    cors: CORSSettings = CORSSettings()

    # Прокси для Gemini, Clipdrop и Cloudinary: http://host:port или socks5://host:port
    proxy: str | None = None

    @field_validator("proxy")
    @classmethod
    def _check_proxy(cls, value: str | None) -> str | None:
        """Пустая строка отключает прокси, неизвестная схема запрещена."""
        if value is None or not value.strip():
            return None
        parts = urlsplit(value.strip())
        if parts.scheme not in PROXY_SCHEMES or not parts.netloc:
            raise ValueError(
                f"PROXY должен иметь вид схема://хост:порт, "
                f"схема одна из: {', '.join(sorted(PROXY_SCHEMES))}"
            )
        return value.strip()


def _format_validation_error(error: ValidationError) -> str:
    """Преобразовать ошибку Pydantic в понятное русское сообщение.

    Args:
        error: Ошибка валидации от Pydantic.

    Returns:
        Понятное сообщение на русском языке.
    """
    messages: list[str] = [DEFAULT_ERROR_MESSAGE]

    for err in error.errors():
        field_path = ".".join(str(loc) for loc in err["loc"])
        messages.append(f"Поле: {field_path}")
        messages.append(f"Тип ошибки: {err['type']}")
        messages.append(f"Сообщение: {err['msg']}")

    return "\n".join(messages)


def load_settings() -> Settings:
    """Загрузить настройки из переменных окружения.

    Если настройки некорректны — выводит понятную ошибку на русском
    и завершает программу.

    Returns:
        Объект Settings с загруженными настройками.
    """
    try:
        return Settings()
    except ValidationError as e:
        print(_format_validation_error(e), file=sys.stderr)
        sys.exit(1)


# Загружаем настройки при импорте модуля.
settings = load_settings()
