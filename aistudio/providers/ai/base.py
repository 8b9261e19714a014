"""Базовый адаптер для AI-провайдеров.

Этот модуль определяет абстрактный интерфейс, который должны реализовать
все адаптеры провайдеров. Это позволяет:
- Единообразно работать с разными сервисами (Gemini, Clipdrop, Cloudinary)
- Не разбирать форматы ответов конкретных API в ядре
- Подменять адаптеры фейками в тестах

Паттерн: Adapter (GoF) + Strategy
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from aistudio.providers.ai.requests import GenerationRequest


class Capability(StrEnum):
    """Возможности генерации.

    Значение возможности записывается в поле type журнала генераций.
    """

    # Статья по теме (текстовая модель, бюджет токенов задаёт пользователь)
    ARTICLE = "article"

    # Заголовки для блога (текстовая модель, короткий фиксированный бюджет)
    BLOG_TITLE = "blog-title"

    # Изображение по текстовому описанию
    IMAGE = "image"

    # Удаление фона с изображения
    BACKGROUND_REMOVAL = "background-removal"

    # Удаление объекта с изображения (generative fill)
    OBJECT_REMOVAL = "object-removal"

    # Ревью резюме (извлечение текста из PDF + текстовая модель)
    RESUME_REVIEW = "resume-review"

    @property
    def is_media(self) -> bool:
        """Результат: URL изображения в хранилище, а не текст."""
        return self in MEDIA_CAPABILITIES


MEDIA_CAPABILITIES = frozenset(
    {Capability.IMAGE, Capability.BACKGROUND_REMOVAL, Capability.OBJECT_REMOVAL}
)


@dataclass
class ProviderResult:
    """Успешный результат адаптера.

    Унифицированная структура для всех возможностей: ядро никогда
    не видит формат ответа конкретного провайдера.
    Ошибки сюда не попадают — адаптер выбрасывает GenerationError.

    Attributes:
        content: Сгенерированный текст или URL изображения в хранилище.
        provider: Название провайдера, выполнившего запрос.
        usage: Информация об использовании токенов (если есть).
        raw_response: Сокращённый сырой ответ API (для отладки).
    """

    content: str
    provider: str
    usage: dict[str, Any] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)


def is_retryable_error(error: Exception) -> bool:
    """Определить, можно ли повторить запрос после ошибки.

    Временными считаются: rate limit, таймауты, обрыв соединения, 5xx.

    Args:
        error: Исключение от SDK или HTTP-клиента.

    Returns:
        True если ошибка временная.
    """
    error_message = str(error).lower()
    retryable_patterns = [
        "rate limit",
        "429",
        "timeout",
        "timed out",
        "connection",
        "server error",
        "500",
        "502",
        "503",
        "504",
    ]
    return any(pattern in error_message for pattern in retryable_patterns)


class BaseProviderAdapter(ABC):
    """Абстрактный базовый класс для адаптеров провайдеров.

    Для добавления нового адаптера:
    1. Создайте класс, наследующий BaseProviderAdapter
    2. Укажите capabilities и реализуйте provider_name и invoke()
    3. Зарегистрируйте фабрику через register_provider()

    Контракт invoke():
    - Успех → ProviderResult с текстом или URL
    - Ошибка → GenerationError (или подкласс); сырые исключения SDK
      наружу не выходят
    - Ошибка входных данных, обнаруженная адаптером → GenerationValidationError
    """

    #: Возможности, которые обслуживает адаптер
    capabilities: frozenset[Capability] = frozenset()

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Название провайдера (для логов и ошибок).

        Примеры: "gemini", "clipdrop", "cloudinary".
        """

    @abstractmethod
    async def invoke(self, request: GenerationRequest) -> ProviderResult:
        """Выполнить запрос к провайдеру.

        Args:
            request: Провалидированный запрос на генерацию.

        Returns:
            ProviderResult с результатом.

        Raises:
            GenerationError: При ошибке провайдера.
            GenerationValidationError: Если данные запроса непригодны
                для обработки (например, пустой документ).
        """

    def supports_capability(self, capability: Capability) -> bool:
        """Проверить, обслуживает ли адаптер данную возможность."""
        return capability in self.capabilities

    async def close(self) -> None:
        """Освободить ресурсы адаптера (HTTP-клиенты).

        По умолчанию ничего не делает: общие клиенты закрывает ProviderContext.
        """
        return None
