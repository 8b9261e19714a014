"""Общие клиенты провайдеров.

Удалённые клиенты (Chat Completions, Cloudinary) — состояние процесса:
создаются один раз при старте и переиспользуются всеми адаптерами,
а не пересоздаются на каждый запрос.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from aistudio.providers.ai.openai_provider import OpenAIChatClient
from aistudio.providers.storage.cloudinary import CloudinaryStorage
from aistudio.utils.logging import get_logger

if TYPE_CHECKING:
    from aistudio.config.models import AIProvidersSettings, StorageSettings
    from aistudio.config.yaml_config import YamlConfig

logger = get_logger(__name__)


class ProviderContext:
    """Настройки и общие клиенты для фабрик адаптеров.

    Клиенты создаются лениво при первом обращении фабрики
    и закрываются одним вызовом aclose() при остановке приложения.

    Attributes:
        ai: Настройки AI-провайдеров (ключи).
        storage: Настройки Cloudinary.
        config: YAML-конфигурация (модель, папки, таймауты).
        proxy_url: URL прокси-сервера (опционально).
        transport: Транспорт httpx для всех клиентов (для тестов).
    """

    def __init__(
        self,
        ai: AIProvidersSettings,
        storage: StorageSettings,
        config: YamlConfig,
        *,
        proxy_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.ai = ai
        self.storage = storage
        self.config = config
        self.proxy_url = proxy_url
        self.transport = transport

        self._chat_client: OpenAIChatClient | None = None
        self._storage_client: CloudinaryStorage | None = None

    def chat_client(self) -> OpenAIChatClient | None:
        """Клиент текстовой модели (None если ключ не настроен)."""
        if self._chat_client is None and self.ai.gemini_api_key is not None:
            http_client = None
            if self.transport is not None:
                http_client = httpx.AsyncClient(transport=self.transport)
            self._chat_client = OpenAIChatClient(
                self.ai.gemini_api_key.get_secret_value(),
                model=self.config.text_model,
                base_url=self.ai.gemini_base_url,
                timeout=self.config.generation_timeouts.article,
                proxy_url=self.proxy_url,
                http_client=http_client,
            )
        return self._chat_client

    def storage_client(self) -> CloudinaryStorage | None:
        """Клиент Cloudinary (None если хранилище не настроено)."""
        if self._storage_client is None and self.storage.is_enabled:
            # is_enabled гарантирует, что все три значения заданы
            self._storage_client = CloudinaryStorage(
                self.storage.cloud_name,  # type: ignore[arg-type]
                self.storage.api_key.get_secret_value(),  # type: ignore[union-attr]
                self.storage.api_secret.get_secret_value(),  # type: ignore[union-attr]
                proxy_url=self.proxy_url,
                transport=self.transport,
            )
        return self._storage_client

    async def aclose(self) -> None:
        """Закрыть созданные клиенты."""
        if self._chat_client is not None:
            await self._chat_client.close()
            self._chat_client = None
        if self._storage_client is not None:
            await self._storage_client.close()
            self._storage_client = None
        logger.debug("Клиенты провайдеров закрыты")
