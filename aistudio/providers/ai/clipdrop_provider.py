"""Адаптер генерации изображений через Clipdrop.

Clipdrop возвращает готовый PNG в теле ответа, поэтому результат
сразу переносится в постоянное хранилище (Cloudinary), а пользователю
и в журнал уходит публичный URL.

Два последовательных шага с явной передачей ошибок:
1. POST /text-to-image/v1 → байты PNG
2. Загрузка PNG в Cloudinary → secure_url

Документация: https://clipdrop.co/apis/docs/text-to-image
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from typing_extensions import override

from aistudio.core.exceptions import AdapterTimeoutError, GenerationError
from aistudio.providers.ai.base import BaseProviderAdapter, Capability, ProviderResult
from aistudio.providers.ai.requests import ImageSynthesisRequest
from aistudio.providers.ai.registry import register_provider
from aistudio.utils.logging import get_logger

if TYPE_CHECKING:
    from aistudio.providers.ai.context import ProviderContext
    from aistudio.providers.ai.requests import GenerationRequest
    from aistudio.providers.storage.cloudinary import CloudinaryStorage

logger = get_logger(__name__)

# URL API Clipdrop
CLIPDROP_API_URL = "https://clipdrop-api.co"

# Таймаут HTTP-запросов (в секундах)
DEFAULT_TIMEOUT_SECONDS = 120.0


class ImageSynthesisAdapter(BaseProviderAdapter):
    """Генерация изображения по тексту (Clipdrop) с переносом в хранилище.

    Пример использования:
        adapter = ImageSynthesisAdapter(api_key="...", storage=storage, folder="generated")
        result = await adapter.invoke(ImageSynthesisRequest(prompt="A cat in space"))
        # result.content: https://res.cloudinary.com/...
    """

    capabilities = frozenset({Capability.IMAGE})

    def __init__(
        self,
        api_key: str,
        *,
        storage: CloudinaryStorage,
        folder: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        proxy_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Создать адаптер.

        Args:
            api_key: API-ключ Clipdrop.
            storage: Клиент хранилища для переноса результата.
            folder: Папка для сгенерированных изображений.
            timeout: Таймаут HTTP-запросов в секундах.
            proxy_url: URL прокси-сервера (опционально).
            transport: Транспорт httpx (для тестов).
        """
        self._storage = storage
        self._folder = folder
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=CLIPDROP_API_URL,
            headers={"x-api-key": api_key},
            timeout=timeout,
            proxy=proxy_url,
            transport=transport,
        )

    @property
    @override
    def provider_name(self) -> str:
        return "clipdrop"

    @override
    async def invoke(self, request: GenerationRequest) -> ProviderResult:
        if not isinstance(request, ImageSynthesisRequest):
            raise GenerationError(
                f"Неподдерживаемый запрос: {type(request).__name__}",
                provider=self.provider_name,
                capability=request.capability,
            )

        image_bytes = await self._render(request.prompt)

        stored = await self._storage.upload(
            image_bytes,
            folder=self._folder,
            capability=Capability.IMAGE,
            filename="generated.png",
        )

        return ProviderResult(
            content=stored.secure_url,
            provider=self.provider_name,
            raw_response={"public_id": stored.public_id, "bytes": len(image_bytes)},
        )

    async def _render(self, prompt: str) -> bytes:
        """Сгенерировать PNG по промпту.

        Raises:
            AdapterTimeoutError: Clipdrop не ответил вовремя.
            GenerationError: Ошибка API или пустой ответ.
        """
        logger.debug("Clipdrop text-to-image: prompt_len=%d", len(prompt))
        try:
            response = await self._client.post(
                "/text-to-image/v1",
                files={"prompt": (None, prompt)},
            )
        except httpx.TimeoutException as e:
            raise AdapterTimeoutError(
                provider=self.provider_name,
                capability=Capability.IMAGE,
                timeout=self._timeout,
            ) from e
        except httpx.HTTPError as e:
            logger.exception("Clipdrop HTTP ошибка")
            raise GenerationError(
                f"Ошибка HTTP: {e}",
                provider=self.provider_name,
                capability=Capability.IMAGE,
                is_retryable=isinstance(e, httpx.TransportError),
                original_error=e,
            ) from e

        if response.status_code >= 400:
            raise GenerationError(
                f"Ошибка Clipdrop API ({response.status_code}): {response.text[:200]}",
                provider=self.provider_name,
                capability=Capability.IMAGE,
                is_retryable=response.status_code == 429 or response.status_code >= 500,
            )

        if not response.content:
            raise GenerationError(
                "Clipdrop вернул пустое изображение",
                provider=self.provider_name,
                capability=Capability.IMAGE,
                is_retryable=True,
            )

        logger.debug(
            "Clipdrop: получено %d байт, осталось кредитов: %s",
            len(response.content),
            response.headers.get("x-remaining-credits"),
        )
        return response.content

    @override
    async def close(self) -> None:
        """Закрыть HTTP-клиент."""
        await self._client.aclose()


# ==============================================================================
# ФАБРИКА АДАПТЕРОВ
# ==============================================================================


class ImageSynthesisAdapterFactory:
    """Фабрика адаптера генерации изображений."""

    def create(self, context: ProviderContext) -> BaseProviderAdapter | None:
        """Создать адаптер если настроены Clipdrop и хранилище."""
        api_key = context.ai.clipdrop_api_key
        storage = context.storage_client()
        if api_key is None or storage is None:
            return None

        return ImageSynthesisAdapter(
            api_key.get_secret_value(),
            storage=storage,
            folder=context.config.storage_folders.generated,
            timeout=context.config.generation_timeouts.image,
            proxy_url=context.proxy_url,
            transport=context.transport,
        )


# ==============================================================================
# РЕГИСТРАЦИЯ ПРОВАЙДЕРА
# ==============================================================================

# Генерация изображений: Clipdrop + Cloudinary
# Ключи: AI__CLIPDROP_API_KEY, STORAGE__*
register_provider(Capability.IMAGE, ImageSynthesisAdapterFactory())
