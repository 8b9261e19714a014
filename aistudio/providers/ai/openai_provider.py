"""Адаптер текстовой генерации через OpenAI-совместимый API.

Этот модуль реализует:
- OpenAIChatClient — общий клиент Chat Completions (один на процесс),
  используется текстовыми возможностями и ревью документов
- TextCompletionAdapter — статьи и заголовки для блога

По умолчанию используется Gemini через OpenAI-совместимый endpoint Google:
https://generativelanguage.googleapis.com/v1beta/openai/
Отличается от OpenAI только base_url, ключом и ID модели.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
from openai import APIStatusError, APITimeoutError, AsyncOpenAI
from typing_extensions import override

from aistudio.core.exceptions import AdapterTimeoutError, GenerationError
from aistudio.providers.ai.base import (
    BaseProviderAdapter,
    Capability,
    ProviderResult,
    is_retryable_error,
)
from aistudio.providers.ai.requests import ArticleRequest, BlogTitleRequest
from aistudio.providers.ai.registry import register_provider
from aistudio.utils.logging import get_logger

if TYPE_CHECKING:
    from openai.types.chat import ChatCompletionMessageParam

    from aistudio.config.yaml_config import TextModelConfig
    from aistudio.providers.ai.context import ProviderContext
    from aistudio.providers.ai.requests import GenerationRequest

logger = get_logger(__name__)

# Таймаут по умолчанию для HTTP-клиента (в секундах).
# Ядро дополнительно ограничивает вызов таймаутом из config.yaml.
DEFAULT_TIMEOUT_SECONDS = 60.0


class OpenAIChatClient:
    """Клиент Chat Completions для OpenAI-совместимых провайдеров.

    Создаётся один раз при старте приложения и переиспользуется
    всеми адаптерами, которым нужна текстовая модель.

    Пример использования:
        client = OpenAIChatClient(
            api_key="AIza...",
            base_url="https://generativelanguage.googleapis.com/v1beta/openai/",
            model=text_model_config,
        )
        result = await client.complete(
            "Write an article about AI",
            max_tokens=800,
            capability=Capability.ARTICLE,
        )

    Attributes:
        _client: Асинхронный клиент OpenAI SDK.
        _model: Конфигурация модели (ID, температура).
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: TextModelConfig,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        proxy_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Создать клиент.

        Args:
            api_key: API-ключ провайдера.
            model: Конфигурация текстовой модели из config.yaml.
            base_url: URL OpenAI-совместимого API.
            timeout: Таймаут запросов в секундах.
            proxy_url: URL прокси-сервера (опционально).
            http_client: Готовый httpx-клиент (для тестов).
        """
        self._base_url = base_url
        self._model = model
        self._timeout = timeout

        if http_client is None and proxy_url:
            logger.info("Используем прокси для OpenAI-совместимого API: %s", proxy_url)
            http_client = httpx.AsyncClient(proxy=proxy_url, timeout=timeout)

        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    @property
    def provider_name(self) -> str:
        """Название провайдера."""
        if self._base_url and "generativelanguage.googleapis.com" in self._base_url:
            return "gemini"
        if self._base_url:
            return f"openai-compatible ({self._base_url})"
        return "openai"

    @property
    def model_id(self) -> str:
        """ID модели на стороне провайдера."""
        return self._model.model_id

    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int,
        capability: Capability,
        system_prompt: str | None = None,
    ) -> ProviderResult:
        """Получить ответ модели на промпт.

        Args:
            prompt: Сообщение пользователя.
            max_tokens: Бюджет токенов ответа.
            capability: Возможность (для контекста ошибок).
            system_prompt: Системный промпт (опционально).

        Returns:
            ProviderResult с текстом ответа.

        Raises:
            GenerationError: Ошибка API или пустой ответ модели.
        """
        messages: list[ChatCompletionMessageParam] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        logger.debug(
            "Chat Completions: model=%s, capability=%s, max_tokens=%d",
            self.model_id,
            capability,
            max_tokens,
        )

        try:
            response = await self._client.chat.completions.create(
                model=self.model_id,
                messages=messages,
                max_tokens=max_tokens,
                temperature=self._model.temperature,
            )
        except APITimeoutError as e:
            raise AdapterTimeoutError(
                provider=self.provider_name,
                capability=capability,
                timeout=self._timeout,
            ) from e
        except APIStatusError as e:
            logger.error(
                "Ошибка API %s (status=%s, capability=%s): %s",
                self.provider_name,
                e.status_code,
                capability,
                e.message,
            )
            raise GenerationError(
                e.message,
                provider=self.provider_name,
                capability=capability,
                is_retryable=e.status_code == 429 or e.status_code >= 500,
                original_error=e,
            ) from e
        except Exception as e:
            logger.exception(
                "Ошибка %s (model=%s, capability=%s)",
                self.provider_name,
                self.model_id,
                capability,
            )
            raise GenerationError(
                str(e),
                provider=self.provider_name,
                capability=capability,
                is_retryable=is_retryable_error(e),
                original_error=e,
            ) from e

        content = ""
        if response.choices:
            content = (response.choices[0].message.content or "").strip()
        if not content:
            raise GenerationError(
                "Модель вернула пустой ответ",
                provider=self.provider_name,
                capability=capability,
                is_retryable=True,
            )

        usage: dict[str, Any] = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        logger.debug("Chat Completions завершён: tokens=%s", usage)

        return ProviderResult(
            content=content,
            provider=self.provider_name,
            usage=usage,
            raw_response={"id": response.id, "model": response.model},
        )

    async def close(self) -> None:
        """Закрыть клиент."""
        await self._client.close()


class TextCompletionAdapter(BaseProviderAdapter):
    """Адаптер текстовых возможностей: статьи и заголовки для блога.

    Длина статьи передаётся модели как бюджет токенов и ограничивается
    сверху значением text_model.max_article_tokens.
    Заголовки используют фиксированный короткий бюджет.
    """

    capabilities = frozenset({Capability.ARTICLE, Capability.BLOG_TITLE})

    def __init__(
        self,
        client: OpenAIChatClient,
        *,
        max_article_tokens: int,
        blog_title_tokens: int,
    ) -> None:
        """Создать адаптер.

        Args:
            client: Общий клиент Chat Completions.
            max_article_tokens: Верхняя граница бюджета статьи.
            blog_title_tokens: Бюджет токенов для заголовков.
        """
        self._client = client
        self._max_article_tokens = max_article_tokens
        self._blog_title_tokens = blog_title_tokens

    @property
    @override
    def provider_name(self) -> str:
        return self._client.provider_name

    def token_budget(self, request: GenerationRequest) -> int:
        """Бюджет токенов для запроса."""
        if isinstance(request, ArticleRequest):
            return min(request.length, self._max_article_tokens)
        return self._blog_title_tokens

    @override
    async def invoke(self, request: GenerationRequest) -> ProviderResult:
        if not isinstance(request, ArticleRequest | BlogTitleRequest):
            raise GenerationError(
                f"Неподдерживаемый запрос: {type(request).__name__}",
                provider=self.provider_name,
                capability=request.capability,
            )

        return await self._client.complete(
            request.prompt,
            max_tokens=self.token_budget(request),
            capability=request.capability,
        )


# ==============================================================================
# ФАБРИКА АДАПТЕРОВ
# ==============================================================================


class TextCompletionAdapterFactory:
    """Фабрика текстового адаптера."""

    def create(self, context: ProviderContext) -> BaseProviderAdapter | None:
        """Создать адаптер если настроен ключ текстовой модели."""
        client = context.chat_client()
        if client is None:
            return None

        text_model = context.config.text_model
        return TextCompletionAdapter(
            client,
            max_article_tokens=text_model.max_article_tokens,
            blog_title_tokens=text_model.blog_title_tokens,
        )


# ==============================================================================
# РЕГИСТРАЦИЯ ПРОВАЙДЕРА
# ==============================================================================

# Статьи и заголовки: Gemini (или любой OpenAI-совместимый провайдер)
# API-ключ: AI__GEMINI_API_KEY
_text_factory = TextCompletionAdapterFactory()
register_provider(Capability.ARTICLE, _text_factory)
register_provider(Capability.BLOG_TITLE, _text_factory)
