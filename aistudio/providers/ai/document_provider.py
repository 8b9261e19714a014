"""Адаптер ревью документов (резюме в PDF).

Конвейер:
1. Извлечение текста из PDF (pdfplumber, в отдельном потоке):
   слова страницы через пробел, страницы через перевод строки,
   каждое слово URL-декодируется
2. Проверка длины: слишком короткий текст отклоняется БЕЗ вызова модели
3. Структурированный промпт ревью → текстовая модель
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import unquote

import pdfplumber
from typing_extensions import override

from aistudio.core.exceptions import (
    DocumentExtractionError,
    GenerationError,
    GenerationValidationError,
)
from aistudio.providers.ai.base import BaseProviderAdapter, Capability, ProviderResult
from aistudio.providers.ai.registry import register_provider
from aistudio.providers.ai.requests import DocumentReviewRequest
from aistudio.utils.logging import get_logger

if TYPE_CHECKING:
    from aistudio.providers.ai.context import ProviderContext
    from aistudio.providers.ai.openai_provider import OpenAIChatClient
    from aistudio.providers.ai.requests import GenerationRequest

logger = get_logger(__name__)

REVIEW_PROMPT_TEMPLATE = """
You are a professional HR and career consultant.

Review the following resume and provide:

- **Summary**
- **Strengths**
- **Weaknesses**
- **Recommendations**

Resume Content:
{resume_text}
"""


def extract_document_text(path: Path) -> str:
    """Извлечь текст из PDF.

    Синхронная функция: вызывайте через asyncio.to_thread.

    Args:
        path: Путь к PDF-файлу.

    Returns:
        Текст документа (может быть пустым для сканов без текстового слоя).
    """
    pages: list[str] = []
    with pdfplumber.open(path) as pdf:
        for page in pdf.pages:
            words = page.extract_words()
            pages.append(" ".join(unquote(word["text"]) for word in words))
    return "\n".join(pages)


def build_review_prompt(resume_text: str) -> str:
    """Сформировать промпт ревью резюме."""
    return REVIEW_PROMPT_TEMPLATE.format(resume_text=resume_text)


class DocumentReviewAdapter(BaseProviderAdapter):
    """Ревью резюме: извлечение текста + текстовая модель.

    Attributes:
        _client: Общий клиент Chat Completions.
        _min_chars: Минимальная длина извлечённого текста.
        _max_tokens: Бюджет токенов ответа.
    """

    capabilities = frozenset({Capability.RESUME_REVIEW})

    def __init__(
        self,
        client: OpenAIChatClient,
        *,
        min_chars: int,
        max_tokens: int,
    ) -> None:
        self._client = client
        self._min_chars = min_chars
        self._max_tokens = max_tokens

    @property
    @override
    def provider_name(self) -> str:
        return self._client.provider_name

    @override
    async def invoke(self, request: GenerationRequest) -> ProviderResult:
        if not isinstance(request, DocumentReviewRequest) or request.document is None:
            raise GenerationError(
                f"Неподдерживаемый запрос: {type(request).__name__}",
                provider=self.provider_name,
                capability=request.capability,
            )

        try:
            resume_text = await asyncio.to_thread(
                extract_document_text, request.document.path
            )
        except Exception as e:
            logger.warning(
                "Не удалось извлечь текст из %s: %s", request.document.filename, e
            )
            raise DocumentExtractionError(
                f"Не удалось извлечь текст из документа: {e}",
                provider="pdfplumber",
                capability=Capability.RESUME_REVIEW,
                original_error=e,
            ) from e

        if len(resume_text.strip()) < self._min_chars:
            raise GenerationValidationError(
                "Resume text is empty or too short.", field="resume"
            )

        logger.debug("Резюме: извлечено %d символов", len(resume_text))

        return await self._client.complete(
            build_review_prompt(resume_text),
            max_tokens=self._max_tokens,
            capability=Capability.RESUME_REVIEW,
        )


# ==============================================================================
# ФАБРИКА АДАПТЕРОВ
# ==============================================================================


class DocumentReviewAdapterFactory:
    """Фабрика адаптера ревью документов."""

    def create(self, context: ProviderContext) -> BaseProviderAdapter | None:
        """Создать адаптер если настроен ключ текстовой модели."""
        client = context.chat_client()
        if client is None:
            return None

        return DocumentReviewAdapter(
            client,
            min_chars=context.config.limits.min_document_chars,
            max_tokens=context.config.text_model.review_tokens,
        )


# ==============================================================================
# РЕГИСТРАЦИЯ ПРОВАЙДЕРА
# ==============================================================================

# Ревью резюме: pdfplumber + Gemini
register_provider(Capability.RESUME_REVIEW, DocumentReviewAdapterFactory())
