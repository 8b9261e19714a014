"""AI-провайдеры для генерации контента.

Этот пакет реализует плагинную архитектуру для работы с внешними сервисами.
Каждый адаптер реализует единый интерфейс BaseProviderAdapter.invoke().

Поддерживаемые возможности и провайдеры:
- article, blog-title — Gemini (OpenAI-совместимый API)
- image — Clipdrop + Cloudinary
- background-removal, object-removal — Cloudinary
- resume-review — pdfplumber + Gemini

Импорт пакета регистрирует фабрики всех адаптеров в реестре.

Пример использования:
    from aistudio.providers.ai import ProviderContext, get_registry

    context = ProviderContext(settings.ai, settings.storage, yaml_config)
    adapters = get_registry().build(context)
    result = await adapters.get(Capability.ARTICLE).invoke(request)
"""

from aistudio.core.exceptions import GenerationError, ProviderNotAvailableError
from aistudio.providers.ai import (  # noqa: F401
    clipdrop_provider,
    cloudinary_provider,
    document_provider,
    openai_provider,
)
from aistudio.providers.ai.base import BaseProviderAdapter, Capability, ProviderResult
from aistudio.providers.ai.context import ProviderContext
from aistudio.providers.ai.registry import AdapterSet, get_registry

__all__ = [
    "AdapterSet",
    "BaseProviderAdapter",
    "Capability",
    "GenerationError",
    "ProviderContext",
    "ProviderNotAvailableError",
    "ProviderResult",
    "get_registry",
]
