"""Адаптеры редактирования изображений через Cloudinary.

- BackgroundRemovalAdapter — загрузка с трансформацией e_background_removal,
  результат доступен сразу по secure_url
- ObjectRemovalAdapter — загрузка исходника, затем URL производного
  изображения с e_gen_remove:<объект>

Оба адаптера выполняют два последовательных шага (загрузка, затем
трансформация) с явной передачей ошибок между ними.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from typing_extensions import override

from aistudio.core.exceptions import GenerationError, StorageError
from aistudio.providers.ai.base import BaseProviderAdapter, Capability, ProviderResult
from aistudio.providers.ai.registry import register_provider
from aistudio.providers.ai.requests import (
    BackgroundRemovalRequest,
    ObjectRemovalRequest,
    check_single_token,
)
from aistudio.utils.logging import get_logger

if TYPE_CHECKING:
    from aistudio.providers.ai.context import ProviderContext
    from aistudio.providers.ai.requests import GenerationRequest
    from aistudio.providers.storage.cloudinary import CloudinaryStorage
    from aistudio.utils.staging import StagedFile

logger = get_logger(__name__)

# Трансформация удаления фона (применяется при загрузке)
BACKGROUND_REMOVAL_TRANSFORMATION = "e_background_removal"


async def _read_staged(staged: StagedFile | None, capability: Capability) -> bytes:
    """Прочитать временный файл запроса в отдельном потоке."""
    if staged is None:
        raise GenerationError(
            "В запросе нет файла",
            provider="cloudinary",
            capability=capability,
        )
    try:
        return await asyncio.to_thread(staged.read_bytes)
    except OSError as e:
        raise StorageError(
            f"Не удалось прочитать файл запроса: {e}",
            provider="cloudinary",
            capability=capability,
            original_error=e,
        ) from e


class BackgroundRemovalAdapter(BaseProviderAdapter):
    """Удаление фона с изображения."""

    capabilities = frozenset({Capability.BACKGROUND_REMOVAL})

    def __init__(self, storage: CloudinaryStorage, *, folder: str) -> None:
        self._storage = storage
        self._folder = folder

    @property
    @override
    def provider_name(self) -> str:
        return self._storage.provider_name

    @override
    async def invoke(self, request: GenerationRequest) -> ProviderResult:
        if not isinstance(request, BackgroundRemovalRequest):
            raise GenerationError(
                f"Неподдерживаемый запрос: {type(request).__name__}",
                provider=self.provider_name,
                capability=request.capability,
            )

        data = await _read_staged(request.image, Capability.BACKGROUND_REMOVAL)
        stored = await self._storage.upload(
            data,
            folder=self._folder,
            capability=Capability.BACKGROUND_REMOVAL,
            filename=request.image.filename if request.image else "image.png",
            transformation=BACKGROUND_REMOVAL_TRANSFORMATION,
        )

        return ProviderResult(
            content=stored.secure_url,
            provider=self.provider_name,
            raw_response={"public_id": stored.public_id},
        )


class ObjectRemovalAdapter(BaseProviderAdapter):
    """Удаление объекта с изображения (generative remove).

    Название объекта проверяется повторно ДО загрузки в хранилище.
    """

    capabilities = frozenset({Capability.OBJECT_REMOVAL})

    def __init__(self, storage: CloudinaryStorage, *, folder: str) -> None:
        self._storage = storage
        self._folder = folder

    @property
    @override
    def provider_name(self) -> str:
        return self._storage.provider_name

    @override
    async def invoke(self, request: GenerationRequest) -> ProviderResult:
        if not isinstance(request, ObjectRemovalRequest):
            raise GenerationError(
                f"Неподдерживаемый запрос: {type(request).__name__}",
                provider=self.provider_name,
                capability=request.capability,
            )

        object_name = check_single_token(request.object_name)

        data = await _read_staged(request.image, Capability.OBJECT_REMOVAL)
        stored = await self._storage.upload(
            data,
            folder=self._folder,
            capability=Capability.OBJECT_REMOVAL,
            filename=request.image.filename if request.image else "image.png",
        )

        image_url = self._storage.derived_url(
            stored.public_id, f"e_gen_remove:{object_name}"
        )
        logger.debug("Object removal: public_id=%s, object=%s", stored.public_id, object_name)

        return ProviderResult(
            content=image_url,
            provider=self.provider_name,
            raw_response={"public_id": stored.public_id, "source_url": stored.secure_url},
        )


# ==============================================================================
# ФАБРИКИ АДАПТЕРОВ
# ==============================================================================


class BackgroundRemovalAdapterFactory:
    """Фабрика адаптера удаления фона."""

    def create(self, context: ProviderContext) -> BaseProviderAdapter | None:
        storage = context.storage_client()
        if storage is None:
            return None
        return BackgroundRemovalAdapter(
            storage, folder=context.config.storage_folders.background_removal
        )


class ObjectRemovalAdapterFactory:
    """Фабрика адаптера удаления объекта."""

    def create(self, context: ProviderContext) -> BaseProviderAdapter | None:
        storage = context.storage_client()
        if storage is None:
            return None
        return ObjectRemovalAdapter(
            storage, folder=context.config.storage_folders.object_removal
        )


# ==============================================================================
# РЕГИСТРАЦИЯ ПРОВАЙДЕРОВ
# ==============================================================================

# Ключи: STORAGE__CLOUD_NAME, STORAGE__API_KEY, STORAGE__API_SECRET
register_provider(Capability.BACKGROUND_REMOVAL, BackgroundRemovalAdapterFactory())
register_provider(Capability.OBJECT_REMOVAL, ObjectRemovalAdapterFactory())
