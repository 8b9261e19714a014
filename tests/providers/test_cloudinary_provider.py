"""Тесты хранилища Cloudinary и адаптеров редактирования изображений."""

import hashlib
from collections.abc import Callable

import httpx
import pytest

from aistudio.core.exceptions import GenerationValidationError, StorageError
from aistudio.providers.ai.cloudinary_provider import (
    BACKGROUND_REMOVAL_TRANSFORMATION,
    BackgroundRemovalAdapter,
    ObjectRemovalAdapter,
)
from aistudio.providers.ai.requests import BackgroundRemovalRequest, ObjectRemovalRequest
from aistudio.providers.storage.cloudinary import CloudinaryStorage, sign_params
from aistudio.utils.staging import StagedFile

UPLOAD_RESPONSE = {
    "public_id": "uploads/photo",
    "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/uploads/photo.png",
}


def _storage(
    handler: Callable[[httpx.Request], httpx.Response],
) -> CloudinaryStorage:
    return CloudinaryStorage(
        "demo", "123", "secret", transport=httpx.MockTransport(handler)
    )


def test_sign_params_sorts_and_skips_unsigned() -> None:
    """Тест: подпись — SHA-1 от отсортированных параметров + секрет."""
    params = {
        "timestamp": 1700000000,
        "folder": "generated",
        "api_key": "123",
        "file": "ignored",
        "transformation": "",
    }

    expected = hashlib.sha1(
        b"folder=generated&timestamp=1700000000secret"
    ).hexdigest()

    assert sign_params(params, "secret") == expected


def test_derived_url() -> None:
    """Тест: URL производного изображения строится без запроса."""
    storage = CloudinaryStorage("demo", "123", "secret")

    url = storage.derived_url("uploads/photo", "e_gen_remove:watch")

    assert url == "https://res.cloudinary.com/demo/image/upload/e_gen_remove:watch/uploads/photo"


async def test_upload_sends_signed_request() -> None:
    """Тест: загрузка передаёт api_key, подпись и файл."""
    sent: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(200, json=UPLOAD_RESPONSE)

    storage = _storage(handler)
    stored = await storage.upload(b"png", folder="uploads", capability="image")

    assert stored.public_id == "uploads/photo"
    assert stored.secure_url == UPLOAD_RESPONSE["secure_url"]
    body = sent[0].content
    assert b'name="api_key"' in body
    assert b'name="signature"' in body
    assert b'name="file"' in body
    await storage.close()


async def test_upload_server_error_is_retryable() -> None:
    """Тест: 5xx от Cloudinary → StorageError с is_retryable=True."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": {"message": "internal"}})

    storage = _storage(handler)

    with pytest.raises(StorageError) as exc_info:
        await storage.upload(b"png", folder="uploads", capability="image")

    assert exc_info.value.is_retryable
    assert "internal" in exc_info.value.message
    await storage.close()


async def test_upload_without_secure_url_raises() -> None:
    """Тест: ответ без secure_url → StorageError."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"public_id": "uploads/photo"})

    storage = _storage(handler)

    with pytest.raises(StorageError, match="secure_url"):
        await storage.upload(b"png", folder="uploads", capability="image")
    await storage.close()


async def test_background_removal_uploads_with_transformation(
    make_staged: Callable[..., StagedFile],
) -> None:
    """Тест: удаление фона — загрузка с трансформацией, результат — secure_url."""
    sent: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(200, json=UPLOAD_RESPONSE)

    storage = _storage(handler)
    adapter = BackgroundRemovalAdapter(storage, folder="background_removals")

    result = await adapter.invoke(BackgroundRemovalRequest(image=make_staged()))

    assert result.content == UPLOAD_RESPONSE["secure_url"]
    assert result.provider == "cloudinary"
    assert len(sent) == 1
    assert BACKGROUND_REMOVAL_TRANSFORMATION.encode() in sent[0].content
    assert b"background_removals" in sent[0].content
    await storage.close()


async def test_object_removal_returns_derived_url(
    make_staged: Callable[..., StagedFile],
) -> None:
    """Тест: удаление объекта — загрузка исходника и URL с e_gen_remove."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=UPLOAD_RESPONSE)

    storage = _storage(handler)
    adapter = ObjectRemovalAdapter(storage, folder="object_removal")

    result = await adapter.invoke(
        ObjectRemovalRequest(image=make_staged(), object_name="watch")
    )

    assert result.content == (
        "https://res.cloudinary.com/demo/image/upload/e_gen_remove:watch/uploads/photo"
    )
    await storage.close()


async def test_object_removal_multiple_words_skips_upload(
    make_staged: Callable[..., StagedFile],
) -> None:
    """Тест: несколько слов в названии объекта → ошибка валидации без загрузки."""
    sent: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(200, json=UPLOAD_RESPONSE)

    storage = _storage(handler)
    adapter = ObjectRemovalAdapter(storage, folder="object_removal")

    with pytest.raises(GenerationValidationError, match="only one object"):
        await adapter.invoke(
            ObjectRemovalRequest(image=make_staged(), object_name="watch spoon")
        )

    assert sent == []
    await storage.close()
