"""Тесты адаптера генерации изображений (Clipdrop + Cloudinary)."""

import httpx
import pytest
from pydantic import SecretStr

from aistudio.config.models import AIProvidersSettings, StorageSettings
from aistudio.config.yaml_config import YamlConfig
from aistudio.core.exceptions import GenerationError, StorageError
from aistudio.providers.ai.clipdrop_provider import (
    ImageSynthesisAdapter,
    ImageSynthesisAdapterFactory,
)
from aistudio.providers.ai.context import ProviderContext
from aistudio.providers.ai.requests import ImageSynthesisRequest
from aistudio.providers.storage.cloudinary import CloudinaryStorage

SECURE_URL = "https://res.cloudinary.com/demo/image/upload/v1/generated/abc.png"


class ProviderStub:
    """Обработчик MockTransport: Clipdrop и Cloudinary по хосту запроса."""

    def __init__(
        self,
        *,
        clipdrop_status: int = 200,
        clipdrop_body: bytes = b"\x89PNG image bytes",
        upload_status: int = 200,
    ) -> None:
        self.clipdrop_status = clipdrop_status
        self.clipdrop_body = clipdrop_body
        self.upload_status = upload_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "clipdrop-api.co":
            return httpx.Response(self.clipdrop_status, content=self.clipdrop_body)
        if self.upload_status >= 400:
            return httpx.Response(
                self.upload_status, json={"error": {"message": "upload failed"}}
            )
        return httpx.Response(
            200, json={"public_id": "generated/abc", "secure_url": SECURE_URL}
        )

    def hosts(self) -> list[str]:
        return [request.url.host for request in self.requests]


def _adapter(stub: ProviderStub) -> ImageSynthesisAdapter:
    transport = httpx.MockTransport(stub)
    storage = CloudinaryStorage("demo", "123", "secret", transport=transport)
    return ImageSynthesisAdapter(
        "clipdrop-key", storage=storage, folder="generated", transport=transport
    )


async def test_invoke_renders_and_uploads() -> None:
    """Тест: PNG от Clipdrop загружается в хранилище, результат — secure_url."""
    stub = ProviderStub()
    adapter = _adapter(stub)

    result = await adapter.invoke(ImageSynthesisRequest(prompt="A cat in space"))

    assert result.content == SECURE_URL
    assert result.provider == "clipdrop"
    assert stub.hosts() == ["clipdrop-api.co", "api.cloudinary.com"]

    clipdrop_request = stub.requests[0]
    assert clipdrop_request.headers["x-api-key"] == "clipdrop-key"
    assert clipdrop_request.url.path == "/text-to-image/v1"
    assert b"A cat in space" in clipdrop_request.content

    upload_request = stub.requests[1]
    assert upload_request.url.path == "/v1_1/demo/image/upload"
    assert b"generated" in upload_request.content
    await adapter.close()


async def test_clipdrop_error_skips_upload() -> None:
    """Тест: ошибка Clipdrop → GenerationError, хранилище не вызывается."""
    stub = ProviderStub(clipdrop_status=402, clipdrop_body=b"no credits")
    adapter = _adapter(stub)

    with pytest.raises(GenerationError) as exc_info:
        await adapter.invoke(ImageSynthesisRequest(prompt="A cat"))

    assert not exc_info.value.is_retryable
    assert stub.hosts() == ["clipdrop-api.co"]
    await adapter.close()


async def test_clipdrop_rate_limit_is_retryable() -> None:
    """Тест: 429 от Clipdrop — временная ошибка."""
    stub = ProviderStub(clipdrop_status=429, clipdrop_body=b"slow down")
    adapter = _adapter(stub)

    with pytest.raises(GenerationError) as exc_info:
        await adapter.invoke(ImageSynthesisRequest(prompt="A cat"))

    assert exc_info.value.is_retryable
    await adapter.close()


async def test_empty_image_raises() -> None:
    """Тест: пустое тело ответа Clipdrop → GenerationError."""
    stub = ProviderStub(clipdrop_body=b"")
    adapter = _adapter(stub)

    with pytest.raises(GenerationError, match="пустое изображение"):
        await adapter.invoke(ImageSynthesisRequest(prompt="A cat"))
    await adapter.close()


async def test_upload_error_propagates_as_storage_error() -> None:
    """Тест: ошибка хранилища после успешной генерации → StorageError."""
    stub = ProviderStub(upload_status=500)
    adapter = _adapter(stub)

    with pytest.raises(StorageError) as exc_info:
        await adapter.invoke(ImageSynthesisRequest(prompt="A cat"))

    assert exc_info.value.provider == "cloudinary"
    assert exc_info.value.is_retryable
    await adapter.close()


def test_factory_requires_storage() -> None:
    """Тест: без хранилища адаптер изображений не создаётся."""
    context = ProviderContext(
        AIProvidersSettings(clipdrop_api_key=SecretStr("clipdrop-key")),
        StorageSettings(),
        YamlConfig(),
    )

    assert ImageSynthesisAdapterFactory().create(context) is None


async def test_factory_creates_adapter_with_storage() -> None:
    """Тест: ключ Clipdrop и хранилище → адаптер создаётся."""
    context = ProviderContext(
        AIProvidersSettings(clipdrop_api_key=SecretStr("clipdrop-key")),
        StorageSettings(
            cloud_name="demo", api_key=SecretStr("123"), api_secret=SecretStr("secret")
        ),
        YamlConfig(),
    )

    adapter = ImageSynthesisAdapterFactory().create(context)

    assert isinstance(adapter, ImageSynthesisAdapter)
    await adapter.close()
    await context.aclose()
