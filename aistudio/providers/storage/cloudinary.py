"""Клиент файлового хранилища Cloudinary.

Cloudinary хранит все изображения сервиса и выполняет над ними
трансформации (удаление фона, generative remove).

API документация: https://cloudinary.com/documentation/image_upload_api_reference

Как работает загрузка:
1. Формируем параметры (folder, timestamp, transformation)
2. Подписываем их: SHA-1 от "k1=v1&k2=v2" (ключи по алфавиту) + api_secret
3. POST /v1_1/{cloud_name}/image/upload (multipart: file + параметры)
4. Из ответа берём secure_url и public_id

Производные изображения (transform by URL) не требуют запроса:
URL формируется из public_id и строки трансформации.
"""

import hashlib
import time
from dataclasses import dataclass
from typing import Any

import httpx

from aistudio.core.exceptions import StorageError
from aistudio.utils.logging import get_logger

logger = get_logger(__name__)

# Базовый URL Upload API
CLOUDINARY_API_URL = "https://api.cloudinary.com/v1_1"

# Базовый URL доставки изображений
CLOUDINARY_DELIVERY_URL = "https://res.cloudinary.com"

# Таймаут HTTP-запросов в секундах
HTTP_TIMEOUT = 60.0

# Параметры, которые не участвуют в подписи
UNSIGNED_PARAMS = frozenset({"file", "api_key", "resource_type", "cloud_name"})


@dataclass(frozen=True, slots=True)
class StoredImage:
    """Изображение, загруженное в хранилище.

    Attributes:
        public_id: ID изображения в хранилище (с папкой).
        secure_url: Публичный HTTPS URL.
    """

    public_id: str
    secure_url: str


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    """Подписать параметры запроса Upload API.

    Args:
        params: Параметры запроса (без file и api_key).
        api_secret: API Secret аккаунта.

    Returns:
        Hex-строка SHA-1 подписи.
    """
    to_sign = "&".join(
        f"{key}={params[key]}"
        for key in sorted(params)
        if key not in UNSIGNED_PARAMS and params[key] not in (None, "")
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode()).hexdigest()  # noqa: S324


class CloudinaryStorage:
    """Клиент Cloudinary для загрузки и трансформации изображений.

    HTTP-клиент создаётся один раз на процесс и переиспользуется
    всеми адаптерами; закрывается при остановке приложения.

    Example:
        storage = CloudinaryStorage("demo", "123", "secret")
        stored = await storage.upload(
            png_bytes,
            folder="background_removals",
            transformation="e_background_removal",
            capability="background-removal",
        )
        # stored.secure_url: URL обработанного изображения
    """

    PROVIDER_NAME = "cloudinary"

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        *,
        timeout: float = HTTP_TIMEOUT,
        proxy_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Создать клиент хранилища.

        Args:
            cloud_name: Имя облака Cloudinary.
            api_key: API Key.
            api_secret: API Secret (для подписи запросов).
            timeout: Таймаут HTTP-запросов в секундах.
            proxy_url: URL прокси-сервера (опционально).
            transport: Транспорт httpx (для тестов).
        """
        self._cloud_name = cloud_name
        self._api_key = api_key
        self._api_secret = api_secret
        self._client = httpx.AsyncClient(
            base_url=f"{CLOUDINARY_API_URL}/{cloud_name}",
            timeout=timeout,
            proxy=proxy_url,
            transport=transport,
        )

    @property
    def provider_name(self) -> str:
        """Название провайдера."""
        return self.PROVIDER_NAME

    async def upload(
        self,
        data: bytes,
        *,
        folder: str,
        capability: str,
        filename: str = "image.png",
        transformation: str | None = None,
    ) -> StoredImage:
        """Загрузить изображение.

        Если указана transformation — она применяется при загрузке
        (incoming transformation), и secure_url указывает уже на результат.

        Args:
            data: Байты изображения.
            folder: Папка в хранилище.
            capability: Возможность (для контекста ошибок).
            filename: Имя файла для multipart.
            transformation: Строка трансформации (например, "e_background_removal").

        Returns:
            StoredImage с public_id и secure_url.

        Raises:
            StorageError: Ошибка загрузки.
        """
        params: dict[str, Any] = {
            "folder": folder,
            "timestamp": int(time.time()),
        }
        if transformation:
            params["transformation"] = transformation
        params["signature"] = sign_params(params, self._api_secret)
        params["api_key"] = self._api_key

        logger.debug(
            "Cloudinary upload: folder=%s, size=%d, transformation=%s",
            folder,
            len(data),
            transformation,
        )

        try:
            response = await self._client.post(
                "/image/upload",
                data={key: str(value) for key, value in params.items()},
                files={"file": (filename, data)},
            )
        except httpx.TimeoutException as e:
            logger.warning("Cloudinary таймаут: %s", e)
            raise StorageError(
                "Таймаут загрузки в Cloudinary",
                provider=self.provider_name,
                capability=capability,
                is_retryable=True,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise StorageError(
                f"Ошибка HTTP: {e}",
                provider=self.provider_name,
                capability=capability,
                is_retryable=isinstance(e, httpx.TransportError),
                original_error=e,
            ) from e

        if response.status_code >= 400:
            error_data = _safe_json(response)
            error_msg = error_data.get("error", {}).get("message", response.text)
            raise StorageError(
                f"Ошибка Cloudinary API ({response.status_code}): {error_msg}",
                provider=self.provider_name,
                capability=capability,
                is_retryable=response.status_code == 429 or response.status_code >= 500,
            )

        payload = _safe_json(response)
        secure_url = payload.get("secure_url")
        public_id = payload.get("public_id")
        if not secure_url or not public_id:
            raise StorageError(
                "Cloudinary вернул ответ без secure_url/public_id",
                provider=self.provider_name,
                capability=capability,
            )

        logger.info("Изображение загружено в Cloudinary: public_id=%s", public_id)
        return StoredImage(public_id=public_id, secure_url=secure_url)

    def derived_url(self, public_id: str, transformation: str) -> str:
        """Сформировать URL производного изображения.

        Трансформация выполняется Cloudinary при первом обращении к URL.

        Args:
            public_id: ID исходного изображения.
            transformation: Строка трансформации (например, "e_gen_remove:watch").

        Returns:
            HTTPS URL производного изображения.
        """
        return (
            f"{CLOUDINARY_DELIVERY_URL}/{self._cloud_name}/image/upload/"
            f"{transformation}/{public_id}"
        )

    async def close(self) -> None:
        """Закрыть HTTP-клиент."""
        await self._client.aclose()


def _safe_json(response: httpx.Response) -> dict[str, Any]:
    """Разобрать JSON ответа, не падая на некорректном теле."""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
