"""Временные файлы запросов (загруженные изображения и документы).

Загруженный файл сохраняется на диск на время одного запроса
и удаляется на любом исходе: успех, отказ, ошибка.

Пример использования:
    staged = await stage_upload(upload)
    try:
        ...
    finally:
        release_staged(staged)
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from aistudio.config.constants import UPLOADS_DIR
from aistudio.core.exceptions import ResourceCleanupError
from aistudio.utils.logging import get_logger

logger = get_logger(__name__)

# Размер блока при копировании загрузки на диск
CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, slots=True)
class StagedFile:
    """Файл запроса, сохранённый на локальный диск.

    Attributes:
        path: Путь к временному файлу.
        filename: Исходное имя файла от клиента.
        content_type: MIME-тип от клиента.
        size: Размер в байтах.
    """

    path: Path
    filename: str
    content_type: str | None
    size: int

    def read_bytes(self) -> bytes:
        """Прочитать содержимое файла."""
        return self.path.read_bytes()

    def release(self) -> None:
        """Удалить временный файл.

        Повторный вызов безопасен: отсутствующий файл не считается ошибкой.

        Raises:
            ResourceCleanupError: Файл существует, но удалить его не удалось.
        """
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise ResourceCleanupError(str(self.path), e) from e


def release_staged(*files: StagedFile | None) -> None:
    """Удалить временные файлы, не прерывая выполнение при ошибке.

    Ошибки удаления только логируются (WARNING) и никогда
    не влияют на ответ пользователю.

    Args:
        *files: Файлы для удаления (None пропускаются).
    """
    for staged in files:
        if staged is None:
            continue
        try:
            staged.release()
        except ResourceCleanupError as e:
            logger.warning("%s", e)


async def stage_upload(
    upload: UploadFile,
    *,
    directory: Path | None = None,
    max_bytes: int | None = None,
) -> StagedFile:
    """Сохранить загруженный файл во временный файл на диске.

    При max_bytes чтение прекращается, как только размер превышен:
    на диск попадает не больше max_bytes байт, а size остаётся больше
    лимита, чтобы проверка запроса отклонила файл.

    Args:
        upload: Файл из multipart-запроса.
        directory: Папка для временных файлов (по умолчанию data/uploads).
        max_bytes: Допустимый размер файла (None без ограничения).

    Returns:
        StagedFile с путём и размером.
    """
    target_dir = directory or UPLOADS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)

    suffix = Path(upload.filename or "").suffix
    fd, name = tempfile.mkstemp(prefix="upload_", suffix=suffix, dir=target_dir)
    size = 0
    try:
        with os.fdopen(fd, "wb") as out:
            while chunk := await upload.read(CHUNK_SIZE):
                size += len(chunk)
                if max_bytes is not None and size > max_bytes:
                    logger.info(
                        "Файл запроса %s больше %d байт, чтение остановлено",
                        upload.filename,
                        max_bytes,
                    )
                    break
                out.write(chunk)
    except BaseException:
        Path(name).unlink(missing_ok=True)
        raise

    logger.debug("Файл запроса сохранён: %s (%d байт)", name, size)
    return StagedFile(
        path=Path(name),
        filename=upload.filename or "upload",
        content_type=upload.content_type,
        size=size,
    )
