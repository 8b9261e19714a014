"""Запросы на генерацию.

Каждая возможность имеет свой тип запроса со своими данными:
- ArticleRequest — промпт + длина (бюджет токенов)
- BlogTitleRequest — промпт
- ImageSynthesisRequest — промпт + флаг публикации
- BackgroundRemovalRequest — изображение
- ObjectRemovalRequest — изображение + название объекта (одно слово)
- DocumentReviewRequest — PDF-документ

validate() выполняет только структурные проверки (без обращения к сети),
поэтому вызывается ядром ДО проверки тарифа и вызова адаптера.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from aistudio.core.exceptions import GenerationValidationError
from aistudio.providers.ai.base import Capability

if TYPE_CHECKING:
    from aistudio.config.yaml_config import Limits
    from aistudio.utils.staging import StagedFile


def _require_text(value: str | None, message: str, field_name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise GenerationValidationError(message, field=field_name)
    return text


def _require_file(staged: StagedFile | None, message: str, field_name: str) -> StagedFile:
    if staged is None or staged.size == 0:
        raise GenerationValidationError(message, field=field_name)
    return staged


@dataclass
class GenerationRequest:
    """Базовый запрос на генерацию.

    Attributes:
        capability: Возможность (задаётся в подклассе).
        publish: Флаг публикации записи журнала.
    """

    capability: ClassVar[Capability]
    publish: bool = field(default=False, kw_only=True)

    def validate(self, limits: Limits) -> None:
        """Структурная проверка запроса.

        Args:
            limits: Лимиты из config.yaml.

        Raises:
            GenerationValidationError: Запрос некорректен.
        """

    def describe(self) -> str:
        """Промпт или описание операции для журнала."""
        raise NotImplementedError

    def staged_files(self) -> tuple[StagedFile, ...]:
        """Временные файлы запроса (удаляются после обработки)."""
        return ()


@dataclass
class ArticleRequest(GenerationRequest):
    """Статья по теме.

    Attributes:
        prompt: Тема и требования к статье.
        length: Желаемая длина (бюджет токенов ответа).
    """

    capability: ClassVar[Capability] = Capability.ARTICLE

    prompt: str
    length: int

    def validate(self, limits: Limits) -> None:
        self.prompt = _require_text(self.prompt, "Prompt is required.", "prompt")
        # bool: подкласс int, но длиной не является
        if isinstance(self.length, bool) or not isinstance(self.length, int):
            raise GenerationValidationError(
                "Length must be a positive integer.", field="length"
            )
        if self.length <= 0:
            raise GenerationValidationError(
                "Length must be a positive integer.", field="length"
            )

    def describe(self) -> str:
        return self.prompt


@dataclass
class BlogTitleRequest(GenerationRequest):
    """Заголовки для блога по ключевым словам."""

    capability: ClassVar[Capability] = Capability.BLOG_TITLE

    prompt: str

    def validate(self, limits: Limits) -> None:
        self.prompt = _require_text(self.prompt, "Prompt is required.", "prompt")

    def describe(self) -> str:
        return self.prompt


@dataclass
class ImageSynthesisRequest(GenerationRequest):
    """Изображение по текстовому описанию."""

    capability: ClassVar[Capability] = Capability.IMAGE

    prompt: str

    def validate(self, limits: Limits) -> None:
        self.prompt = _require_text(self.prompt, "Prompt is required.", "prompt")

    def describe(self) -> str:
        return self.prompt


@dataclass
class BackgroundRemovalRequest(GenerationRequest):
    """Удаление фона с изображения."""

    capability: ClassVar[Capability] = Capability.BACKGROUND_REMOVAL

    image: StagedFile | None

    def validate(self, limits: Limits) -> None:
        _require_file(self.image, "No image uploaded.", "image")

    def describe(self) -> str:
        return "Remove background from image"

    def staged_files(self) -> tuple[StagedFile, ...]:
        return (self.image,) if self.image is not None else ()


def check_single_token(object_name: str | None) -> str:
    """Проверить, что название объекта — ровно одно слово.

    Args:
        object_name: Название объекта от пользователя.

    Returns:
        Название без пробелов по краям.

    Raises:
        GenerationValidationError: Пустое название или несколько слов.
    """
    name = _require_text(object_name, "Object name is required.", "object")
    if len(name.split()) != 1:
        raise GenerationValidationError("Please enter only one object.", field="object")
    return name


@dataclass
class ObjectRemovalRequest(GenerationRequest):
    """Удаление объекта с изображения.

    Attributes:
        image: Исходное изображение.
        object_name: Что удалить (ровно одно слово, например "watch").
    """

    capability: ClassVar[Capability] = Capability.OBJECT_REMOVAL

    image: StagedFile | None
    object_name: str

    def validate(self, limits: Limits) -> None:
        _require_file(self.image, "No image uploaded.", "image")
        self.object_name = check_single_token(self.object_name)

    def describe(self) -> str:
        return f"Removed {self.object_name} from image"

    def staged_files(self) -> tuple[StagedFile, ...]:
        return (self.image,) if self.image is not None else ()


@dataclass
class DocumentReviewRequest(GenerationRequest):
    """Ревью резюме в PDF."""

    capability: ClassVar[Capability] = Capability.RESUME_REVIEW

    document: StagedFile | None

    def validate(self, limits: Limits) -> None:
        document = _require_file(self.document, "No resume file uploaded.", "resume")
        # Проверка размера ДО извлечения текста
        if document.size > limits.max_document_bytes:
            megabytes = limits.max_document_bytes // (1024 * 1024)
            raise GenerationValidationError(
                f"Resume file exceeds {megabytes}MB limit.", field="resume"
            )

    def describe(self) -> str:
        return "Resume Review"

    def staged_files(self) -> tuple[StagedFile, ...]:
        return (self.document,) if self.document is not None else ()
