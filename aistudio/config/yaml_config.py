"""Загрузчик YAML-конфигурации.

Этот модуль загружает и валидирует config.yaml — файл с настройками,
которые можно менять без изменения кода.

Содержимое config.yaml:
- Параметры текстовой модели (ID модели, температура, бюджет токенов)
- Таймауты вызовов провайдеров по возможностям
- Лимиты (бесплатные генерации, размер документа)
- Папки файлового хранилища
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from aistudio.config.constants import (
    BLOG_TITLE_MAX_TOKENS,
    FREE_USAGE_LIMIT,
    MAX_DOCUMENT_SIZE_BYTES,
    MIN_DOCUMENT_TEXT_LENGTH,
    PROJECT_ROOT,
    RESUME_REVIEW_MAX_TOKENS,
)


class TextModelConfig(BaseModel):
    """Конфигурация текстовой модели.

    Пример в config.yaml:
        text_model:
          model_id: gemini-2.0-flash
          temperature: 0.7
          max_article_tokens: 4096
    """

    model_id: str = Field(
        default="gemini-2.0-flash",
        description="ID модели на стороне провайдера",
    )
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_article_tokens: int = Field(
        default=4096,
        ge=1,
        description="Верхняя граница бюджета токенов для статьи",
    )
    blog_title_tokens: int = Field(default=BLOG_TITLE_MAX_TOKENS, ge=1)
    review_tokens: int = Field(default=RESUME_REVIEW_MAX_TOKENS, ge=1)


class GenerationTimeouts(BaseModel):
    """Таймауты вызовов провайдеров по возможностям (в секундах).

    Если адаптер не ответил за указанное время — генерация считается
    неудачной (таймаут), лимит не списывается.

    Рекомендуемые значения:
    - article / blog_title: 60 сек (обычно ответ приходит за 5-30 сек)
    - image: 120 сек (генерация + загрузка в хранилище)
    - background_removal / object_removal: 120 сек
    - resume_review: 90 сек (извлечение текста + ответ модели)
    """

    article: float = 60
    blog_title: float = 30
    image: float = 120
    background_removal: float = 120
    object_removal: float = 120
    resume_review: float = 90

    def for_capability(self, capability: str) -> float:
        """Получить таймаут для возможности.

        Args:
            capability: Значение возможности (article, blog-title, ...).

        Returns:
            Таймаут в секундах.
        """
        return float(getattr(self, capability.replace("-", "_")))


class Limits(BaseModel):
    """Настройки лимитов запросов."""

    free_usage_limit: int = Field(
        default=FREE_USAGE_LIMIT,
        ge=0,
        description="Количество бесплатных генераций для тарифа free",
    )
    max_document_bytes: int = Field(
        default=MAX_DOCUMENT_SIZE_BYTES,
        ge=1,
        description="Максимальный размер документа для ревью",
    )
    min_document_chars: int = Field(
        default=MIN_DOCUMENT_TEXT_LENGTH,
        ge=0,
        description="Минимальная длина извлечённого текста документа",
    )


class StorageFoldersConfig(BaseModel):
    """Папки в файловом хранилище для разных типов изображений."""

    generated: str = "generated"
    background_removal: str = "background_removals"
    object_removal: str = "object_removal"


class YamlConfig(BaseModel):
    """Главная YAML-конфигурация.

    Загружается из config.yaml при старте приложения.
    """

    text_model: TextModelConfig = TextModelConfig()
    generation_timeouts: GenerationTimeouts = GenerationTimeouts()
    limits: Limits = Limits()
    storage_folders: StorageFoldersConfig = StorageFoldersConfig()


def load_yaml_config(path: Path | str = PROJECT_ROOT / "config.yaml") -> YamlConfig:
    """Загрузить и валидировать YAML-конфигурацию.

    Если файла нет — возвращается конфигурация по умолчанию.

    Args:
        path: Путь к файлу конфигурации.

    Returns:
        Валидированный объект конфигурации.

    Raises:
        yaml.YAMLError: Некорректный YAML.
        pydantic.ValidationError: Некорректная конфигурация.
    """
    config_path = Path(path)

    if not config_path.exists():
        return YamlConfig()

    with config_path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return YamlConfig.model_validate(data)


yaml_config = load_yaml_config()
