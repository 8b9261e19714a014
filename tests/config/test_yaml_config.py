"""Тесты для загрузки и валидации YAML-конфигурации."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from aistudio.config.constants import (
    FREE_USAGE_LIMIT,
    MAX_DOCUMENT_SIZE_BYTES,
    PROJECT_ROOT,
)
from aistudio.config.yaml_config import GenerationTimeouts, YamlConfig, load_yaml_config
from aistudio.providers.ai.base import Capability


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_yaml_config_nonexistent_file_returns_defaults(tmp_path: Path) -> None:
    """Тест: без файла используется конфигурация по умолчанию."""
    config = load_yaml_config(tmp_path / "missing.yaml")

    assert config == YamlConfig()
    assert config.limits.free_usage_limit == FREE_USAGE_LIMIT
    assert config.limits.max_document_bytes == MAX_DOCUMENT_SIZE_BYTES
    assert config.text_model.max_article_tokens == 4096


def test_load_yaml_config_empty_file_returns_defaults(tmp_path: Path) -> None:
    """Тест: пустой файл равносилен конфигурации по умолчанию."""
    assert load_yaml_config(_write(tmp_path, "")) == YamlConfig()


def test_load_yaml_config_overrides(tmp_path: Path) -> None:
    """Тест: значения из файла переопределяют значения по умолчанию."""
    path = _write(
        tmp_path,
        """
text_model:
  model_id: gemini-2.5-flash
  max_article_tokens: 2048
generation_timeouts:
  image: 45
limits:
  free_usage_limit: 3
storage_folders:
  generated: ai-studio/generated
""",
    )

    config = load_yaml_config(path)

    assert config.text_model.model_id == "gemini-2.5-flash"
    assert config.text_model.max_article_tokens == 2048
    assert config.generation_timeouts.image == 45
    assert config.generation_timeouts.article == 60
    assert config.limits.free_usage_limit == 3
    assert config.storage_folders.generated == "ai-studio/generated"


def test_load_yaml_config_negative_limit_raises(tmp_path: Path) -> None:
    """Тест: отрицательный лимит бесплатных генераций не проходит валидацию."""
    path = _write(tmp_path, "limits:\n  free_usage_limit: -1\n")

    with pytest.raises(ValidationError):
        load_yaml_config(path)


@pytest.mark.parametrize("capability", list(Capability))
def test_timeouts_cover_every_capability(capability: Capability) -> None:
    """Тест: для каждой возможности задан таймаут."""
    assert GenerationTimeouts().for_capability(capability) > 0


def test_for_capability_maps_dashes() -> None:
    """Тест: blog-title → поле blog_title."""
    timeouts = GenerationTimeouts(blog_title=12)

    assert timeouts.for_capability(Capability.BLOG_TITLE) == 12.0


def test_repository_config_is_valid() -> None:
    """Тест: config.yaml из корня проекта проходит валидацию."""
    config = load_yaml_config(PROJECT_ROOT / "config.yaml")

    assert config.limits.free_usage_limit >= 0
