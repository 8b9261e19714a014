"""Тесты для моделей настроек из aistudio/config/models.py.

Проверяет:
- Включение хранилища только при всех трёх параметрах
- Признаки настроенных AI-провайдеров
- Включение CORS по списку доменов
"""

import pytest
from pydantic import SecretStr

from aistudio.config.models import (
    AIProvidersSettings,
    AppSettings,
    CORSSettings,
    StorageSettings,
)


class TestStorageSettings:
    """Тесты для класса StorageSettings."""

    def test_is_enabled_with_all_params_returns_true(self) -> None:
        """Проверить, что хранилище включено при всех трёх параметрах."""
        # Arrange
        settings = StorageSettings(
            cloud_name="demo",
            api_key=SecretStr("123"),
            api_secret=SecretStr("secret"),
        )

        # Act
        result = settings.is_enabled

        # Assert
        assert result is True

    @pytest.mark.parametrize(
        "missing",
        ["cloud_name", "api_key", "api_secret"],
    )
    def test_is_enabled_with_missing_param_returns_false(self, missing: str) -> None:
        """Проверить, что без любого из параметров хранилище выключено.

        Args:
            missing: Параметр, который не задан.
        """
        # Arrange
        values: dict[str, object] = {
            "cloud_name": "demo",
            "api_key": SecretStr("123"),
            "api_secret": SecretStr("secret"),
        }
        values[missing] = None
        settings = StorageSettings(**values)  # type: ignore[arg-type]

        # Act
        result = settings.is_enabled

        # Assert
        assert result is False


class TestAIProvidersSettings:
    """Тесты для класса AIProvidersSettings."""

    def test_default_has_no_providers(self) -> None:
        """Проверить, что по умолчанию ни один провайдер не настроен."""
        # Arrange & Act
        settings = AIProvidersSettings()

        # Assert
        assert settings.has_gemini is False
        assert settings.has_clipdrop is False
        assert "generativelanguage.googleapis.com" in settings.gemini_base_url

    def test_keys_enable_providers(self) -> None:
        """Проверить, что ключи включают провайдеров."""
        # Arrange & Act
        settings = AIProvidersSettings(
            gemini_api_key=SecretStr("AIza-test"),
            clipdrop_api_key=SecretStr("clipdrop"),
        )

        # Assert
        assert settings.has_gemini is True
        assert settings.has_clipdrop is True


class TestCORSSettings:
    """Тесты для класса CORSSettings."""

    def test_disabled_by_default(self) -> None:
        """Проверить, что CORS выключен без доменов."""
        assert CORSSettings().is_enabled is False

    def test_enabled_with_origins(self) -> None:
        """Проверить, что CORS включается списком доменов."""
        settings = CORSSettings(allow_origins=["http://localhost:5173"])

        assert settings.is_enabled is True


def test_app_settings_defaults() -> None:
    """Проверить значения по умолчанию HTTP-приложения."""
    settings = AppSettings()

    assert settings.host == "0.0.0.0"
    assert settings.port == 8000
    assert settings.debug is False
