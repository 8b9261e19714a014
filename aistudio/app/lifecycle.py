"""Управление жизненным циклом приложения.

Класс ApplicationLifecycle инкапсулирует всю логику startup и shutdown:
- Создание таблиц БД
- Создание адаптеров провайдеров (один раз на процесс)
- Корректное закрытие HTTP-клиентов и пула соединений
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from aistudio.db.base import create_tables, dispose_engine
from aistudio.providers.ai import ProviderContext, get_registry
from aistudio.utils.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI

    from aistudio.config.settings import Settings
    from aistudio.config.yaml_config import YamlConfig
    from aistudio.providers.ai.registry import AdapterSet

logger = get_logger(__name__)


class ApplicationLifecycle:
    """Управление жизненным циклом приложения.

    Attributes:
        settings: Настройки приложения из .env
        yaml_config: Конфигурация из config.yaml
        adapters: Адаптеры провайдеров (создаются при startup)
    """

    def __init__(self, settings: Settings, yaml_config: YamlConfig) -> None:
        """Инициализировать lifecycle manager.

        Args:
            settings: Настройки приложения из .env
            yaml_config: Конфигурация из config.yaml
        """
        self.settings = settings
        self.yaml_config = yaml_config
        self.adapters: AdapterSet | None = None

    async def startup(self, app: FastAPI) -> None:
        """Выполнить startup приложения.

        1. Создание недостающих таблиц
        2. Создание адаптеров для настроенных провайдеров

        Args:
            app: FastAPI приложение для сохранения адаптеров в app.state
        """
        logger.info("Запуск приложения...")

        await create_tables()
        logger.debug("Таблицы БД готовы")

        context = ProviderContext(
            self.settings.ai,
            self.settings.storage,
            self.yaml_config,
            proxy_url=self.settings.proxy,
        )
        self.adapters = get_registry().build(context)

        # Адаптеры доступны эндпоинтам через app.state
        app.state.adapters = self.adapters

        logger.info(
            "Лимит бесплатных генераций: %d",
            self.yaml_config.limits.free_usage_limit,
        )
        logger.info("✅ Приложение запущено успешно")

    async def shutdown(self) -> None:
        """Выполнить shutdown приложения.

        Останавливает компоненты в обратном порядке:
        1. HTTP-клиенты провайдеров
        2. Пул соединений БД
        """
        logger.info("Остановка приложения...")

        if self.adapters is not None:
            await self.adapters.aclose()
            self.adapters = None
            logger.debug("Клиенты провайдеров закрыты")

        await dispose_engine()
        logger.debug("Пул соединений БД закрыт")

        logger.info("✅ Приложение остановлено")
