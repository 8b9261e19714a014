"""Реестр адаптеров провайдеров (паттерн Registry, Open/Closed Principle).

Модули адаптеров регистрируют фабрики при импорте:
    register_provider(Capability.IMAGE, ImageSynthesisAdapterFactory())

При старте приложения реестр создаёт адаптеры один раз
(ProviderRegistry.build) и отдаёт их ядру в виде AdapterSet.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from aistudio.core.exceptions import ProviderNotAvailableError
from aistudio.providers.ai.base import BaseProviderAdapter, Capability
from aistudio.utils.logging import get_logger

if TYPE_CHECKING:
    from aistudio.providers.ai.context import ProviderContext

logger = get_logger(__name__)


class ProviderAdapterFactory(Protocol):
    """Протокол фабрики адаптеров (structural subtyping)."""

    def create(self, context: ProviderContext) -> BaseProviderAdapter | None:
        """Создать адаптер если провайдер настроен."""
        ...


class AdapterSet:
    """Адаптеры, созданные при старте процесса.

    Передаётся ядру как зависимость; в тестах заменяется набором фейков:
        AdapterSet({Capability.ARTICLE: FakeAdapter()})
    """

    def __init__(
        self,
        adapters: dict[Capability, BaseProviderAdapter],
        context: ProviderContext | None = None,
    ) -> None:
        self._adapters = dict(adapters)
        self._context = context

    def get(self, capability: Capability) -> BaseProviderAdapter:
        """Получить адаптер для возможности.

        Raises:
            ProviderNotAvailableError: Адаптер не настроен.
        """
        adapter = self._adapters.get(capability)
        if adapter is None:
            raise ProviderNotAvailableError(
                f"Возможность '{capability}' не настроена (нет API-ключа провайдера)",
                provider_type=str(capability),
            )
        return adapter

    def __contains__(self, capability: object) -> bool:
        return capability in self._adapters

    def available(self) -> list[Capability]:
        """Список настроенных возможностей."""
        return sorted(self._adapters)

    async def aclose(self) -> None:
        """Закрыть адаптеры и общие клиенты."""
        seen: set[int] = set()
        for adapter in self._adapters.values():
            if id(adapter) in seen:
                continue
            seen.add(id(adapter))
            await adapter.close()
        if self._context is not None:
            await self._context.aclose()


class ProviderRegistry:
    """Реестр фабрик адаптеров по возможностям."""

    def __init__(self) -> None:
        self._factories: dict[Capability, ProviderAdapterFactory] = {}

    def register(self, capability: Capability, factory: ProviderAdapterFactory) -> None:
        """Зарегистрировать фабрику для возможности."""
        self._factories[capability] = factory
        logger.debug("Зарегистрирован адаптер: %s", capability)

    def create_adapter(
        self, capability: Capability, context: ProviderContext
    ) -> BaseProviderAdapter:
        """Создать адаптер для возможности.

        Raises:
            ProviderNotAvailableError: Фабрика не зарегистрирована
                или провайдер не настроен.
        """
        if capability not in self._factories:
            raise ProviderNotAvailableError(
                f"Адаптер '{capability}' не зарегистрирован. "
                f"Доступные: {', '.join(sorted(self._factories.keys()))}",
                provider_type=str(capability),
            )

        adapter = self._factories[capability].create(context)

        if adapter is None:
            raise ProviderNotAvailableError(
                f"Провайдер для '{capability}' не настроен.",
                provider_type=str(capability),
            )

        return adapter

    def build(self, context: ProviderContext) -> AdapterSet:
        """Создать все адаптеры, для которых настроены провайдеры.

        Ненастроенные возможности пропускаются с предупреждением:
        запросы к ним завершатся ошибкой, остальные продолжат работать.
        """
        adapters: dict[Capability, BaseProviderAdapter] = {}
        for capability in sorted(self._factories):
            try:
                adapters[capability] = self.create_adapter(capability, context)
            except ProviderNotAvailableError as e:
                logger.warning("%s", e.message)

        logger.info(
            "Адаптеры готовы: %s",
            ", ".join(adapters) or "нет",
        )
        return AdapterSet(adapters, context)

    def list_capabilities(self) -> list[Capability]:
        """Список зарегистрированных возможностей."""
        return sorted(self._factories.keys())


_registry = ProviderRegistry()


def register_provider(capability: Capability, factory: ProviderAdapterFactory) -> None:
    """Зарегистрировать фабрику в глобальном реестре."""
    _registry.register(capability, factory)


def get_registry() -> ProviderRegistry:
    """Получить глобальный реестр."""
    return _registry
