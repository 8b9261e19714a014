"""Сервис тарифов (Entitlement Resolver).

Отвечает на два вопроса ядра генераций:
- Какой тариф у пользователя и сколько бесплатных генераций уже использовано
  (resolve → EntitlementSnapshot)
- Удалось ли атомарно занять ещё одну бесплатную генерацию
  (increment_free_usage)

Снимок тарифа читается заново на каждый запрос и НЕ кэшируется.

Пример использования в эндпоинте:
    service = create_entitlement_service(session)
    snapshot = await service.resolve(user_id)
    outcome = await mediator.execute(request, snapshot)
"""

from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from aistudio.config.yaml_config import YamlConfig
from aistudio.core.exceptions import EntitlementUpdateError
from aistudio.db.models.entitlement import Tier
from aistudio.db.repositories.entitlement_repo import (
    EntitlementRepository,
    FreeUsageCharge,
)
from aistudio.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class EntitlementSnapshot:
    """Снимок тарифа пользователя на момент запроса.

    Attributes:
        user_id: Внешний ID пользователя.
        plan: Тариф (free / premium).
        free_usage: Использовано бесплатных генераций (имеет смысл только для free).
    """

    user_id: str
    plan: Tier
    free_usage: int

    @property
    def is_premium(self) -> bool:
        """Пользователь на платном тарифе."""
        return self.plan == Tier.PREMIUM


class EntitlementService:
    """Чтение тарифа и учёт бесплатных генераций.

    Attributes:
        _repo: Репозиторий таблицы entitlements.
        _free_limit: Лимит бесплатных генераций.
    """

    def __init__(self, session: AsyncSession, free_limit: int) -> None:
        """Создать сервис.

        Args:
            session: Асинхронная сессия SQLAlchemy.
            free_limit: Лимит бесплатных генераций из config.yaml.
        """
        self._repo = EntitlementRepository(session)
        self._free_limit = free_limit

    @property
    def free_limit(self) -> int:
        """Лимит бесплатных генераций."""
        return self._free_limit

    async def resolve(self, user_id: str) -> EntitlementSnapshot:
        """Получить актуальный снимок тарифа.

        Неизвестный пользователь создаётся с тарифом free и счётчиком 0.

        Args:
            user_id: Внешний ID пользователя.

        Returns:
            EntitlementSnapshot.

        Raises:
            EntitlementUpdateError: Ошибка чтения или создания строки тарифа.
        """
        try:
            entitlement, _ = await self._repo.get_or_create(user_id)
        except SQLAlchemyError as e:
            raise EntitlementUpdateError(user_id, e) from e

        return EntitlementSnapshot(
            user_id=entitlement.user_id,
            plan=Tier(entitlement.plan),
            free_usage=entitlement.free_usage,
        )

    async def increment_free_usage(self, user_id: str) -> FreeUsageCharge:
        """Занять одну бесплатную генерацию (compare-and-swap в БД).

        Не коммитит: фиксация выполняется ядром вместе с записью в журнал.

        Args:
            user_id: Внешний ID пользователя.

        Returns:
            EXHAUSTED если лимит исчерпан конкурентным запросом,
            NOT_FREE если тариф сменился на premium во время генерации.

        Raises:
            EntitlementUpdateError: Ошибка выполнения UPDATE.
        """
        try:
            return await self._repo.increment_free_usage(user_id, self._free_limit)
        except SQLAlchemyError as e:
            raise EntitlementUpdateError(user_id, e) from e

    async def set_plan(self, user_id: str, plan: Tier) -> EntitlementSnapshot:
        """Сменить тариф пользователя.

        Используется внешними процессами оплаты и тестами.
        """
        try:
            entitlement = await self._repo.set_plan(user_id, plan)
        except SQLAlchemyError as e:
            raise EntitlementUpdateError(user_id, e) from e

        return EntitlementSnapshot(
            user_id=entitlement.user_id,
            plan=Tier(entitlement.plan),
            free_usage=entitlement.free_usage,
        )


def create_entitlement_service(
    session: AsyncSession,
    yaml_config: YamlConfig | None = None,
) -> EntitlementService:
    """Создать экземпляр EntitlementService (factory function).

    Использует глобальный yaml_config если не передан явно.

    Args:
        session: Асинхронная сессия SQLAlchemy.
        yaml_config: YAML-конфигурация (опционально, берётся из глобальной).

    Returns:
        Настроенный экземпляр EntitlementService.
    """
    if yaml_config is None:
        from aistudio.config.yaml_config import yaml_config as global_yaml_config

        yaml_config = global_yaml_config

    return EntitlementService(session, yaml_config.limits.free_usage_limit)
