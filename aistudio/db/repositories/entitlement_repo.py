"""Репозиторий для работы с тарифами и счётчиком бесплатных генераций.

Основные операции:
- Получение тарифа пользователя (с ленивым созданием строки)
- Атомарное увеличение счётчика бесплатных генераций
- Смена тарифа (вызывается внешними процессами оплаты)
"""

from enum import StrEnum

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from aistudio.db.models.entitlement import Entitlement, Tier
from aistudio.utils.logging import get_logger

logger = get_logger(__name__)


class FreeUsageCharge(StrEnum):
    """Результат попытки занять бесплатную генерацию."""

    CHARGED = "charged"
    EXHAUSTED = "exhausted"

    # Тариф сменился на premium после чтения снимка
    NOT_FREE = "not_free"


class EntitlementRepository:
    """Репозиторий для работы с таблицей entitlements.

    Attributes:
        session: Асинхронная сессия SQLAlchemy.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Инициализация репозитория.

        Args:
            session: Асинхронная сессия SQLAlchemy.
        """
        self._session = session

    async def get(self, user_id: str) -> Entitlement | None:
        """Получить строку тарифа пользователя.

        Args:
            user_id: Внешний ID пользователя.

        Returns:
            Entitlement или None если пользователь ещё не обращался.
        """
        # populate_existing: снимок всегда читается из БД, а не из identity map
        stmt = (
            select(Entitlement)
            .where(Entitlement.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: str) -> tuple[Entitlement, bool]:
        """Получить строку тарифа или создать новую (free, 0).

        Атомарная операция с защитой от race condition.
        Если два запроса пытаются создать строку одновременно,
        один из них получит IntegrityError и повторит поиск.

        Args:
            user_id: Внешний ID пользователя.

        Returns:
            Кортеж (entitlement, created).
        """
        entitlement = await self.get(user_id)
        if entitlement:
            return entitlement, False

        try:
            entitlement = Entitlement(user_id=user_id, plan=Tier.FREE, free_usage=0)
            self._session.add(entitlement)
            await self._session.commit()
            await self._session.refresh(entitlement)
            logger.info("Новый пользователь: user_id=%s, plan=free", user_id)
            return entitlement, True
        except IntegrityError:
            # Другой запрос успел создать строку, откатываем и ищем снова
            await self._session.rollback()
            entitlement = await self.get(user_id)
            if entitlement is None:
                raise RuntimeError(
                    f"Не удалось создать или найти тариф пользователя user_id={user_id}"
                ) from None
            return entitlement, False

    async def increment_free_usage(self, user_id: str, limit: int) -> FreeUsageCharge:
        """Занять одну бесплатную генерацию.

        Атомарный условный UPDATE: тариф и лимит проверяются в WHERE,
        поэтому конкурентные запросы одного пользователя не превысят лимит.
        Если строка не обновилась, тариф перечитывается: пользователь,
        перешедший на premium во время генерации, не получает отказ по лимиту.

        НЕ коммитит транзакцию: фиксация выполняется вместе с записью
        в журнал генераций.

        Args:
            user_id: Внешний ID пользователя.
            limit: Лимит бесплатных генераций.

        Returns:
            CHARGED если счётчик увеличен, NOT_FREE если тариф уже не free,
            EXHAUSTED если лимит исчерпан (или строки тарифа нет).
        """
        stmt = (
            update(Entitlement)
            .where(
                Entitlement.user_id == user_id,
                Entitlement.plan == Tier.FREE,
                Entitlement.free_usage < limit,  # Атомарная проверка
            )
            .values(free_usage=Entitlement.free_usage + 1)
            .returning(Entitlement.free_usage)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        used = result.scalar_one_or_none()

        if used is not None:
            charge = FreeUsageCharge.CHARGED
        else:
            plan = await self._session.scalar(
                select(Entitlement.plan).where(Entitlement.user_id == user_id)
            )
            if plan is not None and plan != Tier.FREE:
                charge = FreeUsageCharge.NOT_FREE
            else:
                charge = FreeUsageCharge.EXHAUSTED

        logger.debug(
            "Счётчик бесплатных генераций: user_id=%s, charge=%s, used=%s",
            user_id,
            charge,
            used,
        )
        return charge

    async def set_plan(self, user_id: str, plan: Tier) -> Entitlement:
        """Установить тариф пользователя.

        Счётчик бесплатных генераций не сбрасывается.

        Args:
            user_id: Внешний ID пользователя.
            plan: Новый тариф.

        Returns:
            Обновлённый объект Entitlement.
        """
        entitlement, _ = await self.get_or_create(user_id)
        entitlement.plan = plan
        await self._session.commit()
        await self._session.refresh(entitlement)

        logger.info("Изменён тариф: user_id=%s, plan=%s", user_id, plan)
        return entitlement
