"""Тесты сервиса тарифов (EntitlementService)."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from aistudio.config.yaml_config import YamlConfig
from aistudio.core.exceptions import EntitlementUpdateError
from aistudio.db.models.entitlement import Tier
from aistudio.db.repositories.entitlement_repo import FreeUsageCharge
from aistudio.services.entitlement_service import (
    EntitlementService,
    create_entitlement_service,
)


async def test_resolve_creates_free_user(db_session: AsyncSession) -> None:
    """Тест: неизвестный пользователь получает тариф free и счётчик 0."""
    service = EntitlementService(db_session, free_limit=10)

    snapshot = await service.resolve("new-user")

    assert snapshot.user_id == "new-user"
    assert snapshot.plan == Tier.FREE
    assert snapshot.free_usage == 0
    assert not snapshot.is_premium


async def test_resolve_reads_fresh_counter(db_session: AsyncSession) -> None:
    """Тест: снимок отражает увеличение счётчика после commit."""
    service = EntitlementService(db_session, free_limit=10)
    await service.resolve("user-1")

    assert await service.increment_free_usage("user-1") == FreeUsageCharge.CHARGED
    await db_session.commit()
    snapshot = await service.resolve("user-1")

    assert snapshot.free_usage == 1


async def test_increment_stops_at_limit(db_session: AsyncSession) -> None:
    """Тест: счётчик не превышает лимит при любом количестве вызовов."""
    service = EntitlementService(db_session, free_limit=3)
    await service.resolve("user-1")

    results = [await service.increment_free_usage("user-1") for _ in range(5)]
    await db_session.commit()

    assert results == [FreeUsageCharge.CHARGED] * 3 + [FreeUsageCharge.EXHAUSTED] * 2
    assert (await service.resolve("user-1")).free_usage == 3


async def test_increment_ignores_premium(db_session: AsyncSession) -> None:
    """Тест: счётчик premium-пользователя не изменяется."""
    service = EntitlementService(db_session, free_limit=10)
    await service.set_plan("user-1", Tier.PREMIUM)

    assert await service.increment_free_usage("user-1") == FreeUsageCharge.NOT_FREE


async def test_set_plan_keeps_counter(db_session: AsyncSession) -> None:
    """Тест: смена тарифа не сбрасывает счётчик."""
    service = EntitlementService(db_session, free_limit=10)
    await service.resolve("user-1")
    await service.increment_free_usage("user-1")
    await db_session.commit()

    snapshot = await service.set_plan("user-1", Tier.PREMIUM)

    assert snapshot.is_premium
    assert snapshot.free_usage == 1


async def test_database_error_is_wrapped() -> None:
    """Тест: ошибка SQLAlchemy превращается в EntitlementUpdateError."""
    session = AsyncMock(spec=AsyncSession)
    session.execute.side_effect = OperationalError("UPDATE", {}, Exception("locked"))
    service = EntitlementService(session, free_limit=10)

    with pytest.raises(EntitlementUpdateError) as exc_info:
        await service.increment_free_usage("user-1")

    assert exc_info.value.retryable
    assert exc_info.value.user_id == "user-1"


def test_factory_uses_configured_limit(test_config: YamlConfig) -> None:
    """Тест: фабрика берёт лимит из YAML-конфигурации."""
    service = create_entitlement_service(AsyncMock(spec=AsyncSession), test_config)

    assert service.free_limit == 10
