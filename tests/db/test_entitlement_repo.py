"""Тесты репозитория тарифов (EntitlementRepository)."""

from sqlalchemy.ext.asyncio import AsyncSession

from aistudio.db.models.entitlement import Tier
from aistudio.db.repositories.entitlement_repo import EntitlementRepository, FreeUsageCharge


async def test_get_returns_none_for_unknown_user(db_session: AsyncSession) -> None:
    """Тест: для неизвестного пользователя строки нет."""
    repo = EntitlementRepository(db_session)

    assert await repo.get("nobody") is None


async def test_get_or_create_creates_once(db_session: AsyncSession) -> None:
    """Тест: строка создаётся при первом обращении, затем переиспользуется."""
    repo = EntitlementRepository(db_session)

    first, created_first = await repo.get_or_create("user-1")
    second, created_second = await repo.get_or_create("user-1")

    assert created_first is True
    assert created_second is False
    assert first.user_id == second.user_id == "user-1"
    assert first.plan == Tier.FREE
    assert first.free_usage == 0


async def test_increment_is_conditional_on_limit(db_session: AsyncSession) -> None:
    """Тест: условный UPDATE не проходит, когда счётчик достиг лимита."""
    repo = EntitlementRepository(db_session)
    entitlement, _ = await repo.get_or_create("user-1")
    entitlement.free_usage = 9
    await db_session.commit()

    assert await repo.increment_free_usage("user-1", limit=10) == FreeUsageCharge.CHARGED
    assert await repo.increment_free_usage("user-1", limit=10) == FreeUsageCharge.EXHAUSTED
    await db_session.commit()

    refreshed = await repo.get("user-1")
    assert refreshed is not None
    assert refreshed.free_usage == 10


async def test_increment_is_rolled_back_with_transaction(db_session: AsyncSession) -> None:
    """Тест: увеличение счётчика не фиксируется само по себе."""
    repo = EntitlementRepository(db_session)
    await repo.get_or_create("user-1")

    assert await repo.increment_free_usage("user-1", limit=10) == FreeUsageCharge.CHARGED
    await db_session.rollback()

    refreshed = await repo.get("user-1")
    assert refreshed is not None
    assert refreshed.free_usage == 0


async def test_increment_unknown_user_is_not_charged(db_session: AsyncSession) -> None:
    """Тест: для несуществующей строки UPDATE ничего не меняет."""
    repo = EntitlementRepository(db_session)

    assert await repo.increment_free_usage("ghost", limit=10) == FreeUsageCharge.EXHAUSTED


async def test_set_plan_updates_tier(db_session: AsyncSession) -> None:
    """Тест: смена тарифа сохраняется в БД."""
    repo = EntitlementRepository(db_session)

    await repo.set_plan("user-1", Tier.PREMIUM)
    refreshed = await repo.get("user-1")

    assert refreshed is not None
    assert refreshed.plan == Tier.PREMIUM


async def test_increment_reports_upgraded_plan(db_session: AsyncSession) -> None:
    """Тест: для premium-строки счётчик не меняется и это не исчерпание лимита."""
    repo = EntitlementRepository(db_session)
    await repo.get_or_create("user-1")
    await repo.set_plan("user-1", Tier.PREMIUM)

    assert await repo.increment_free_usage("user-1", limit=10) == FreeUsageCharge.NOT_FREE

    refreshed = await repo.get("user-1")
    assert refreshed is not None
    assert refreshed.free_usage == 0
