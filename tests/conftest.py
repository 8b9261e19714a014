"""Общие фикстуры для всех тестов.

Этот файл содержит pytest-фикстуры, которые используются во всех тестах:
- Тестовая БД SQLite в памяти (для изоляции тестов)
- Асинхронные сессии SQLAlchemy
- Фейковый адаптер провайдера и набор адаптеров для ядра
- Фабрики тестовых данных (тарифы, временные файлы)
"""

import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from typing_extensions import override

import aistudio.db.models  # noqa: F401
from aistudio.config.yaml_config import GenerationTimeouts, YamlConfig
from aistudio.db.models.entitlement import Tier
from aistudio.db.models_base import Base
from aistudio.db.repositories.entitlement_repo import EntitlementRepository
from aistudio.providers.ai.base import BaseProviderAdapter, Capability, ProviderResult
from aistudio.providers.ai.registry import AdapterSet
from aistudio.providers.ai.requests import GenerationRequest
from aistudio.services.entitlement_service import EntitlementSnapshot
from aistudio.utils.staging import StagedFile


class FakeAdapter(BaseProviderAdapter):
    """Фейковый адаптер: возвращает заданный результат или выбрасывает ошибку.

    Attributes:
        calls: Запросы, с которыми вызывался invoke().
    """

    capabilities = frozenset(Capability)

    def __init__(
        self,
        content: str = "generated content",
        *,
        error: BaseException | None = None,
        delay: float = 0.0,
    ) -> None:
        self.content = content
        self.error = error
        self.delay = delay
        self.calls: list[GenerationRequest] = []
        self.closed = False

    @property
    @override
    def provider_name(self) -> str:
        return "fake"

    @override
    async def invoke(self, request: GenerationRequest) -> ProviderResult:
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ProviderResult(content=self.content, provider=self.provider_name)

    @override
    async def close(self) -> None:
        self.closed = True


def adapter_set_for(adapter: BaseProviderAdapter) -> AdapterSet:
    """Набор адаптеров, где один адаптер обслуживает все возможности."""
    return AdapterSet({capability: adapter for capability in Capability})


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[Any, None]:
    """Создать тестовый движок SQLAlchemy.

    Использует SQLite в памяти (:memory:) для полной изоляции тестов.
    Каждый тест получает чистую БД без данных из предыдущих тестов.

    Yields:
        Асинхронный движок SQLAlchemy для тестовой БД.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,  # Отключаем логи SQL в тестах
    )

    # Создаём все таблицы
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Очистка: удаляем все таблицы после теста
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine: Any) -> AsyncGenerator[AsyncSession, None]:
    """Создать асинхронную сессию БД для теста.

    Каждый тест получает свою изолированную сессию.
    После завершения теста сессия автоматически откатывается и закрывается.

    Args:
        test_engine: Тестовый движок SQLAlchemy из фикстуры test_engine.

    Yields:
        Асинхронная сессия для работы с тестовой БД.
    """
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session
        # Откатываем все изменения после теста (для изоляции)
        await session.rollback()


@pytest.fixture
def test_config() -> YamlConfig:
    """YAML-конфигурация для тестов (короткие таймауты)."""
    return YamlConfig(
        generation_timeouts=GenerationTimeouts(
            article=0.5,
            blog_title=0.5,
            image=0.5,
            background_removal=0.5,
            object_removal=0.5,
            resume_review=0.5,
        )
    )


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    """Фейковый адаптер с успешным результатом.

    Поведение меняется атрибутами: content, error, delay.
    """
    return FakeAdapter()


@pytest.fixture
def adapters(fake_adapter: FakeAdapter) -> AdapterSet:
    """Набор адаптеров на основе fake_adapter."""
    return adapter_set_for(fake_adapter)


@pytest.fixture
def make_entitlement(
    db_session: AsyncSession,
) -> Callable[..., Awaitable[EntitlementSnapshot]]:
    """Фабрика тарифов: создаёт строку в БД и возвращает снимок.

    Example:
        snapshot = await make_entitlement("user-1", plan=Tier.FREE, free_usage=9)
    """

    async def _make(
        user_id: str = "user-1",
        *,
        plan: Tier = Tier.FREE,
        free_usage: int = 0,
    ) -> EntitlementSnapshot:
        entitlement, _ = await EntitlementRepository(db_session).get_or_create(user_id)
        entitlement.plan = plan
        entitlement.free_usage = free_usage
        await db_session.commit()
        return EntitlementSnapshot(user_id=user_id, plan=plan, free_usage=free_usage)

    return _make


@pytest.fixture
def make_staged(tmp_path: Path) -> Callable[..., StagedFile]:
    """Фабрика временных файлов запроса в tmp_path."""

    def _make(
        data: bytes = b"\x89PNG fake image",
        *,
        filename: str = "photo.png",
        content_type: str = "image/png",
    ) -> StagedFile:
        path = tmp_path / f"staged_{len(list(tmp_path.iterdir()))}_{filename}"
        path.write_bytes(data)
        return StagedFile(
            path=path,
            filename=filename,
            content_type=content_type,
            size=len(data),
        )

    return _make
