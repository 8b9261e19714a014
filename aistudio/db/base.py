"""Подключение к БД журнала генераций и тарифов.

Здесь создаются ленивые синглтоны engine и фабрики сессий.
Одна сессия обслуживает одну генерацию: запись в журнал и увеличение
счётчика фиксируются одним commit (см. GenerationMediator).

Выбор БД:
- DATABASE__POSTGRES_URL задан: PostgreSQL через asyncpg
- иначе SQLite в DATA_DIR/studio.db

Импорт Base для моделей должен быть из aistudio.db.models_base,
чтобы тесты могли создавать схему без загрузки настроек.
"""

from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING, Any

from sqlalchemy import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from aistudio.config.constants import DATA_DIR
from aistudio.db.models_base import Base
from aistudio.utils.logging import get_logger

__all__ = [
    "Base",
    "create_tables",
    "dispose_engine",
    "get_async_session_factory",
    "get_engine",
    "get_session",
]

if TYPE_CHECKING:
    from aistudio.config.settings import Settings

logger = get_logger(__name__)

# Сколько секунд SQLite ждёт снятия блокировки записи.
# Конкурентные генерации одного пользователя пишут в одну строку тарифа.
SQLITE_BUSY_TIMEOUT = 15.0

_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def _get_settings() -> "Settings":
    """Ленивая загрузка настроек (тесты импортируют модуль без .env)."""
    from aistudio.config.settings import settings

    return settings


def _get_database_url() -> str:
    """URL подключения в формате SQLAlchemy с async-драйвером."""
    settings = _get_settings()
    if settings.database.postgres_url:
        return settings.database.postgres_url

    db_path = DATA_DIR / "studio.db"
    return f"sqlite+aiosqlite:///{db_path}"


def _engine_options(url: str) -> dict[str, Any]:
    """Параметры create_async_engine для конкретного бэкенда."""
    if make_url(url).get_backend_name() == "sqlite":
        return {"connect_args": {"timeout": SQLITE_BUSY_TIMEOUT}}
    return {"pool_pre_ping": True}


def get_engine() -> AsyncEngine:
    """Получить асинхронный engine (создаётся при первом обращении)."""
    global _engine
    if _engine is None:
        url = _get_database_url()
        _engine = create_async_engine(url, echo=False, **_engine_options(url))
        logger.info(
            "БД журнала генераций: %s",
            make_url(url).render_as_string(hide_password=True),
        )
    return _engine


def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    """Получить фабрику асинхронных сессий (ленивая инициализация).

    expire_on_commit=False — не "протухать" объекты после commit.

    Returns:
        Фабрика асинхронных сессий SQLAlchemy.
    """
    global _async_session_factory
    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _async_session_factory


async def create_tables() -> None:
    """Создать недостающие таблицы.

    Вызывается при старте приложения. Существующие таблицы не изменяются,
    миграции схемы не выполняются.
    """
    # Импорт регистрирует модели в Base.metadata
    import aistudio.db.models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Закрыть пул соединений (при остановке приложения)."""
    global _engine, _async_session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _async_session_factory = None


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Получить сессию для работы с БД (для FastAPI Depends).

    Yields:
        AsyncSession для выполнения запросов.
    """
    factory = get_async_session_factory()
    async with factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
