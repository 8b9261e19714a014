"""Репозиторий журнала генераций.

Журнал append-only: репозиторий умеет только добавлять записи и читать их.
Операций изменения и удаления нет.
"""

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from aistudio.core.exceptions import PersistenceError
from aistudio.db.models.creation import Creation
from aistudio.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class NewCreation:
    """Данные новой записи журнала.

    Attributes:
        user_id: Внешний ID пользователя.
        prompt: Промпт или описание операции.
        content: Текст или URL результата.
        type: Возможность (article, image, ...).
        publish: Флаг публикации.
    """

    user_id: str
    prompt: str
    content: str
    type: str
    publish: bool = False


class CreationRepository:
    """Репозиторий для работы с таблицей creations.

    Attributes:
        session: Асинхронная сессия SQLAlchemy.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Инициализация репозитория.

        Args:
            session: Асинхронная сессия SQLAlchemy.
        """
        self._session = session

    async def append(self, record: NewCreation) -> int:
        """Добавить запись в журнал.

        Выполняет INSERT (flush), но НЕ коммитит: фиксация выполняется
        вызывающим кодом вместе с увеличением счётчика.

        Args:
            record: Данные записи.

        Returns:
            ID созданной записи.

        Raises:
            PersistenceError: Ошибка записи в БД.
        """
        creation = Creation(
            user_id=record.user_id,
            prompt=record.prompt,
            content=record.content,
            type=record.type,
            publish=record.publish,
        )
        try:
            self._session.add(creation)
            await self._session.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(record.user_id, e) from e

        logger.debug(
            "Запись журнала: id=%s, user_id=%s, type=%s",
            creation.id,
            record.user_id,
            record.type,
        )
        return creation.id

    async def get_by_id(self, creation_id: int) -> Creation | None:
        """Получить запись журнала по ID.

        Args:
            creation_id: ID записи.

        Returns:
            Creation или None если не найдена.
        """
        stmt = select(Creation).where(Creation.id == creation_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str, *, limit: int = 50) -> list[Creation]:
        """Получить записи пользователя (новые первые).

        Args:
            user_id: Внешний ID пользователя.
            limit: Максимальное количество записей.

        Returns:
            Список записей.
        """
        stmt = (
            select(Creation)
            .where(Creation.user_id == user_id)
            .order_by(Creation.created_at.desc(), Creation.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def count_for_user(self, user_id: str) -> int:
        """Посчитать записи пользователя."""
        stmt = select(func.count()).select_from(Creation).where(
            Creation.user_id == user_id
        )
        result = await self._session.execute(stmt)
        return int(result.scalar_one())
