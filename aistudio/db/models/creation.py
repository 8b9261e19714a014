"""Модель журнала генераций.

Журнал — append-only: запись создаётся один раз на каждую успешную
генерацию и больше никогда не изменяется и не удаляется.

Пример использования:
    creation = Creation(
        user_id="user_2abc",
        prompt="Remove background from image",
        content="https://res.cloudinary.com/...",
        type="background-removal",
    )
    session.add(creation)
    await session.flush()
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column
from typing_extensions import override

from aistudio.db.models_base import Base


class Creation(Base):
    """Запись об успешной генерации.

    Attributes:
        id: Уникальный идентификатор записи.
        user_id: Внешний ID пользователя.
        prompt: Промпт пользователя или описание операции
            ("Remove background from image", "Resume Review").
        content: Сгенерированный текст или URL изображения в хранилище.
        type: Возможность, которой выполнена генерация
            (article, blog-title, image, background-removal,
            object-removal, resume-review).
        publish: Флаг публикации в общей ленте.
        created_at: Время создания записи.

    Индексы:
        - (user_id, created_at) — для выдачи истории пользователя
    """

    __tablename__ = "creations"
    __table_args__ = (Index("ix_creations_user_created", "user_id", "created_at"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(String(255), nullable=False)

    prompt: Mapped[str] = mapped_column(Text, nullable=False)

    # Text: статья может быть длинной, URL тоже без ограничения
    content: Mapped[str] = mapped_column(Text, nullable=False)

    type: Mapped[str] = mapped_column(String(50), nullable=False)

    publish: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        nullable=False,
    )

    @override
    def __repr__(self) -> str:
        return (
            f"<Creation(id={self.id}, user_id={self.user_id}, "
            f"type={self.type}, publish={self.publish})>"
        )
