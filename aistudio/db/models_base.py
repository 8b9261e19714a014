"""Базовый класс для всех моделей SQLAlchemy.

Этот модуль содержит только декларативную базу без побочных эффектов.
Используется для изоляции тестов от загрузки настроек при импорте моделей.

Пример использования в моделях:
    from aistudio.db.models_base import Base

    class Creation(Base):
        __tablename__ = "creations"
        ...
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Базовый класс для всех моделей.

    Все модели (Entitlement, Creation) наследуются от Base.
    Это позволяет SQLAlchemy автоматически создавать таблицы.
    """
