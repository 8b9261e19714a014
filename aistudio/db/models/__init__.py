"""Модели базы данных (таблицы).

Каждая модель — это класс Python, который соответствует таблице в БД.
Все модели должны наследоваться от Base (из db.models_base).
"""

from aistudio.db.models.creation import Creation
from aistudio.db.models.entitlement import Entitlement, Tier

__all__ = [
    "Creation",
    "Entitlement",
    "Tier",
]
