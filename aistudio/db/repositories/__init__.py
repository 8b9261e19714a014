"""Репозитории для работы с данными.

Репозиторий — это паттерн, который инкапсулирует логику доступа к данным.
Вместо прямых SQL-запросов в сервисах используем методы репозитория.
"""

from aistudio.db.repositories.creation_repo import CreationRepository, NewCreation
from aistudio.db.repositories.entitlement_repo import (
    EntitlementRepository,
    FreeUsageCharge,
)

__all__ = [
    "CreationRepository",
    "EntitlementRepository",
    "FreeUsageCharge",
    "NewCreation",
]
