"""Сервисы приложения.

Этот пакет содержит бизнес-логику приложения.

Сервисы:
- EntitlementService — тариф пользователя и счётчик бесплатных генераций.
- GenerationMediator — ядро генераций (допуск, вызов провайдера, журнал).
"""

from aistudio.services.entitlement_service import (
    EntitlementService,
    EntitlementSnapshot,
    create_entitlement_service,
)
from aistudio.services.generation import GenerationMediator, GenerationOutcome, OutcomeKind

__all__ = [
    "EntitlementService",
    "EntitlementSnapshot",
    "GenerationMediator",
    "GenerationOutcome",
    "OutcomeKind",
    "create_entitlement_service",
]
