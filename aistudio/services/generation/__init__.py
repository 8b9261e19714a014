"""Ядро генераций AI контента.

Архитектура:
- policy — таблица допуска возможностей по тарифам (AdmissionDecision)
- mediator — GenerationMediator: единый алгоритм обработки запроса
  (проверка → допуск → вызов адаптера → журнал → счётчик)

Запросы на генерацию описаны в aistudio.providers.ai.requests.
"""

from aistudio.services.generation.mediator import (
    GENERATION_FAILED_MESSAGE,
    GenerationMediator,
    GenerationOutcome,
    OutcomeKind,
)
from aistudio.services.generation.policy import (
    CAPABILITY_POLICIES,
    AdmissionDecision,
    CapabilityPolicy,
    RejectionKind,
    check_admission,
)

__all__ = [
    "CAPABILITY_POLICIES",
    "GENERATION_FAILED_MESSAGE",
    "AdmissionDecision",
    "CapabilityPolicy",
    "GenerationMediator",
    "GenerationOutcome",
    "OutcomeKind",
    "RejectionKind",
    "check_admission",
]
