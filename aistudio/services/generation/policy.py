"""Политика допуска к генерации.

Единственное место, где решается, кому и что можно генерировать.
Таблица возможностей декларативная: адаптеры тариф не проверяют.

Правило допуска:
- premium — любые возможности без ограничения количества
- free — только возможности без пометки requires_premium,
  и только пока free_usage < лимита

Отказ — это значение AdmissionDecision, а не исключение.
"""

from dataclasses import dataclass
from enum import StrEnum

from aistudio.db.models.entitlement import Tier
from aistudio.providers.ai.base import Capability
from aistudio.services.entitlement_service import EntitlementSnapshot

# Сообщения пользователю
QUOTA_EXHAUSTED_MESSAGE = "Limit reached. Upgrade to continue."
PREMIUM_ONLY_MESSAGE = "This feature is only available for premium subscriptions."


class RejectionKind(StrEnum):
    """Причина отказа в допуске."""

    # Бесплатные генерации закончились
    QUOTA = "quota"

    # Возможность доступна только на premium
    PLAN = "plan"


@dataclass(frozen=True, slots=True)
class CapabilityPolicy:
    """Правила допуска для одной возможности.

    Attributes:
        required_tier: Минимальный тариф.
        counts_against_quota: Расходует ли бесплатный лимит (для free).
    """

    required_tier: Tier = Tier.FREE
    counts_against_quota: bool = True

    @property
    def requires_premium(self) -> bool:
        return self.required_tier == Tier.PREMIUM


CAPABILITY_POLICIES: dict[Capability, CapabilityPolicy] = {
    Capability.ARTICLE: CapabilityPolicy(),
    Capability.BLOG_TITLE: CapabilityPolicy(),
    Capability.IMAGE: CapabilityPolicy(required_tier=Tier.PREMIUM),
    Capability.BACKGROUND_REMOVAL: CapabilityPolicy(required_tier=Tier.PREMIUM),
    Capability.OBJECT_REMOVAL: CapabilityPolicy(required_tier=Tier.PREMIUM),
    Capability.RESUME_REVIEW: CapabilityPolicy(required_tier=Tier.PREMIUM),
}


def get_policy(capability: Capability) -> CapabilityPolicy:
    """Получить правила допуска для возможности.

    Raises:
        KeyError: Возможность отсутствует в таблице.
    """
    return CAPABILITY_POLICIES[capability]


@dataclass(frozen=True, slots=True)
class AdmissionDecision:
    """Решение о допуске к генерации.

    Attributes:
        admitted: Генерация разрешена.
        reason: Сообщение пользователю при отказе.
        kind: Причина отказа (None при допуске).
    """

    admitted: bool
    reason: str | None = None
    kind: RejectionKind | None = None

    @classmethod
    def admit(cls) -> "AdmissionDecision":
        return cls(admitted=True)

    @classmethod
    def reject(cls, kind: RejectionKind) -> "AdmissionDecision":
        reason = QUOTA_EXHAUSTED_MESSAGE if kind == RejectionKind.QUOTA else PREMIUM_ONLY_MESSAGE
        return cls(admitted=False, reason=reason, kind=kind)


def check_admission(
    snapshot: EntitlementSnapshot,
    capability: Capability,
    free_limit: int,
) -> AdmissionDecision:
    """Решить, допускается ли генерация.

    Чистая функция: не обращается к БД и не меняет снимок.

    Args:
        snapshot: Снимок тарифа пользователя.
        capability: Запрошенная возможность.
        free_limit: Лимит бесплатных генераций.

    Returns:
        AdmissionDecision.
    """
    policy = get_policy(capability)

    if snapshot.plan == Tier.PREMIUM:
        return AdmissionDecision.admit()

    if policy.requires_premium:
        return AdmissionDecision.reject(RejectionKind.PLAN)

    if policy.counts_against_quota and snapshot.free_usage >= free_limit:
        return AdmissionDecision.reject(RejectionKind.QUOTA)

    return AdmissionDecision.admit()
