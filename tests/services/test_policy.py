"""Тесты политики допуска к генерации."""

import pytest

from aistudio.db.models.entitlement import Tier
from aistudio.providers.ai.base import Capability
from aistudio.services.entitlement_service import EntitlementSnapshot
from aistudio.services.generation.policy import (
    CAPABILITY_POLICIES,
    PREMIUM_ONLY_MESSAGE,
    QUOTA_EXHAUSTED_MESSAGE,
    RejectionKind,
    check_admission,
)

PREMIUM_CAPABILITIES = [
    Capability.IMAGE,
    Capability.BACKGROUND_REMOVAL,
    Capability.OBJECT_REMOVAL,
    Capability.RESUME_REVIEW,
]


def _snapshot(plan: Tier = Tier.FREE, free_usage: int = 0) -> EntitlementSnapshot:
    return EntitlementSnapshot(user_id="user-1", plan=plan, free_usage=free_usage)


def test_every_capability_has_policy() -> None:
    """Тест: для каждой возможности есть правило допуска."""
    assert set(CAPABILITY_POLICIES) == set(Capability)


@pytest.mark.parametrize("free_usage", [0, 5, 9])
def test_free_user_admitted_below_limit(free_usage: int) -> None:
    """Тест: free-пользователь допускается, пока счётчик меньше лимита."""
    decision = check_admission(_snapshot(free_usage=free_usage), Capability.ARTICLE, 10)

    assert decision.admitted
    assert decision.reason is None
    assert decision.kind is None


@pytest.mark.parametrize("free_usage", [10, 11, 100])
def test_free_user_rejected_at_limit(free_usage: int) -> None:
    """Тест: при исчерпанном лимите — отказ с сообщением."""
    decision = check_admission(
        _snapshot(free_usage=free_usage), Capability.BLOG_TITLE, 10
    )

    assert not decision.admitted
    assert decision.kind == RejectionKind.QUOTA
    assert decision.reason == QUOTA_EXHAUSTED_MESSAGE


@pytest.mark.parametrize("capability", PREMIUM_CAPABILITIES)
def test_free_user_rejected_for_premium_capabilities(capability: Capability) -> None:
    """Тест: возможности с изображениями и резюме закрыты для free."""
    decision = check_admission(_snapshot(free_usage=0), capability, 10)

    assert not decision.admitted
    assert decision.kind == RejectionKind.PLAN
    assert decision.reason == PREMIUM_ONLY_MESSAGE


def test_premium_capability_checked_before_quota() -> None:
    """Тест: для premium-возможности free получает отказ по тарифу, а не по лимиту."""
    decision = check_admission(_snapshot(free_usage=10), Capability.IMAGE, 10)

    assert decision.kind == RejectionKind.PLAN


@pytest.mark.parametrize("capability", list(Capability))
def test_premium_admitted_regardless_of_counter(capability: Capability) -> None:
    """Тест: premium допускается к любой возможности при любом счётчике."""
    decision = check_admission(_snapshot(Tier.PREMIUM, free_usage=50), capability, 10)

    assert decision.admitted


def test_limit_is_configurable() -> None:
    """Тест: лимит берётся из аргумента, а не из константы."""
    assert not check_admission(_snapshot(free_usage=3), Capability.ARTICLE, 3).admitted
    assert check_admission(_snapshot(free_usage=3), Capability.ARTICLE, 4).admitted
