"""Модель тарифа пользователя и счётчика бесплатных генераций.

Пользователь аутентифицируется внешним сервисом, здесь хранится только
то, что нужно для решения о допуске к генерации:
- Тариф (free / premium)
- Количество уже использованных бесплатных генераций

Строка создаётся лениво при первом обращении пользователя (тариф free, 0).
Счётчик изменяется ТОЛЬКО атомарным условным UPDATE
(см. EntitlementRepository.increment_free_usage).
"""

from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column
from typing_extensions import override

from aistudio.db.models_base import Base


class Tier(StrEnum):
    """Тариф пользователя."""

    # Ограниченное число генераций, только текстовые возможности
    FREE = "free"

    # Без ограничений, все возможности
    PREMIUM = "premium"


class Entitlement(Base):
    """Тариф и счётчик бесплатных генераций пользователя.

    Attributes:
        user_id: Внешний идентификатор пользователя (от сервиса аутентификации).
        plan: Тариф (free, premium).
        free_usage: Сколько бесплатных генераций уже использовано.
            Имеет смысл только для тарифа free. Никогда не уменьшается
            внутри приложения (сброс — только внешний).
        created_at: Когда пользователь впервые обратился к сервису.
        updated_at: Последнее изменение счётчика или тарифа.
    """

    __tablename__ = "entitlements"

    # Внешний ID: строка, формат определяет провайдер аутентификации
    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)

    plan: Mapped[str] = mapped_column(
        String(20),
        default=Tier.FREE,
        nullable=False,
    )

    free_usage: Mapped[int] = mapped_column(default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @override
    def __repr__(self) -> str:
        return (
            f"<Entitlement(user_id={self.user_id}, plan={self.plan}, "
            f"free_usage={self.free_usage})>"
        )
