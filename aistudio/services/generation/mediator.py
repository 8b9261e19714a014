"""Ядро генераций: единый алгоритм обработки запроса.

Для каждой возможности выполняется один и тот же алгоритм:
1. Проверка запроса (структурная, без сети)
2. Проверка допуска по тарифу (policy.check_admission)
3. Вызов адаптера провайдера (ровно один раз, с таймаутом)
4. Проверка, что клиент ещё ждёт ответа
5. Запись в журнал генераций (flush, без commit)
6. Увеличение счётчика бесплатных генераций (только free)
7. Commit: запись и счётчик фиксируются одной транзакцией
8. Всегда: удаление временных файлов запроса

Порядок шагов 3 → 5 → 6 строгий: если шаг не удался, следующие не выполняются,
а уже сделанное в БД откатывается. Неудачная генерация никогда не расходует лимит.

Наружу не выходит ни одно исключение, кроме asyncio.CancelledError:
любой исход возвращается как GenerationOutcome.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from aistudio.config.yaml_config import YamlConfig
from aistudio.core.exceptions import (
    AdapterTimeoutError,
    EntitlementUpdateError,
    GenerationError,
    GenerationValidationError,
    PersistenceError,
    ProviderNotAvailableError,
)
from aistudio.db.models.entitlement import Tier
from aistudio.db.repositories.creation_repo import CreationRepository, NewCreation
from aistudio.db.repositories.entitlement_repo import FreeUsageCharge
from aistudio.providers.ai.base import ProviderResult
from aistudio.providers.ai.registry import AdapterSet
from aistudio.providers.ai.requests import GenerationRequest
from aistudio.services.entitlement_service import EntitlementService, EntitlementSnapshot
from aistudio.services.generation.policy import (
    QUOTA_EXHAUSTED_MESSAGE,
    RejectionKind,
    check_admission,
    get_policy,
)
from aistudio.utils.logging import get_logger
from aistudio.utils.staging import release_staged

logger = get_logger(__name__)

# Сообщение пользователю при любой ошибке провайдера или БД.
# Подробности пишутся только в лог.
GENERATION_FAILED_MESSAGE = "Generation failed. Please try again later."
CANCELLED_MESSAGE = "Request cancelled."

# Проверка "клиент ещё ждёт ответа" (например, Request.is_disconnected)
CancellationProbe = Callable[[], Awaitable[bool]]


class OutcomeKind(StrEnum):
    """Исход обработки запроса."""

    COMPLETED = "completed"
    REJECTED_QUOTA = "rejected_quota"
    REJECTED_PLAN = "rejected_plan"
    INVALID = "invalid"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class GenerationOutcome:
    """Результат обработки запроса ядром.

    Attributes:
        kind: Исход.
        content: Текст или URL результата (только COMPLETED).
        message: Сообщение пользователю (при неуспехе).
        record_id: ID записи журнала (только COMPLETED).
    """

    kind: OutcomeKind
    content: str | None = None
    message: str | None = None
    record_id: int | None = None

    @property
    def success(self) -> bool:
        return self.kind == OutcomeKind.COMPLETED

    def to_payload(self) -> dict[str, Any]:
        """Тело ответа: {success, content} или {success, message}."""
        if self.success:
            return {"success": True, "content": self.content}
        return {"success": False, "message": self.message}

    @classmethod
    def completed(cls, content: str, record_id: int) -> "GenerationOutcome":
        return cls(kind=OutcomeKind.COMPLETED, content=content, record_id=record_id)

    @classmethod
    def failed(cls) -> "GenerationOutcome":
        return cls(kind=OutcomeKind.FAILED, message=GENERATION_FAILED_MESSAGE)


class GenerationMediator:
    """Ядро генераций.

    Создаётся на каждый запрос: сессия БД своя у каждого запроса,
    адаптеры общие для процесса.

    Attributes:
        _session: Асинхронная сессия SQLAlchemy (одна транзакция на запрос).
        _adapters: Адаптеры, созданные при старте приложения.
        _entitlements: Сервис тарифов.
        _store: Репозиторий журнала генераций.
    """

    def __init__(
        self,
        session: AsyncSession,
        adapters: AdapterSet,
        *,
        config: YamlConfig | None = None,
        entitlements: EntitlementService | None = None,
        store: CreationRepository | None = None,
    ) -> None:
        """Создать ядро.

        Args:
            session: Асинхронная сессия SQLAlchemy.
            adapters: Набор адаптеров провайдеров.
            config: YAML-конфигурация (по умолчанию глобальная).
            entitlements: Сервис тарифов. Если None — создаётся на той же сессии.
                Параметр нужен для DI в тестах.
            store: Репозиторий журнала. Если None — создаётся на той же сессии.
        """
        if config is None:
            from aistudio.config.yaml_config import yaml_config as global_yaml_config

            config = global_yaml_config

        self._session = session
        self._adapters = adapters
        self._limits = config.limits
        self._timeouts = config.generation_timeouts
        self._entitlements = entitlements or EntitlementService(
            session, config.limits.free_usage_limit
        )
        self._store = store or CreationRepository(session)

    async def execute(
        self,
        request: GenerationRequest,
        snapshot: EntitlementSnapshot,
        *,
        is_cancelled: CancellationProbe | None = None,
    ) -> GenerationOutcome:
        """Обработать запрос на генерацию.

        Args:
            request: Запрос на генерацию.
            snapshot: Снимок тарифа, прочитанный непосредственно перед вызовом.
            is_cancelled: Проверка отключения клиента (опционально).

        Returns:
            GenerationOutcome с исходом обработки.

        Raises:
            asyncio.CancelledError: Задача запроса отменена. Транзакция откатывается.
        """
        try:
            return await self._process(request, snapshot, is_cancelled)
        except asyncio.CancelledError:
            logger.info(
                "Генерация %s отменена: user_id=%s",
                request.capability,
                snapshot.user_id,
            )
            await self._rollback()
            raise
        except Exception:
            logger.exception(
                "Неожиданная ошибка в генерации %s: user_id=%s",
                request.capability,
                snapshot.user_id,
            )
            await self._rollback()
            return GenerationOutcome.failed()
        finally:
            release_staged(*request.staged_files())

    async def _process(
        self,
        request: GenerationRequest,
        snapshot: EntitlementSnapshot,
        is_cancelled: CancellationProbe | None,
    ) -> GenerationOutcome:
        capability = request.capability
        user_id = snapshot.user_id

        # === ШАГ 1: Проверка запроса ===
        try:
            request.validate(self._limits)
        except GenerationValidationError as e:
            logger.info(
                "Некорректный запрос %s: user_id=%s, field=%s, error=%s",
                capability,
                user_id,
                e.field,
                e.message,
            )
            return GenerationOutcome(kind=OutcomeKind.INVALID, message=e.message)

        # === ШАГ 2: Допуск по тарифу ===
        decision = check_admission(snapshot, capability, self._entitlements.free_limit)
        if not decision.admitted:
            logger.info(
                "Отказ в генерации %s: user_id=%s, plan=%s, free_usage=%d, reason=%s",
                capability,
                user_id,
                snapshot.plan,
                snapshot.free_usage,
                decision.kind,
            )
            kind = (
                OutcomeKind.REJECTED_QUOTA
                if decision.kind == RejectionKind.QUOTA
                else OutcomeKind.REJECTED_PLAN
            )
            return GenerationOutcome(kind=kind, message=decision.reason)

        # === ШАГ 3: Вызов адаптера ===
        result = await self._invoke(request, user_id)
        if isinstance(result, GenerationOutcome):
            return result

        # === ШАГ 4: Клиент ещё ждёт? ===
        if is_cancelled is not None and await is_cancelled():
            logger.info(
                "Клиент отключился до сохранения результата %s: user_id=%s, "
                "результат отброшен",
                capability,
                user_id,
            )
            return GenerationOutcome(
                kind=OutcomeKind.CANCELLED, message=CANCELLED_MESSAGE
            )

        # === ШАГ 5: Запись в журнал ===
        try:
            record_id = await self._store.append(
                NewCreation(
                    user_id=user_id,
                    prompt=request.describe(),
                    content=result.content,
                    type=str(capability),
                    publish=request.publish,
                )
            )
        except PersistenceError as e:
            await self._rollback()
            self._log_orphan(request, user_id, result, e)
            return GenerationOutcome.failed()

        # === ШАГ 6: Счётчик бесплатных генераций ===
        policy = get_policy(capability)
        if snapshot.plan == Tier.FREE and policy.counts_against_quota:
            try:
                charge = await self._entitlements.increment_free_usage(user_id)
            except EntitlementUpdateError as e:
                await self._rollback()
                self._log_orphan(request, user_id, result, e)
                return GenerationOutcome.failed()

            if charge == FreeUsageCharge.NOT_FREE:
                logger.info(
                    "Тариф сменился во время генерации %s: user_id=%s, "
                    "генерация не учитывается в лимите",
                    capability,
                    user_id,
                )
            elif charge == FreeUsageCharge.EXHAUSTED:
                # Последний бесплатный слот занял конкурентный запрос
                await self._rollback()
                logger.info(
                    "Лимит исчерпан конкурентным запросом %s: user_id=%s, "
                    "результат отброшен",
                    capability,
                    user_id,
                )
                return GenerationOutcome(
                    kind=OutcomeKind.REJECTED_QUOTA, message=QUOTA_EXHAUSTED_MESSAGE
                )

        # === ШАГ 7: Фиксация ===
        try:
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._rollback()
            self._log_orphan(request, user_id, result, e)
            return GenerationOutcome.failed()

        logger.info(
            "Генерация %s успешна: user_id=%s, plan=%s, provider=%s, record_id=%s",
            capability,
            user_id,
            snapshot.plan,
            result.provider,
            record_id,
        )
        return GenerationOutcome.completed(result.content, record_id)

    async def _invoke(
        self, request: GenerationRequest, user_id: str
    ) -> ProviderResult | GenerationOutcome:
        """Вызвать адаптер ровно один раз.

        Returns:
            ProviderResult при успехе или GenerationOutcome с исходом ошибки.
        """
        capability = request.capability

        try:
            adapter = self._adapters.get(capability)
        except ProviderNotAvailableError as e:
            logger.error(
                "Провайдер недоступен для %s: user_id=%s, error=%s",
                capability,
                user_id,
                e.message,
            )
            return GenerationOutcome.failed()

        timeout = self._timeouts.for_capability(capability)
        try:
            return await asyncio.wait_for(adapter.invoke(request), timeout=timeout)
        except TimeoutError:
            error = AdapterTimeoutError(
                provider=adapter.provider_name,
                capability=capability,
                timeout=timeout,
            )
            self._log_generation_error(error, user_id)
            return GenerationOutcome.failed()
        except GenerationValidationError as e:
            logger.info(
                "Данные запроса %s отклонены адаптером: user_id=%s, error=%s",
                capability,
                user_id,
                e.message,
            )
            return GenerationOutcome(kind=OutcomeKind.INVALID, message=e.message)
        except GenerationError as e:
            self._log_generation_error(e, user_id)
            return GenerationOutcome.failed()

    @staticmethod
    def _log_generation_error(error: GenerationError, user_id: str) -> None:
        label = "Ошибка генерации"
        if isinstance(error, AdapterTimeoutError):
            label = "Таймаут провайдера"
        logger.error(
            "%s | type=%s | user=%s | provider=%s | retryable=%s | error=%s",
            label,
            error.capability,
            user_id,
            error.provider,
            error.is_retryable,
            error.message,
        )

    @staticmethod
    def _log_orphan(
        request: GenerationRequest,
        user_id: str,
        result: ProviderResult,
        error: Exception,
    ) -> None:
        """Залогировать результат, который получен, но не записан в журнал.

        Для изображений пишется URL в хранилище (по нему файл можно найти
        и удалить), для текста только длина: текст создан по данным пользователя.
        """
        if request.capability.is_media:
            content = result.content
        else:
            content = f"<текст, {len(result.content)} символов>"
        logger.error(
            "Результат %s не сохранён: user_id=%s, provider=%s, content=%s, error=%s",
            request.capability,
            user_id,
            result.provider,
            content,
            error,
        )

    async def _rollback(self) -> None:
        try:
            await self._session.rollback()
        except SQLAlchemyError:
            logger.exception("Не удалось откатить транзакцию")
