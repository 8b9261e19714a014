"""Зависимости FastAPI для эндпоинтов генерации.

- get_user_id — идентификатор пользователя из заголовка X-User-Id
  (аутентификацию выполняет внешний шлюз, здесь ему доверяем)
- get_adapters — адаптеры провайдеров из app.state
- get_snapshot — свежий снимок тарифа на каждый запрос
- get_mediator — ядро генераций на сессии запроса
"""

from typing import Annotated, cast

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from aistudio.config.yaml_config import yaml_config
from aistudio.core.exceptions import EntitlementUpdateError
from aistudio.db.base import get_session
from aistudio.providers.ai.registry import AdapterSet
from aistudio.services.entitlement_service import (
    EntitlementSnapshot,
    create_entitlement_service,
)
from aistudio.services.generation import GENERATION_FAILED_MESSAGE, GenerationMediator
from aistudio.utils.logging import get_logger

logger = get_logger(__name__)

# Максимальная длина внешнего ID (совпадает с размером колонки)
MAX_USER_ID_LENGTH = 255


async def get_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """Получить ID пользователя из заголовка X-User-Id.

    Raises:
        HTTPException: 401 если заголовок отсутствует или некорректен.
    """
    user_id = (x_user_id or "").strip()
    if not user_id or len(user_id) > MAX_USER_ID_LENGTH:
        raise HTTPException(status_code=401, detail="Authentication required.")
    return user_id


async def get_adapters(request: Request) -> AdapterSet:
    """Получить адаптеры провайдеров из app.state.

    Raises:
        HTTPException: 503 если приложение ещё не запущено.
    """
    adapters = getattr(request.app.state, "adapters", None)
    if adapters is None:
        raise HTTPException(status_code=503, detail="Service is starting up.")
    return cast("AdapterSet", adapters)


async def get_snapshot(
    user_id: Annotated[str, Depends(get_user_id)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> EntitlementSnapshot:
    """Прочитать тариф пользователя непосредственно перед генерацией.

    Raises:
        HTTPException: 500 если тариф не удалось прочитать.
    """
    service = create_entitlement_service(session, yaml_config)
    try:
        return await service.resolve(user_id)
    except EntitlementUpdateError as e:
        logger.error("Не удалось получить тариф: user_id=%s, error=%s", user_id, e.message)
        raise HTTPException(status_code=500, detail=GENERATION_FAILED_MESSAGE) from e


async def get_mediator(
    session: Annotated[AsyncSession, Depends(get_session)],
    adapters: Annotated[AdapterSet, Depends(get_adapters)],
) -> GenerationMediator:
    """Создать ядро генераций для текущего запроса."""
    return GenerationMediator(session, adapters, config=yaml_config)
