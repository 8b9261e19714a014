"""API эндпоинты пользователя.

- GET /api/user/creations — журнал генераций текущего пользователя
  (новые первые, только чтение)
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from aistudio.api.dependencies import get_user_id
from aistudio.db.base import get_session
from aistudio.db.repositories.creation_repo import CreationRepository
from aistudio.utils.timezone import ensure_utc_aware

router = APIRouter(prefix="/api/user", tags=["user"])

# Ограничение размера выдачи
MAX_CREATIONS_LIMIT = 100


class CreationItem(BaseModel):
    """Запись журнала генераций."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    prompt: str
    content: str
    type: str
    publish: bool
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        # SQLite возвращает naive datetime, в БД хранится UTC
        return ensure_utc_aware(value)


class CreationsResponse(BaseModel):
    """Ответ со списком генераций."""

    success: bool = True
    creations: list[CreationItem]


@router.get("/creations")
async def list_creations(
    user_id: Annotated[str, Depends(get_user_id)],
    session: Annotated[AsyncSession, Depends(get_session)],
    limit: Annotated[int, Query(ge=1, le=MAX_CREATIONS_LIMIT)] = 50,
) -> CreationsResponse:
    """Получить генерации пользователя."""
    creations = await CreationRepository(session).list_for_user(user_id, limit=limit)
    return CreationsResponse(
        creations=[CreationItem.model_validate(item) for item in creations]
    )
