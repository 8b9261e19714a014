"""Health check эндпоинт.

Содержит endpoint для проверки работоспособности сервиса:
- GET /health — health check для мониторинга и liveness probes
"""

from typing import Any

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    """Проверка состояния сервиса.

    Возвращает список настроенных возможностей генерации:
    возможность без API-ключа провайдера в список не попадает.

    Returns:
        Словарь со статусом "ok" и списком возможностей.
    """
    adapters = getattr(request.app.state, "adapters", None)
    capabilities = [str(cap) for cap in adapters.available()] if adapters else []
    return {"status": "ok", "capabilities": capabilities}
