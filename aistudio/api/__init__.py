"""API эндпоинты.

Этот модуль содержит FastAPI роутеры для:
- Генераций (/api/ai/*)
- Журнала генераций пользователя (/api/user/creations)
- Health check (/health)
"""

from aistudio.api.ai import router as ai_router
from aistudio.api.health import router as health_router
from aistudio.api.user import router as user_router

__all__ = ["ai_router", "health_router", "user_router"]
