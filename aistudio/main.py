"""ASGI-приложение шлюза генераций.

    uvicorn aistudio.main:app --host 0.0.0.0 --port 8000

Для локального запуска удобнее python -m aistudio (см. __main__.py).
"""

from aistudio.app import create_app
from aistudio.config.settings import settings
from aistudio.utils.logging import get_logger, setup_logging

# APP__DEBUG включает подробные логи независимо от LOGGING__LEVEL
setup_logging(
    level="DEBUG" if settings.app.debug else settings.logging.level,
    timezone_name=settings.logging.timezone,
)

logger = get_logger(__name__)
logger.info("Логирование настроено, загрузка шлюза генераций")

app = create_app()
