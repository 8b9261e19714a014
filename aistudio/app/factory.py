"""Сборка FastAPI-приложения шлюза.

create_app():
- Роутеры ai, user и health
- CORS для фронтенда студии (если заданы домены)
- Помечает логи запроса его ID (RequestContextMiddleware)
- Приводит ошибки запроса к единому формату {success, message}
- Старт и остановка через ApplicationLifecycle
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from aistudio.api.ai import router as ai_router
from aistudio.api.health import router as health_router
from aistudio.api.user import router as user_router
from aistudio.app.lifecycle import ApplicationLifecycle
from aistudio.app.middleware import REQUEST_ID_HEADER, RequestContextMiddleware
from aistudio.config.settings import settings
from aistudio.config.yaml_config import yaml_config
from aistudio.utils.logging import get_logger

logger = get_logger(__name__)

# Сообщение при некорректном теле запроса
INVALID_REQUEST_MESSAGE = "Invalid request."


def _format_request_error(error: RequestValidationError) -> str:
    """Сформировать сообщение по первой ошибке валидации."""
    errors = error.errors()
    if not errors:
        return INVALID_REQUEST_MESSAGE
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Malformed JSON body."
    field = ".".join(str(loc) for loc in first.get("loc", ()) if loc != "body")
    if field:
        return f"Invalid value for '{field}': {first.get('msg', '')}"
    return INVALID_REQUEST_MESSAGE


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Некорректное тело запроса → 400 в едином формате."""
    message = _format_request_error(exc)
    logger.info("Некорректный запрос %s: %s", request.url.path, message)
    return JSONResponse(status_code=400, content={"success": False, "message": message})


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """HTTPException → единый формат {success, message}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def create_app() -> FastAPI:
    """Собрать FastAPI-приложение шлюза.

    Адаптеры провайдеров и таблицы БД готовятся в lifespan
    (ApplicationLifecycle), поэтому тесты подменяют app.state.adapters
    и зависимость get_session, не запуская startup.
    """
    lifecycle = ApplicationLifecycle(settings, yaml_config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        await lifecycle.startup(app)
        yield
        await lifecycle.shutdown()

    app = FastAPI(
        title="AI Studio Gateway",
        description="Шлюз AI-генераций с тарифами free/premium",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]

    # Последний добавленный middleware выполняется первым
    if settings.cors.is_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors.allow_origins,
            allow_credentials=settings.cors.allow_credentials,
            allow_methods=settings.cors.allow_methods,
            allow_headers=settings.cors.allow_headers,
            expose_headers=[REQUEST_ID_HEADER],
        )
        logger.info("CORS включён для доменов: %s", ", ".join(settings.cors.allow_origins))

    app.add_middleware(RequestContextMiddleware)

    app.include_router(ai_router)  # /api/ai/*
    app.include_router(user_router)  # /api/user/creations
    app.include_router(health_router)  # /health

    return app
