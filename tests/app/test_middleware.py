"""Тесты middleware контекста запроса и фильтра логов."""

import logging
from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from aistudio.app.middleware import RequestContextMiddleware
from aistudio.utils.logging import RequestContext, RequestContextFilter, request_context


@pytest.fixture
def app() -> FastAPI:
    """Минимальное приложение, возвращающее контекст запроса."""
    application = FastAPI()
    application.add_middleware(RequestContextMiddleware)

    @application.get("/context")
    async def context_endpoint() -> dict[str, str | None]:
        context = request_context.get()
        assert context is not None
        return {"request_id": context.request_id, "user_id": context.user_id}

    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client для тестирования middleware."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def test_incoming_request_id_is_echoed(client: AsyncClient) -> None:
    """Тест: X-Request-Id клиента попадает в контекст и в ответ."""
    response = await client.get(
        "/context", headers={"X-Request-Id": "req-123", "X-User-Id": "user-1"}
    )

    assert response.headers["x-request-id"] == "req-123"
    assert response.json() == {"request_id": "req-123", "user_id": "user-1"}


async def test_request_id_generated_when_absent(client: AsyncClient) -> None:
    """Тест: без заголовка ID генерируется, пользователь не указан."""
    response = await client.get("/context")

    body = response.json()
    assert len(body["request_id"]) == 12
    assert response.headers["x-request-id"] == body["request_id"]
    assert body["user_id"] is None


async def test_context_is_reset_after_request(client: AsyncClient) -> None:
    """Тест: после запроса контекст сбрасывается."""
    await client.get("/context", headers={"X-Request-Id": "req-1"})

    assert request_context.get() is None


def test_filter_adds_label_inside_request() -> None:
    """Тест: фильтр добавляет метку запроса в запись лога."""
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)
    token = request_context.set(RequestContext("abc", "user-1"))
    try:
        RequestContextFilter().filter(record)
    finally:
        request_context.reset(token)

    assert record.request_ctx == "[rid=abc user=user-1] "  # type: ignore[attr-defined]


def test_filter_outside_request_is_empty() -> None:
    """Тест: вне запроса метка пустая."""
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)

    RequestContextFilter().filter(record)

    assert record.request_ctx == ""  # type: ignore[attr-defined]
