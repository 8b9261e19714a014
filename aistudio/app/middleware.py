"""Middleware контекста запроса.

Каждому HTTP-запросу назначается ID (берётся из заголовка X-Request-Id
или генерируется) и вместе с X-User-Id кладётся в контекст логов.
ID возвращается клиенту в том же заголовке ответа.

Реализовано как чистое ASGI-middleware: тело запроса и сигнал
отключения клиента проходят к эндпоинтам без изменений.
"""

from uuid import uuid4

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from aistudio.utils.logging import RequestContext, request_context

REQUEST_ID_HEADER = "x-request-id"

# Ограничение длины внешнего ID, чтобы он не раздувал строки логов
MAX_REQUEST_ID_LENGTH = 64


class RequestContextMiddleware:
    """Установить контекст запроса для логов и вернуть X-Request-Id."""

    def __init__(self, app: ASGIApp, header_name: str = REQUEST_ID_HEADER) -> None:
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        incoming = (headers.get(self.header_name) or "").strip()
        request_id = incoming[:MAX_REQUEST_ID_LENGTH] or uuid4().hex[:12]
        user_id = (headers.get("x-user-id") or "").strip() or None

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message).append(self.header_name, request_id)
            await send(message)

        token = request_context.set(RequestContext(request_id, user_id))
        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            request_context.reset(token)
