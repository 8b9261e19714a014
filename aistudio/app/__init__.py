"""Модуль приложения.

Содержит factory для создания FastAPI app, lifecycle management
и middleware контекста запроса.
"""

from aistudio.app.factory import create_app
from aistudio.app.lifecycle import ApplicationLifecycle
from aistudio.app.middleware import RequestContextMiddleware

__all__ = [
    "ApplicationLifecycle",
    "RequestContextMiddleware",
    "create_app",
]
