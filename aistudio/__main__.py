"""Запуск шлюза через python -m aistudio.

    python -m aistudio                  # адрес и порт из APP__HOST / APP__PORT
    python -m aistudio --dev            # hot-reload для разработки
    python -m aistudio --port 9000      # другой порт
    python -m aistudio --proxy-headers  # за reverse proxy (X-Forwarded-*)
"""

import argparse
from typing import Any

import uvicorn

from aistudio.config.settings import settings


def build_parser() -> argparse.ArgumentParser:
    """Аргументы командной строки; значения по умолчанию берутся из настроек."""
    parser = argparse.ArgumentParser(
        prog="python -m aistudio",
        description="Шлюз AI-генераций: статьи, заголовки, изображения, разбор резюме",
    )
    parser.add_argument(
        "--dev",
        action="store_true",
        default=settings.app.debug,
        help="hot-reload при изменении кода (по умолчанию: APP__DEBUG)",
    )
    parser.add_argument("--host", default=settings.app.host, help="адрес сервера")
    parser.add_argument("--port", type=int, default=settings.app.port, help="порт сервера")
    parser.add_argument(
        "--proxy-headers",
        action="store_true",
        help="доверять X-Forwarded-For и X-Forwarded-Proto",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Запустить uvicorn с приложением aistudio.main:app."""
    args = build_parser().parse_args(argv)

    reload_options: dict[str, Any] = {}
    if args.dev:
        reload_options = {
            "reload": True,
            "reload_includes": ["aistudio/**/*.py", "config.yaml"],
            "reload_excludes": [".venv/**", "data/**", "tests/**"],
        }

    uvicorn.run(
        "aistudio.main:app",
        host=args.host,
        port=args.port,
        proxy_headers=args.proxy_headers,
        **reload_options,
    )


if __name__ == "__main__":
    main()
