"""Тесты параметров подключения к БД."""

from aistudio.db.base import SQLITE_BUSY_TIMEOUT, _engine_options


def test_sqlite_waits_for_write_lock() -> None:
    """Тест: для SQLite задаётся таймаут ожидания блокировки."""
    options = _engine_options("sqlite+aiosqlite:///data/studio.db")

    assert options == {"connect_args": {"timeout": SQLITE_BUSY_TIMEOUT}}


def test_postgres_checks_connections() -> None:
    """Тест: для PostgreSQL включается проверка соединений пула."""
    options = _engine_options("postgresql+asyncpg://user:secret@db:5432/studio")

    assert options == {"pool_pre_ping": True}
