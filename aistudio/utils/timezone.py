"""Часовые пояса.

Журнал генераций хранит created_at в UTC. Часовой пояс из
LOGGING__TIMEZONE влияет только на время в строках логов.
"""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo


def get_timezone(timezone_name: str) -> ZoneInfo:
    """Часовой пояс IANA по имени ("Europe/Moscow", "UTC").

    Raises:
        ZoneInfoNotFoundError: Неизвестное имя часового пояса.
    """
    return ZoneInfo(timezone_name)


def ensure_utc_aware(dt: datetime) -> datetime:
    """Вернуть время с tzinfo=UTC.

    SQLite отдаёт naive datetime, хотя запись сделана в UTC;
    aware-значения приводятся к UTC.

    Example:
        >>> ensure_utc_aware(datetime(2024, 1, 1, 12, 0)).isoformat()
        '2024-01-01T12:00:00+00:00'
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
