"""Константы приложения."""

from pathlib import Path

# ==============================================================================
# ПУТИ К ФАЙЛАМ И ДИРЕКТОРИЯМ
# ==============================================================================

# Корень проекта (где лежит pyproject.toml)
PROJECT_ROOT = Path(__file__).parent.parent.parent


# Папка для данных (база, логи, временные загрузки)
#
# В контейнере: /data: персистентный том (абсолютный путь обязателен!)
# Локально: ./data: папка в корне проекта
_CONTAINER_DATA = Path("/data")
DATA_DIR = _CONTAINER_DATA if _CONTAINER_DATA.exists() else PROJECT_ROOT / "data"

# Создаём директорию если не существует (важно для первого запуска)
DATA_DIR.mkdir(parents=True, exist_ok=True)

# Папка для временных файлов запросов (изображения, резюме).
# Файл живёт только в рамках одного запроса и удаляется на любом исходе.
UPLOADS_DIR = DATA_DIR / "uploads"

# ==============================================================================
# ЛИМИТЫ ГЕНЕРАЦИЙ
# ==============================================================================

# Количество бесплатных генераций на пользователя тарифа free.
# Значение по умолчанию, переопределяется через limits.free_usage_limit в config.yaml.
FREE_USAGE_LIMIT = 10

# Максимальный размер документа для ревью (5 МБ).
# Проверяется ДО извлечения текста.
MAX_DOCUMENT_SIZE_BYTES = 5 * 1024 * 1024

# Минимальная длина текста, извлечённого из документа.
# Более короткий текст не отправляется в языковую модель.
MIN_DOCUMENT_TEXT_LENGTH = 100

# Бюджет токенов для генерации заголовков блога.
BLOG_TITLE_MAX_TOKENS = 100

# Бюджет токенов для ответа на ревью резюме.
RESUME_REVIEW_MAX_TOKENS = 1000
