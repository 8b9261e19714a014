"""Модуль конфигурации.

Для доступа к настройкам используйте:
    from aistudio.config.settings import settings

Для использования только классов настроек (без загрузки .env):
    from aistudio.config.models import AIProvidersSettings
"""

# Не импортируем settings здесь, чтобы тесты могли импортировать
# другие модули из aistudio.config без загрузки .env файла.
# Для доступа к settings используйте прямой импорт:
#   from aistudio.config.settings import settings
