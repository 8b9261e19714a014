"""Вспомогательные модули.

Содержит утилиты для:
- Логирования (logging.py)
- Работы с временными зонами (timezone.py)
- Временных файлов запросов (staging.py)
"""
