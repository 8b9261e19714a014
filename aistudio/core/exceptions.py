"""Исключения шлюза генераций.

Все собственные исключения собраны здесь и импортируются как
`from aistudio.core.exceptions import GenerationError`.

Группы:
- БД: журнал генераций и счётчик бесплатных генераций
- Валидация: входные данные запроса
- Провайдеры: адаптеры генерации и файловое хранилище
- Ресурсы: временные файлы запроса

Отказ по тарифу исключением не является, это обычный исход проверки:
см. `aistudio.services.generation.policy.AdmissionDecision`.
"""

from typing_extensions import override

# =============================================================================
# DATABASE EXCEPTIONS
# =============================================================================
# Исключения для работы с базой данных.
# Иерархия: DatabaseError -> PersistenceError, EntitlementUpdateError.
# =============================================================================


class DatabaseError(Exception):
    """Сбой БД при работе с журналом или тарифом.

    Attributes:
        retryable: Сбой временный (блокировка, обрыв соединения),
            запрос можно повторить целиком.
    """

    def __init__(self, message: str, retryable: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.retryable = retryable


class PersistenceError(DatabaseError):
    """Не удалось записать генерацию в журнал.

    Критичный случай частичного сбоя: результат у провайдера уже получен
    (возможно, уже загружен в хранилище), но записи о нём нет
    и лимит не списан.

    Attributes:
        user_id: ID пользователя.
        original_error: Оригинальное исключение от SQLAlchemy.
    """

    def __init__(self, user_id: str, original_error: Exception) -> None:
        super().__init__(
            f"Не удалось записать генерацию user_id={user_id}: {original_error}",
            retryable=False,
        )
        self.user_id = user_id
        self.original_error = original_error


class EntitlementUpdateError(DatabaseError):
    """Ошибка чтения или изменения счётчика бесплатных генераций."""

    def __init__(self, user_id: str, original_error: Exception) -> None:
        super().__init__(
            f"Ошибка работы со счётчиком user_id={user_id}: {original_error}",
            retryable=True,
        )
        self.user_id = user_id
        self.original_error = original_error


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================
# Ошибки входных данных. Возвращаются пользователю сразу,
# обращения к провайдерам не выполняются.
# =============================================================================


class GenerationValidationError(Exception):
    """Некорректный запрос на генерацию.

    Возникает когда:
    - Не заполнено обязательное поле (промпт, файл)
    - Название объекта содержит больше одного слова
    - Файл документа превышает допустимый размер
    - Из документа извлечено слишком мало текста

    Attributes:
        message: Сообщение для пользователя (на английском, уходит в ответ API).
        field: Поле запроса, не прошедшее проверку (если известно).
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        """Создать ошибку валидации.

        Args:
            message: Сообщение для пользователя.
            field: Имя поля запроса.
        """
        super().__init__(message)
        self.message = message
        self.field = field


# =============================================================================
# AI PROVIDER EXCEPTIONS
# =============================================================================
# Исключения для адаптеров провайдеров (Gemini, Clipdrop, Cloudinary).
# Ядро различает их по типу, не разбирая формат ошибок конкретного API.
# =============================================================================


class GenerationError(Exception):
    """Адаптер не смог выполнить генерацию.

    Детали (провайдер, возможность, исходное исключение) идут в лог,
    клиент получает только общее сообщение об ошибке.

    Attributes:
        provider: Название провайдера (gemini, clipdrop, cloudinary).
        capability: Возможность, при которой произошла ошибка.
        is_retryable: Ошибка временная: 429, 5xx, сетевой сбой.
        original_error: Исключение HTTP-клиента или SDK, если было.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        capability: str,
        is_retryable: bool = False,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.capability = capability
        self.is_retryable = is_retryable
        self.original_error = original_error

    @override
    def __str__(self) -> str:
        return f"[{self.provider}:{self.capability}] {self.message}"


class AdapterTimeoutError(GenerationError):
    """Провайдер не ответил за отведённое время.

    Отличается от жёсткой ошибки: запрос мог быть выполнен провайдером,
    но ответ не дождались. Всегда считается временной ошибкой.
    """

    def __init__(self, *, provider: str, capability: str, timeout: float) -> None:
        super().__init__(
            f"Провайдер не ответил за {timeout:g} сек",
            provider=provider,
            capability=capability,
            is_retryable=True,
        )
        self.timeout = timeout


class StorageError(GenerationError):
    """Ошибка файлового хранилища (загрузка или трансформация изображения)."""


class DocumentExtractionError(GenerationError):
    """Не удалось извлечь текст из документа (битый или не-PDF файл)."""


class ProviderNotAvailableError(Exception):
    """Для возможности нет адаптера.

    Фабрика не зарегистрирована в реестре или у провайдера
    не задан API-ключ. Ядро отвечает клиенту ошибкой, не вызывая провайдера.

    Attributes:
        provider_type: Возможность или провайдер, которых нет в наборе.
    """

    def __init__(self, message: str, provider_type: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.provider_type = provider_type


# =============================================================================
# RESOURCE EXCEPTIONS
# =============================================================================
# Ошибки освобождения ресурсов запроса. Только логируются,
# на ответ пользователю не влияют.
# =============================================================================


class ResourceCleanupError(Exception):
    """Не удалось удалить временный файл запроса.

    Attributes:
        path: Путь к файлу.
        original_error: Оригинальное исключение ОС.
    """

    def __init__(self, path: str, original_error: Exception) -> None:
        self.path = path
        self.original_error = original_error
        super().__init__(f"Не удалось удалить временный файл {path}: {original_error}")
