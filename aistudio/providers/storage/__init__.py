"""Файловое хранилище для изображений.

- CloudinaryStorage — загрузка, трансформация при загрузке,
  производные URL (transform by URL)
"""

from aistudio.providers.storage.cloudinary import CloudinaryStorage, StoredImage

__all__ = [
    "CloudinaryStorage",
    "StoredImage",
]
