"""Avatar storage driver registry."""

from .base import AvatarStorageProvider, StoredObject
from .local import LocalAvatarStorage

__all__ = [
    "AvatarStorageProvider",
    "LocalAvatarStorage",
    "StoredObject",
]
