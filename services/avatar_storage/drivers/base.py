"""Base classes for avatar storage backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class StoredObject:
    """Reference to an uploaded object and its public URL."""

    file_id: str
    url: str


class AvatarStorageProvider(ABC):
    """Abstract object store for profile pictures."""

    @abstractmethod
    async def upload(self, data: bytes, filename: str, content_type: str) -> StoredObject:
        """Persist ``data`` and return its reference and public URL."""

    @abstractmethod
    async def delete(self, file_id: str) -> None:
        """Remove a previously uploaded object. Raises StorageError on failure."""
