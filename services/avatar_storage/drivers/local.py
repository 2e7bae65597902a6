"""Avatar storage on the local media root, served by the app's static mount."""

from __future__ import annotations

from pathlib import Path

from shared.exceptions import StorageError
from shared.utils import config, ensure_directory, sanitize_filename, setup_logging

from .base import AvatarStorageProvider, StoredObject

logger = setup_logging("avatar-storage-local")


class LocalAvatarStorage(AvatarStorageProvider):
    """Write avatars under ``<media_root>/avatars``."""

    def __init__(self, root: str | Path | None = None, public_url: str | None = None) -> None:
        media_root = Path(root or config.get("media_root", "./media"))
        self.root = media_root / "avatars"
        ensure_directory(str(self.root))
        base = public_url or config.get("public_media_url") or f"{config.get('server_address')}/static"
        self.public_url = base.rstrip("/")

    def _path(self, file_id: str) -> Path:
        path = (self.root / sanitize_filename(file_id)).resolve()
        if path.parent != self.root.resolve():
            raise StorageError(f"Refusing to touch {file_id!r} outside the avatar directory")
        return path

    async def upload(self, data: bytes, filename: str, content_type: str) -> StoredObject:
        file_id = sanitize_filename(filename)
        try:
            self._path(file_id).write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to store avatar {file_id}: {e}") from e
        logger.info(f"Stored avatar {file_id} ({len(data)} bytes, {content_type})")
        return StoredObject(file_id=file_id, url=f"{self.public_url}/avatars/{file_id}")

    async def delete(self, file_id: str) -> None:
        path = self._path(file_id)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise StorageError(f"Avatar {file_id} does not exist") from e
        except OSError as e:
            raise StorageError(f"Failed to delete avatar {file_id}: {e}") from e
        logger.info(f"Deleted avatar {file_id}")
