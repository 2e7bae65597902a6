"""Avatar upload/replace/delete on top of a storage driver."""

from __future__ import annotations

from uuid import uuid4

from sqlalchemy.orm import Session

from models.database.user import User
from shared.exceptions import StorageError
from shared.utils import config, setup_logging

from .drivers import AvatarStorageProvider, LocalAvatarStorage

ALLOWED_CONTENT_TYPES = {"image/jpeg": "jpg", "image/png": "png"}


class AvatarService:
    """Keep a user's avatar reference in sync with the object store."""

    def __init__(self, provider: AvatarStorageProvider | None = None) -> None:
        self.logger = setup_logging("avatar-service")
        self.provider = provider or self._load_provider(config.get("avatar_storage_driver", "local"))

    def _load_provider(self, provider_name: str) -> AvatarStorageProvider:
        providers: dict[str, type[AvatarStorageProvider]] = {
            "local": LocalAvatarStorage,
        }

        provider_cls = providers.get(provider_name.lower())
        if provider_cls is None:
            self.logger.warning("Unknown avatar storage driver '%s', falling back to local", provider_name)
            provider_cls = LocalAvatarStorage
        return provider_cls()

    @staticmethod
    def is_allowed(content_type: str | None) -> bool:
        return content_type in ALLOWED_CONTENT_TYPES

    async def discard(self, file_id: str | None) -> None:
        """Delete a stored object; failures are logged only."""
        if not file_id:
            return
        try:
            await self.provider.delete(file_id)
        except StorageError as e:
            self.logger.warning("Failed to delete avatar %s: %s", file_id, e.message)

    async def replace(self, db: Session, user: User, data: bytes, content_type: str) -> str:
        """Upload a new avatar, drop the previous object and persist the reference."""
        extension = ALLOWED_CONTENT_TYPES[content_type]
        filename = f"avatar-{user.id}-{uuid4().hex[:8]}.{extension}"

        stored = await self.provider.upload(data, filename, content_type)
        await self.discard(user.profile_id)

        user.profile = stored.url
        user.profile_id = stored.file_id
        db.commit()
        return stored.url

    async def remove(self, db: Session, user: User) -> None:
        await self.discard(user.profile_id)
        user.profile = ""
        user.profile_id = ""
        db.commit()


avatar_service: AvatarService | None = None


def get_avatar_service() -> AvatarService:
    """Dependency returning the process avatar service, created on first use."""
    global avatar_service
    if avatar_service is None:
        avatar_service = AvatarService()
    return avatar_service
