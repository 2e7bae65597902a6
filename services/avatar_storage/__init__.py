"""Avatar object storage."""

from .service import AvatarService, get_avatar_service

__all__ = ["AvatarService", "get_avatar_service"]
