"""
Database models package - SQLAlchemy ORM models
"""

from .genre import Genre
from .media import Media
from .otp import OTP
from .sync_state import SyncState
from .user import User

__all__ = [
    "Genre",
    "Media",
    "OTP",
    "SyncState",
    "User",
]
