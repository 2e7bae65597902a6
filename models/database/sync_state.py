"""
Persisted record of the last successful sync per sync type
"""

from sqlalchemy import Column, DateTime, Integer

from database import Base

SYNC_STATE_ID = 1


class SyncState(Base):
    """Singleton row holding the last genre and trending refresh times"""

    __tablename__ = "sync_state"

    id = Column(Integer, primary_key=True, default=SYNC_STATE_ID)
    last_genre_update = Column(DateTime, nullable=True)
    last_trending_update = Column(DateTime, nullable=True)
