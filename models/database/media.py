"""
Trending media cache model
"""

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, Text

from database import Base
from shared.utils import utcnow


class Media(Base):
    """Locally cached upstream catalog entry, keyed by upstream id"""

    __tablename__ = "media"

    id = Column(Integer, primary_key=True, autoincrement=False)
    media_type = Column(String(2), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    overview = Column(Text, default="", nullable=False)
    poster_path = Column(String(500), default="", nullable=False)
    backdrop_path = Column(String(500), default="", nullable=False)
    vote_average = Column(Float, default=0, nullable=False)
    vote_count = Column(Integer, default=0, nullable=False)
    genres = Column(JSON, default=list, nullable=False)
    release_date = Column(String(20), default="", nullable=False)
    runtime = Column(Integer, nullable=True)
    seasons = Column(JSON, nullable=True)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "media_type": self.media_type,
            "title": self.title,
            "overview": self.overview,
            "poster_path": self.poster_path,
            "backdrop_path": self.backdrop_path,
            "vote_average": self.vote_average,
            "vote_count": self.vote_count,
            "genres": self.genres or [],
            "release_date": self.release_date,
            "runtime": self.runtime,
        }
        if self.seasons is not None:
            data["seasons"] = self.seasons
        return data
