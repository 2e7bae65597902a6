from sqlalchemy import Column, Integer, String

from database import Base


class Genre(Base):
    """Upstream genre id to display name"""

    __tablename__ = "genres"

    tmdb_id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=False)
