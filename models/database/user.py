"""
User model - Authentication, profile, saved folders and watch history
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, Integer, String, func
from sqlalchemy.orm import relationship

from database import Base
from shared.utils import utcnow

# Stored in place of a bcrypt hash for accounts created through Google sign-in
FEDERATED_PASSWORD = "GOOGLE_AUTH"


class User(Base):
    """User account model

    ``folders`` and ``history`` are JSON documents on the row; mutations
    rewrite the whole list.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_blocked = Column(Boolean, default=False, nullable=False)
    role = Column(String(10), default="User", nullable=False)
    login_method = Column(String(20), default="password", nullable=False)
    profile = Column(String(500), default="", nullable=False)
    profile_id = Column(String(255), default="", nullable=False)
    folders = Column(JSON, default=list, nullable=False)
    history = Column(JSON, default=list, nullable=False)
    joined = Column(DateTime, default=utcnow, nullable=False)
    # Cleared on verification; unverified rows older than the TTL are purged
    created_at = Column(DateTime, default=utcnow, nullable=True, index=True)

    otps = relationship("OTP", back_populates="user", cascade="all, delete-orphan")

    # Usernames are unique regardless of case
    __table_args__ = (Index("ix_users_username_lower", func.lower(username), unique=True),)

    @property
    def is_federated(self) -> bool:
        return self.password == FEDERATED_PASSWORD

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"
