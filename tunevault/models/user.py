"""User model."""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from tunevault.database import Base


class User(Base):
    """Listener whose likes, history and playlists reference catalog ids."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User {self.username}>"
