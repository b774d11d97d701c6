"""Artist model."""
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from tunevault.database import Base
from tunevault.models.enums import FileStatus, MediaType


class Artist(Base):
    """Artist in the catalog.

    Albums reference their artist by name within a media type, not by
    foreign key, so an artist row is matched on (name, media_type).
    """

    __tablename__ = "artists"
    __table_args__ = (
        UniqueConstraint("name", "media_type", name="uq_artists_name_media_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    avatar = Column(String(1000))  # /covers/<file>
    media_type = Column(String(20), nullable=False, default=MediaType.MUSIC.value)
    status = Column(String(20), nullable=False, default=FileStatus.ACTIVE.value, index=True)
    trashed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Artist {self.name}>"
