"""Album model."""
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from tunevault.database import Base
from tunevault.models.enums import FileStatus, MediaType


class Album(Base):
    """Album in the catalog, keyed by (name, artist, media_type)."""

    __tablename__ = "albums"
    __table_args__ = (
        UniqueConstraint("name", "artist", "media_type", name="uq_albums_name_artist_media_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    artist = Column(String(255), nullable=False)  # Denormalized artist name
    cover = Column(String(1000))
    year = Column(String(16))
    media_type = Column(String(20), nullable=False, default=MediaType.MUSIC.value)
    status = Column(String(20), nullable=False, default=FileStatus.ACTIVE.value, index=True)
    trashed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tracks = relationship("Track", back_populates="album_ref", lazy="dynamic")

    def __repr__(self):
        return f"<Album {self.name}>"
