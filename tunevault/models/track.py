"""Track model."""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from tunevault.database import Base
from tunevault.models.enums import FileStatus, MediaType

_ACTIVE_ONLY = text(f"status = '{FileStatus.ACTIVE.value}'")


class Track(Base):
    """Playable file in the catalog.

    `path` is the servable URL (/music/... or /audio/...). It is unique
    among ACTIVE rows only; TRASHED rows keep their last path so they can
    be matched again by `file_hash` when the content reappears.
    """

    __tablename__ = "tracks"
    __table_args__ = (
        Index(
            "uq_tracks_active_path",
            "path",
            unique=True,
            sqlite_where=_ACTIVE_ONLY,
            postgresql_where=_ACTIVE_ONLY,
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(500), nullable=False)
    path = Column(String(2000), nullable=False, index=True)
    artist = Column(String(255))  # Denormalized names, as tagged
    album = Column(String(255))
    cover = Column(String(1000))
    duration = Column(Integer, default=0)  # seconds
    lyrics = Column(Text)
    track_index = Column(Integer, default=0)
    episode_number = Column(Integer, default=0)  # Audiobooks only
    media_type = Column(String(20), nullable=False, default=MediaType.MUSIC.value)

    artist_id = Column(Integer, ForeignKey("artists.id"), index=True)
    album_id = Column(Integer, ForeignKey("albums.id"), index=True)
    folder_id = Column(Integer, ForeignKey("folders.id"), index=True)

    # Content fingerprint (size + head + tail), stable across moves
    file_hash = Column(String(64), index=True)
    file_modified_at = Column(DateTime(timezone=True))

    status = Column(String(20), nullable=False, default=FileStatus.ACTIVE.value, index=True)
    trashed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    album_ref = relationship("Album", back_populates="tracks")
    artist_ref = relationship("Artist")
    folder = relationship("Folder")

    @property
    def is_active(self) -> bool:
        return self.status == FileStatus.ACTIVE.value

    def __repr__(self):
        return f"<Track {self.id} {self.path}>"
