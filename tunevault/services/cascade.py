"""ACTIVE/TRASHED propagation from tracks to albums to artists."""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from tunevault.models.album import Album
from tunevault.models.artist import Artist
from tunevault.models.enums import FileStatus
from tunevault.models.track import Track

logger = logging.getLogger(__name__)

ACTIVE = FileStatus.ACTIVE.value
TRASHED = FileStatus.TRASHED.value


class StatusCascade:
    """Re-evaluates album and artist status after a track transition.

    An album is ACTIVE iff it has an ACTIVE track; an artist is ACTIVE iff
    an ACTIVE album carries its name in the same media type. Only a
    zero-boundary crossing changes a row. Changes are flushed, not
    committed; the caller owns the transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def refresh_album(self, album_id: int) -> None:
        self.db.flush()
        album = self.db.get(Album, album_id)
        if album is None:
            return

        active_tracks = self.db.query(Track).filter(
            Track.album_id == album_id,
            Track.status == ACTIVE
        ).count()

        if not self._apply(album, active_tracks):
            return

        logger.info(f"Album {album.id} ({album.name}) is now {album.status}")
        artist = self.db.query(Artist).filter(
            Artist.name == album.artist,
            Artist.media_type == album.media_type
        ).first()
        if artist is not None:
            self.refresh_artist(artist.id)

    def refresh_artist(self, artist_id: int) -> None:
        self.db.flush()
        artist = self.db.get(Artist, artist_id)
        if artist is None:
            return

        active_albums = self.db.query(Album).filter(
            Album.artist == artist.name,
            Album.media_type == artist.media_type,
            Album.status == ACTIVE
        ).count()

        if self._apply(artist, active_albums):
            logger.info(f"Artist {artist.id} ({artist.name}) is now {artist.status}")

    def _apply(self, row, active_children: int) -> bool:
        """Flip status on a zero-boundary crossing. Returns True if changed."""
        if active_children == 0 and row.status == ACTIVE:
            row.status = TRASHED
            row.trashed_at = datetime.now(timezone.utc)
        elif active_children > 0 and row.status == TRASHED:
            row.status = ACTIVE
            row.trashed_at = None
        else:
            return False
        self.db.flush()
        return True
