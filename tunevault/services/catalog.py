"""Catalog reconciliation: scan records in, artist/album/track rows out."""
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tunevault.integrations.metadata import ScanRecord
from tunevault.models.album import Album
from tunevault.models.artist import Artist
from tunevault.models.enums import FileStatus, MediaType
from tunevault.models.track import Track
from tunevault.services.cascade import StatusCascade
from tunevault.utils.episodes import extract_episode_number
from tunevault.utils.paths import LibraryRoots

logger = logging.getLogger(__name__)

ACTIVE = FileStatus.ACTIVE.value
TRASHED = FileStatus.TRASHED.value


class CatalogReconciler:
    """Creates or updates catalog rows for files found on disk.

    Every public method commits its own unit of work. Re-running any of
    them for an unchanged file leaves the catalog as it was.
    """

    def __init__(self, db: Session, roots: LibraryRoots, unknown_label: str = "Unknown"):
        self.db = db
        self.roots = roots
        self.unknown_label = unknown_label
        self.cascade = StatusCascade(db)

    def reconcile(
        self,
        record: ScanRecord,
        media_type: str,
        root_path,
        folder_id: Optional[int],
        file_hash: Optional[str]
    ) -> Track:
        """Bring the catalog in line with one parsed file."""
        file_hash = file_hash or None
        url = self.roots.to_url(record.path, media_type)

        existing = self.find_active(url)
        if existing is not None:
            changed = False
            if folder_id and existing.folder_id != folder_id:
                existing.folder_id = folder_id
                changed = True
            if file_hash and not existing.file_hash:
                existing.file_hash = file_hash
                changed = True
            if changed:
                self.db.commit()
                logger.debug(f"Refreshed track {existing.id} at {url}")
            return existing

        candidate = self.find_move_candidate(file_hash)
        if candidate is not None:
            return self.resurrect(candidate, url, folder_id, record.mtime)

        return self._create(record, media_type, url, folder_id, file_hash)

    def find_active(self, url: str) -> Optional[Track]:
        return self.db.query(Track).filter(
            Track.path == url,
            Track.status == ACTIVE
        ).first()

    def find_move_candidate(self, file_hash: Optional[str]) -> Optional[Track]:
        """Track whose content matches `file_hash` but lost its file.

        TRASHED rows come first. An ACTIVE row also qualifies when its file
        is gone, which happens when the add half of a move is handled
        before the unlink half.
        """
        if not file_hash:
            return None

        trashed = self.db.query(Track).filter(
            Track.file_hash == file_hash,
            Track.status == TRASHED
        ).order_by(Track.trashed_at.desc()).first()
        if trashed is not None:
            return trashed

        for track in self.db.query(Track).filter(
            Track.file_hash == file_hash,
            Track.status == ACTIVE
        ):
            local = self.roots.to_local(track.path)
            if local is not None and not local.exists():
                return track
        return None

    def resurrect(
        self,
        track: Track,
        url: str,
        folder_id: Optional[int],
        modified_at: Optional[datetime] = None
    ) -> Track:
        """Point an existing track at its new location and reactivate it."""
        logger.info(f"Resurrecting moved track {track.id} ({track.name}): {track.path} -> {url}")
        track.path = url
        track.folder_id = folder_id
        track.status = ACTIVE
        track.trashed_at = None
        track.file_modified_at = modified_at or datetime.now(timezone.utc)

        if track.album_id:
            self.cascade.refresh_album(track.album_id)
        self.db.commit()
        return track

    def refresh_metadata(
        self,
        track: Track,
        record: ScanRecord,
        file_hash: Optional[str]
    ) -> Track:
        """Apply an edited file's tags. Artist/album links are kept."""
        track.name = record.title or Path(record.path).name
        track.duration = round_seconds(record.duration)
        track.file_hash = file_hash or None
        track.file_modified_at = record.mtime or datetime.now(timezone.utc)
        self.db.commit()
        logger.info(f"Updated track {track.id} from {record.path}")
        return track

    def trash(self, url: str) -> Optional[Track]:
        """Soft-delete the ACTIVE track at `url` and cascade upwards."""
        track = self.find_active(url)
        if track is None:
            return None

        logger.info(f"Trashing track {track.id} ({track.name})")
        track.status = TRASHED
        track.trashed_at = datetime.now(timezone.utc)

        if track.album_id:
            self.cascade.refresh_album(track.album_id)
        self.db.commit()
        return track

    def trash_directory(self, url_prefix: str) -> List[Track]:
        """Trash every ACTIVE track under a removed directory's URL.

        Tracks whose file is still on disk are left alone, so a directory
        that was put back before the event fired keeps its tracks.
        """
        prefix = url_prefix.rstrip("/") + "/"
        trashed = []
        for track in self.db.query(Track).filter(
            Track.status == ACTIVE,
            Track.path.startswith(prefix, autoescape=True)
        ).all():
            local = self.roots.to_local(track.path)
            if local is not None and local.exists():
                continue
            track.status = TRASHED
            track.trashed_at = datetime.now(timezone.utc)
            trashed.append(track)

        if not trashed:
            return trashed

        logger.info(f"Trashing {len(trashed)} tracks under {prefix}")
        for album_id in {track.album_id for track in trashed if track.album_id}:
            self.cascade.refresh_album(album_id)
        self.db.commit()
        return trashed

    def _create(
        self,
        record: ScanRecord,
        media_type: str,
        url: str,
        folder_id: Optional[int],
        file_hash: Optional[str]
    ) -> Track:
        artist_name = record.artist or self.unknown_label
        album_name = record.album or self.unknown_label
        cover_url = self.roots.cover_url(record.cover_path)
        title = record.title or Path(record.path).name

        artist = self._get_or_create_artist(artist_name, media_type, cover_url)
        album = self._get_or_create_album(album_name, artist_name, media_type, cover_url, record.year)

        track = Track(
            name=title,
            path=url,
            artist=artist_name,
            album=album_name,
            cover=cover_url,
            duration=round_seconds(record.duration),
            lyrics=record.lyrics,
            track_index=record.track_number or 0,
            episode_number=(
                extract_episode_number(title)
                if media_type == MediaType.AUDIOBOOK.value else 0
            ),
            media_type=media_type,
            artist_id=artist.id,
            album_id=album.id,
            folder_id=folder_id,
            file_hash=file_hash,
            file_modified_at=record.mtime,
            status=ACTIVE,
            trashed_at=None,
        )
        self.db.add(track)
        self.db.commit()
        logger.debug(f"Created track {track.id} at {url}")
        return track

    def _get_or_create_artist(self, name: str, media_type: str, avatar: Optional[str]) -> Artist:
        artist = self._find_artist(name, media_type)

        if artist is None:
            try:
                with self.db.begin_nested():
                    artist = Artist(
                        name=name,
                        avatar=avatar,
                        media_type=media_type,
                        status=ACTIVE,
                    )
                    self.db.add(artist)
                    self.db.flush()
                logger.info(f"Created artist {name} ({media_type})")
                return artist
            except IntegrityError:
                logger.debug(f"Artist {name} ({media_type}) created concurrently, reusing it")
                artist = self._find_artist(name, media_type)

        if artist.status == TRASHED:
            artist.status = ACTIVE
            artist.trashed_at = None
            logger.info(f"Reactivated artist {artist.id} ({name})")
        return artist

    def _get_or_create_album(
        self,
        name: str,
        artist_name: str,
        media_type: str,
        cover: Optional[str],
        year: Optional[str]
    ) -> Album:
        album = self._find_album(name, artist_name, media_type)

        if album is None:
            try:
                with self.db.begin_nested():
                    album = Album(
                        name=name,
                        artist=artist_name,
                        cover=cover,
                        year=str(year) if year else None,
                        media_type=media_type,
                        status=ACTIVE,
                    )
                    self.db.add(album)
                    self.db.flush()
                logger.info(f"Created album {name} by {artist_name} ({media_type})")
                return album
            except IntegrityError:
                logger.debug(f"Album {name} by {artist_name} created concurrently, reusing it")
                album = self._find_album(name, artist_name, media_type)

        if album.status == TRASHED:
            album.status = ACTIVE
            album.trashed_at = None
            logger.info(f"Reactivated album {album.id} ({name})")
        return album

    def _find_artist(self, name: str, media_type: str) -> Optional[Artist]:
        return self.db.query(Artist).filter(
            Artist.name == name,
            Artist.media_type == media_type
        ).first()

    def _find_album(self, name: str, artist_name: str, media_type: str) -> Optional[Album]:
        return self.db.query(Album).filter(
            Album.name == name,
            Album.artist == artist_name,
            Album.media_type == media_type
        ).first()


def round_seconds(value: Optional[float]) -> int:
    """Round half up, so 2.5s is stored as 3."""
    return int((value or 0) + 0.5)


def tracks_missing_hash(db: Session):
    """ACTIVE tracks with no stored fingerprint."""
    return db.query(Track).filter(
        Track.status == ACTIVE,
        or_(Track.file_hash.is_(None), Track.file_hash == "")
    )
