"""SQLAlchemy models for TuneVault."""
from tunevault.models.enums import FileStatus, MediaType
from tunevault.models.user import User
from tunevault.models.artist import Artist
from tunevault.models.album import Album
from tunevault.models.folder import Folder
from tunevault.models.track import Track
from tunevault.models.playlist import Playlist, playlist_tracks
from tunevault.models.user_library import (
    user_track_likes,
    user_album_likes,
    user_audiobook_likes,
    user_track_history,
    user_album_history,
    user_audiobook_history,
)

__all__ = [
    "FileStatus",
    "MediaType",
    "User",
    "Artist",
    "Album",
    "Folder",
    "Track",
    "Playlist",
    "playlist_tracks",
    "user_track_likes",
    "user_album_likes",
    "user_audiobook_likes",
    "user_track_history",
    "user_album_history",
    "user_audiobook_history",
]
