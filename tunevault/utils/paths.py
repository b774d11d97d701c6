"""Library root and URL mapping utilities.

Servable URLs are derived from local paths deterministically:

    <music root>/A/B/song.mp3      -> /music/A/B/song.mp3
    <audiobook root>/Book/01.m4a   -> /audio/Book/01.m4a
    <cache>/cover.jpg              -> /covers/cover.jpg

`LibraryRoots.to_local` reverses the mapping.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from tunevault.models.enums import MediaType

MUSIC_PREFIX = "/music/"
AUDIO_PREFIX = "/audio/"
COVER_PREFIX = "/covers/"


def relative_to_root(path: Path, root: Path) -> Optional[Path]:
    """Get path relative to a root, or None if not under it."""
    try:
        return path.relative_to(root)
    except ValueError:
        return None


@dataclass(frozen=True)
class LibraryRoots:
    """Configured library roots plus the artwork cache directory."""
    music: Path
    audiobook: Path
    cache: Path

    @classmethod
    def from_settings(cls, settings) -> "LibraryRoots":
        return cls(
            music=Path(settings.music_path),
            audiobook=Path(settings.audiobook_path),
            cache=Path(settings.cache_path),
        )

    def root_for(self, media_type: str) -> Path:
        if media_type == MediaType.AUDIOBOOK.value:
            return self.audiobook
        return self.music

    def locate(self, file_path) -> Optional[Tuple[Path, str]]:
        """Return (root, media type) for a path under one of the roots."""
        path = Path(file_path)
        for root, media_type in (
            (self.music, MediaType.MUSIC.value),
            (self.audiobook, MediaType.AUDIOBOOK.value),
        ):
            rel = relative_to_root(path, root)
            if rel is not None and rel.parts:
                return root, media_type
        return None

    def to_url(self, file_path, media_type: str) -> str:
        """Servable URL of a media file."""
        root = self.root_for(media_type)
        rel = os.path.relpath(str(file_path), str(root)).replace(os.sep, "/")
        prefix = AUDIO_PREFIX if media_type == MediaType.AUDIOBOOK.value else MUSIC_PREFIX
        return f"{prefix}{rel}"

    def cover_url(self, cover_path) -> Optional[str]:
        if not cover_path:
            return None
        return f"{COVER_PREFIX}{Path(cover_path).name}"

    def to_local(self, url: str) -> Optional[Path]:
        """Absolute path for a servable URL, or None for unknown prefixes."""
        for prefix, base in (
            (MUSIC_PREFIX, self.music),
            (AUDIO_PREFIX, self.audiobook),
            (COVER_PREFIX, self.cache),
        ):
            if url.startswith(prefix):
                rel = url[len(prefix):]
                return base.joinpath(*rel.split("/"))
        return None
