"""Metadata extraction for audio files.

`MutagenExtractor` is the default extractor. Anything with an
`extract(path) -> ScanRecord | None` method can be used instead; the
scanner and watcher only depend on that call.
"""
import base64
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

import mutagen
from mutagen.flac import Picture
from mutagen.mp4 import MP4Cover

logger = logging.getLogger(__name__)

# Easy-tag names first, then raw ID3 frame ids for formats mutagen has no
# easy wrapper for (WAVE, AIFF).
TITLE_KEYS = ("title", "TIT2", "\xa9nam")
ARTIST_KEYS = ("artist", "TPE1", "\xa9ART")
ALBUM_ARTIST_KEYS = ("albumartist", "TPE2", "aART")
ALBUM_KEYS = ("album", "TALB", "\xa9alb")
DATE_KEYS = ("date", "year", "TDRC", "TYER", "\xa9day")
TRACK_KEYS = ("tracknumber", "TRCK", "trkn")
LYRICS_KEYS = ("lyrics", "unsyncedlyrics", "\xa9lyr")

LYRICS_SIDECARS = (".lrc", ".txt")


@dataclass
class ScanRecord:
    """Structured result of parsing one media file."""
    path: str
    size: int
    mtime: datetime
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    year: Optional[str] = None
    track_number: Optional[int] = None
    duration: float = 0.0
    cover_path: Optional[str] = None
    lyrics: Optional[str] = None


class MetadataExtractor(Protocol):
    def extract(self, file_path: Path) -> Optional[ScanRecord]:
        ...


def _tag_text(value) -> Optional[str]:
    """Flatten a mutagen tag value (list, ID3 frame, MP4 trkn tuple) to text."""
    if value is None:
        return None
    if hasattr(value, "text"):
        value = value.text
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        value = value[0]
    if isinstance(value, tuple):
        value = value[0]
    text = str(value).strip()
    return text or None


def _first(tags, keys) -> Optional[str]:
    if tags is None:
        return None
    for key in keys:
        try:
            value = tags.get(key)
        except (KeyError, ValueError):
            value = None
        text = _tag_text(value)
        if text:
            return text
    return None


def _parse_track_number(value: Optional[str]) -> Optional[int]:
    """Parse track number from '3/12' or '3'."""
    if not value:
        return None
    value = value.split("/")[0].strip()
    try:
        return int(value)
    except ValueError:
        return None


def _parse_year(value: Optional[str]) -> Optional[str]:
    if value and len(value) >= 4 and value[:4].isdigit():
        return value[:4]
    return None


class MutagenExtractor:
    """Reads tags, duration, artwork and lyrics with mutagen.

    Embedded artwork is written to the artwork cache as
    `<audio file name>.<image ext>`.
    """

    def __init__(self, cache_path: Path):
        self.cache_path = Path(cache_path)
        self.cache_path.mkdir(parents=True, exist_ok=True)

    def extract(self, file_path: Path) -> Optional[ScanRecord]:
        """Parse a file, or return None if it cannot be read as audio."""
        path = Path(file_path)
        try:
            audio = mutagen.File(str(path))
            if audio is None:
                logger.warning(f"Unsupported audio file: {path}")
                return None
            easy = mutagen.File(str(path), easy=True)
            stat = path.stat()
        except Exception as e:
            logger.error(f"Failed to parse {path}: {e}")
            return None

        tags = easy.tags if easy is not None and easy.tags is not None else audio.tags
        raw_tags = audio.tags

        title = _first(tags, TITLE_KEYS) or _first(raw_tags, TITLE_KEYS)
        artist = (
            _first(tags, ARTIST_KEYS) or _first(raw_tags, ARTIST_KEYS)
            or _first(tags, ALBUM_ARTIST_KEYS) or _first(raw_tags, ALBUM_ARTIST_KEYS)
        )
        album = _first(tags, ALBUM_KEYS) or _first(raw_tags, ALBUM_KEYS)
        year = _parse_year(_first(tags, DATE_KEYS) or _first(raw_tags, DATE_KEYS))
        track_number = _parse_track_number(_first(tags, TRACK_KEYS) or _first(raw_tags, TRACK_KEYS))

        lyrics = self._embedded_lyrics(audio) or self._sidecar_lyrics(path)
        if lyrics:
            lyrics = lyrics.replace("\x00", "")

        return ScanRecord(
            path=str(path),
            size=stat.st_size,
            mtime=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            title=title or path.stem,
            artist=artist,
            album=album,
            year=year,
            track_number=track_number,
            duration=float(getattr(audio.info, "length", 0) or 0),
            cover_path=self._save_cover(audio, path),
            lyrics=lyrics or None,
        )

    def _embedded_lyrics(self, audio) -> Optional[str]:
        tags = audio.tags
        if tags is None:
            return None
        if hasattr(tags, "getall"):
            # ID3: USLT frames
            for frame in tags.getall("USLT"):
                if frame.text:
                    return str(frame.text)
        return _first(tags, LYRICS_KEYS)

    def _sidecar_lyrics(self, path: Path) -> Optional[str]:
        """Look for Song.lrc, then Song.txt, next to Song.mp3."""
        for suffix in LYRICS_SIDECARS:
            candidate = path.with_suffix(suffix)
            if candidate.is_file():
                try:
                    return candidate.read_text(encoding="utf-8", errors="replace")
                except OSError as e:
                    logger.debug(f"Could not read lyrics file {candidate}: {e}")
        return None

    def _embedded_picture(self, audio) -> Optional[tuple[bytes, str]]:
        """First embedded picture as (data, extension)."""
        pictures = getattr(audio, "pictures", None)
        if pictures:
            # FLAC
            return pictures[0].data, _mime_ext(pictures[0].mime)

        tags = audio.tags
        if tags is None:
            return None

        if hasattr(tags, "getall"):
            # ID3: APIC frames
            frames = tags.getall("APIC")
            if frames:
                return frames[0].data, _mime_ext(frames[0].mime)

        covr = tags.get("covr") if hasattr(tags, "get") else None
        if covr:
            # MP4
            cover = covr[0]
            ext = "png" if getattr(cover, "imageformat", None) == MP4Cover.FORMAT_PNG else "jpg"
            return bytes(cover), ext

        blocks = tags.get("metadata_block_picture") if hasattr(tags, "get") else None
        if blocks:
            # Ogg Vorbis
            try:
                picture = Picture(base64.b64decode(blocks[0]))
                return picture.data, _mime_ext(picture.mime)
            except Exception as e:
                logger.debug(f"Invalid Ogg picture block: {e}")
        return None

    def _save_cover(self, audio, path: Path) -> Optional[str]:
        picture = self._embedded_picture(audio)
        if not picture:
            return None
        data, ext = picture
        target = self.cache_path / f"{path.name}.{ext}"
        try:
            target.write_bytes(data)
        except OSError as e:
            logger.warning(f"Failed to cache artwork for {path}: {e}")
            return None
        return str(target)


def _mime_ext(mime: Optional[str]) -> str:
    """'image/png' -> 'png'; defaults to jpg."""
    if mime and "/" in mime:
        ext = mime.split("/")[1].lower()
        return "jpg" if ext == "jpeg" else ext
    return "jpg"
