"""Directory scanning for music and audiobook roots."""
import logging
import os
import shutil
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional

from tunevault.integrations.metadata import MetadataExtractor, ScanRecord

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = ("mp3", "flac", "ogg", "wav", "m4a")
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}


class ScanProfile(str, Enum):
    """How records from a root are post-processed."""
    MUSIC = "music"
    AUDIOBOOK = "audiobook"


class LibraryScanner:
    """Walks a library root and feeds parsed files to a callback.

    A file that fails to parse, or whose callback raises, is logged and
    skipped; the walk always continues with its siblings.
    """

    def __init__(
        self,
        extractor: MetadataExtractor,
        cache_path: Path,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS
    ):
        self.extractor = extractor
        self.cache_path = Path(cache_path)
        self.extensions = {f".{ext.lower().lstrip('.')}" for ext in extensions}

    def is_audio_file(self, path) -> bool:
        return Path(path).suffix.lower() in self.extensions

    def scan_music(self, root, on_item: Optional[Callable[[ScanRecord], None]] = None) -> List[ScanRecord]:
        return self.scan(root, ScanProfile.MUSIC, on_item)

    def scan_audiobook(self, root, on_item: Optional[Callable[[ScanRecord], None]] = None) -> List[ScanRecord]:
        return self.scan(root, ScanProfile.AUDIOBOOK, on_item)

    def scan(
        self,
        root,
        profile: ScanProfile = ScanProfile.MUSIC,
        on_item: Optional[Callable[[ScanRecord], None]] = None
    ) -> List[ScanRecord]:
        """Parse every audio file under `root`, depth first, in name order."""
        results: List[ScanRecord] = []
        root = Path(root)
        if not root.is_dir():
            logger.info(f"Library root {root} does not exist, nothing to scan")
            return results

        for file_path in self._walk(root):
            try:
                record = self.parse(file_path, profile)
                if record is None:
                    continue
                if on_item is not None:
                    on_item(record)
                results.append(record)
            except Exception as e:
                logger.warning(f"Skipping {file_path}: {e}")

        logger.info(f"Scanned {len(results)} files under {root} ({profile.value})")
        return results

    def parse(self, file_path, profile: ScanProfile = ScanProfile.MUSIC) -> Optional[ScanRecord]:
        """Extract one file and apply the profile's post-processing."""
        record = self.extractor.extract(Path(file_path))
        if record is not None and profile == ScanProfile.AUDIOBOOK:
            self.apply_audiobook_profile(record)
        return record

    def count_files(self, root) -> int:
        """Count audio files under `root` without parsing them."""
        root = Path(root)
        if not root.is_dir():
            return 0
        return sum(1 for _ in self._walk(root))

    def apply_audiobook_profile(self, record: ScanRecord) -> ScanRecord:
        """Name the album (and a missing artist) after the book's folder.

        Books without embedded art borrow the first image in their folder.
        """
        parent = Path(record.path).parent
        record.album = parent.name
        if not record.artist:
            record.artist = parent.name
        if not record.cover_path:
            record.cover_path = self.find_cover_in_directory(parent)
        return record

    def find_cover_in_directory(self, directory: Path) -> Optional[str]:
        """Copy the first image in `directory` into the artwork cache."""
        try:
            for entry in sorted(directory.iterdir()):
                if entry.suffix.lower() in IMAGE_EXTENSIONS and entry.is_file():
                    self.cache_path.mkdir(parents=True, exist_ok=True)
                    target = self.cache_path / f"{directory.name}_cover{entry.suffix.lower()}"
                    shutil.copyfile(entry, target)
                    return str(target)
        except OSError as e:
            logger.warning(f"Failed to find cover in {directory}: {e}")
        return None

    def _walk(self, directory: Path) -> Iterator[Path]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.warning(f"Failed to read directory {directory}: {e}")
            return

        for entry in entries:
            try:
                if entry.is_dir():
                    yield from self._walk(Path(entry.path))
                elif entry.is_file() and self.is_audio_file(entry.name):
                    yield Path(entry.path)
            except OSError as e:
                logger.warning(f"Skipping {entry.path}: {e}")
