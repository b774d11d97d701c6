"""Wiring of engine components from application settings."""
from tunevault.config import Settings, settings as default_settings
from tunevault.database import SessionLocal
from tunevault.integrations.metadata import MutagenExtractor
from tunevault.services.hash_sweeper import HashSweeper
from tunevault.services.importer import LibraryImporter
from tunevault.services.scanner import LibraryScanner
from tunevault.utils.paths import LibraryRoots


def get_roots(settings: Settings = default_settings) -> LibraryRoots:
    return LibraryRoots.from_settings(settings)


def get_scanner(settings: Settings = default_settings) -> LibraryScanner:
    """Scanner backed by the mutagen extractor."""
    return LibraryScanner(
        extractor=MutagenExtractor(settings.cache_path),
        cache_path=settings.cache_path,
        extensions=settings.audio_extensions,
    )


def get_importer(settings: Settings = default_settings, session_factory=SessionLocal) -> LibraryImporter:
    return LibraryImporter(
        session_factory=session_factory,
        roots=get_roots(settings),
        scanner=get_scanner(settings),
        unknown_label=settings.unknown_label,
        fingerprint_window=settings.fingerprint_window_bytes,
    )


def get_hash_sweeper(settings: Settings = default_settings, session_factory=SessionLocal) -> HashSweeper:
    return HashSweeper(
        session_factory=session_factory,
        roots=get_roots(settings),
        fingerprint_window=settings.fingerprint_window_bytes,
    )
