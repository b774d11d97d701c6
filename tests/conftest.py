"""Pytest fixtures for TuneVault tests."""
from datetime import datetime, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import tunevault.models  # noqa: F401
from tunevault.database import Base
from tunevault.integrations.metadata import ScanRecord
from tunevault.services.scanner import LibraryScanner
from tunevault.utils.paths import LibraryRoots

# In-memory SQLite for tests
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db):
    """Session factory bound to the test database (for services that open their own)."""
    return TestingSessionLocal


@pytest.fixture
def roots(tmp_path):
    """Empty music, audiobook and artwork cache directories."""
    library = LibraryRoots(
        music=tmp_path / "music",
        audiobook=tmp_path / "audiobooks",
        cache=tmp_path / "covers",
    )
    for path in (library.music, library.audiobook, library.cache):
        path.mkdir()
    return library


@pytest.fixture
def write_audio():
    """Factory creating a fake audio file with the given content."""
    def _write(root: Path, relative: str, content: bytes = b"audio-data") -> Path:
        path = root.joinpath(*relative.split("/"))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path
    return _write


class FakeExtractor:
    """Extractor deriving tags from the path: <artist>/<album>/<title>.ext.

    `overrides` maps a file name to tag values; names in `failures` raise.
    """

    def __init__(self):
        self.overrides = {}
        self.failures = set()
        self.calls = []

    def extract(self, file_path):
        path = Path(file_path)
        self.calls.append(path)
        if path.name in self.failures:
            raise ValueError(f"corrupt file {path.name}")

        fields = {
            "title": path.stem,
            "artist": path.parent.parent.name,
            "album": path.parent.name,
            "duration": 180.4,
        }
        fields.update(self.overrides.get(path.name, {}))
        return ScanRecord(
            path=str(path),
            size=path.stat().st_size,
            mtime=datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc),
            **fields,
        )


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def scanner(extractor, roots):
    return LibraryScanner(extractor, roots.cache)


@pytest.fixture
def make_record():
    """Factory for ScanRecords that do not need a file on disk."""
    def _make(path, **fields):
        fields.setdefault("title", Path(path).stem)
        return ScanRecord(
            path=str(path),
            size=fields.pop("size", 10),
            mtime=fields.pop("mtime", datetime(2024, 1, 1, tzinfo=timezone.utc)),
            **fields,
        )
    return _make
